"""Prometheus metrics for report runs, exported as a node_exporter textfile."""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Union

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile

logger = logging.getLogger(__name__)

REGISTRY = CollectorRegistry()

RUNS_TOTAL = Counter(
    "testsummary_runs_total",
    "Report runs by outcome",
    ["outcome"],
    registry=REGISTRY,
)

RUN_DURATION = Histogram(
    "testsummary_run_duration_seconds",
    "Duration of a full report run",
    registry=REGISTRY,
)

STAGE_DURATION = Histogram(
    "testsummary_stage_duration_seconds",
    "Duration of one transform stage",
    ["stage"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

INPUT_DOCUMENTS = Gauge(
    "testsummary_input_documents",
    "Input files supplied to the last run",
    registry=REGISTRY,
)

MERGED_DOCUMENTS = Gauge(
    "testsummary_merged_documents",
    "Documents merged into the summary by the last run",
    registry=REGISTRY,
)

# Pre-create labelled samples so they appear in the textfile
for _outcome in ("success", "failure"):
    RUNS_TOTAL.labels(outcome=_outcome).inc(0)
for _stage in ("content", "i18n"):
    STAGE_DURATION.labels(stage=_stage)


def write_metrics(path: Union[str, Path]) -> None:
    """Write the registry in the text exposition format.

    Metrics are auxiliary output: a failed write is logged, never raised.
    """
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(path), REGISTRY)
    except OSError as e:
        logger.warning("failed to write metrics file", extra={"metrics_file": str(path), "error": str(e)})
