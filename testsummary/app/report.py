"""Report runner: merge, parameterize, transform and write one report.

A run moves through::

    Init -> DirectoryEnsured -> Merged -> Parameterized -> Stage1Complete
         -> Stage2Complete | AssetCopied -> Done

Any error moves it to Failed and is re-raised unchanged. Nothing is retried.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from lxml import etree

from .errors import ConfigurationError
from .merger import create_summary_document
from .params import HostInfo, build_parameters
from .schemas import ReportConfig
from . import metrics
from . import transform
from . import writer

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    INIT = "Init"
    DIRECTORY_ENSURED = "DirectoryEnsured"
    MERGED = "Merged"
    PARAMETERIZED = "Parameterized"
    STAGE1_COMPLETE = "Stage1Complete"
    STAGE2_COMPLETE = "Stage2Complete"
    ASSET_COPIED = "AssetCopied"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class RunResult:
    run_id: str
    report_path: Path
    asset_paths: List[Path] = field(default_factory=list)
    merged_documents: int = 0


class SummaryReport:
    """Creates one HTML report from test-result XML files."""

    def __init__(
        self,
        config: ReportConfig,
        host: Optional[HostInfo] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.host = host
        self.clock = clock
        self.run_id = uuid.uuid4().hex
        self.state = RunState.INIT
        self.error: Optional[Exception] = None
        self.summary: Optional[etree._ElementTree] = None
        self.params: Dict[str, str] = {}

    def _advance(self, state: RunState, **fields) -> None:
        self.state = state
        logger.info("report state", extra={"state": state.value, "run_id": self.run_id, **fields})

    def execute(self) -> RunResult:
        """This is where the work is done."""
        cfg = self.config
        try:
            with metrics.RUN_DURATION.time():
                result = self._run()
        except Exception as e:
            self.error = e
            self.state = RunState.FAILED
            metrics.RUNS_TOTAL.labels(outcome="failure").inc()
            logger.error(
                "report run failed",
                extra={"state": RunState.FAILED.value, "run_id": self.run_id, "error_class": type(e).__name__, "error": str(e)},
            )
            raise
        else:
            metrics.RUNS_TOTAL.labels(outcome="success").inc()
            return result
        finally:
            if cfg.metrics_file is not None:
                metrics.write_metrics(cfg.metrics_file)

    def _run(self) -> RunResult:
        cfg = self.config
        if not cfg.input_files:
            raise ConfigurationError("at least one input file is required")
        out_dir = writer.ensure_directory(cfg.output_directory)
        self._advance(RunState.DIRECTORY_ENSURED, directory=str(out_dir))

        metrics.INPUT_DOCUMENTS.set(len(cfg.input_files))
        self.summary = create_summary_document(cfg.input_files, now=self.clock())
        merged = len(self.summary.getroot())
        metrics.MERGED_DOCUMENTS.set(merged)
        self._advance(RunState.MERGED, inputs=len(cfg.input_files), merged=merged)

        self.params = build_parameters(cfg.open_description, self.host)
        self._advance(RunState.PARAMETERIZED)

        report_path = self._write_output(cfg.template_path, cfg.output_filename)
        assets = [self._write_output(a.template, a.filename) for a in cfg.assets]

        self._advance(RunState.DONE, report=str(report_path), assets=len(assets))
        return RunResult(
            run_id=self.run_id,
            report_path=report_path,
            asset_paths=assets,
            merged_documents=merged,
        )

    def _write_output(self, template_path: Path, filename: str) -> Path:
        cfg = self.config
        content = transform.run_content_stage(self.summary, self.params, template_path)
        self._advance(RunState.STAGE1_COMPLETE, template=str(template_path))
        if cfg.intermediate_directory is not None:
            transform.keep_intermediate(content.data, cfg.intermediate_directory)

        if transform.is_passthrough(filename):
            path = writer.write_bytes(cfg.output_directory, filename, content.data)
            self._advance(RunState.ASSET_COPIED, output=str(path))
            return path

        data = transform.run_i18n_stage(content, cfg.i18n_template_path, cfg.language.language_string)
        path = writer.write_bytes(cfg.output_directory, filename, data)
        self._advance(RunState.STAGE2_COMPLETE, output=str(path))
        return path


def create_report(config: ReportConfig, host: Optional[HostInfo] = None) -> RunResult:
    """One-shot run using SummaryReport for convenience."""
    return SummaryReport(config, host=host).execute()
