from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from .errors import ConfigurationError
from .schemas import ReportConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Environment variable -> ReportConfig field
ENV_FIELDS: Dict[str, str] = {
    "TESTSUMMARY_OUTPUT_DIR": "output_directory",
    "TESTSUMMARY_OUTPUT_FILE": "output_filename",
    "TESTSUMMARY_LANG": "language",
    "TESTSUMMARY_OPEN_DESCRIPTION": "open_description",
    "TESTSUMMARY_TEMPLATE": "template_path",
    "TESTSUMMARY_I18N_TEMPLATE": "i18n_template_path",
    "TESTSUMMARY_INTERMEDIATE_DIR": "intermediate_directory",
    "TESTSUMMARY_METRICS_FILE": "metrics_file",
}

# Fields resolved against the config file's directory when relative
_PATH_FIELDS = ("output_directory", "template_path", "i18n_template_path", "intermediate_directory", "metrics_file")


def _env_file_candidates() -> List[Path]:
    override = os.getenv("TESTSUMMARY_ENV_FILE")
    if not override:
        cwd = Path.cwd()
        return [cwd / ".env", cwd / ".env.local"]
    candidates: List[Path] = []
    for part in override.split(os.pathsep):
        if not part:
            continue
        candidate = Path(part).expanduser()
        if candidate.is_dir():
            candidate = candidate / ".env"
        candidates.append(candidate)
    return candidates


def load_env_settings() -> Dict[str, str]:
    """Collect TESTSUMMARY_* settings; process environment wins over .env files."""
    settings: Dict[str, str] = {}
    for path in _env_file_candidates():
        if not path.exists():
            continue
        for key, value in dotenv_values(str(path)).items():
            if value is not None:
                settings[str(key)] = str(value)
    for key in ENV_FIELDS:
        value = os.getenv(key)
        if value is not None:
            settings[key] = value
    return {ENV_FIELDS[k]: v for k, v in settings.items() if k in ENV_FIELDS}


def _resolve_relative(data: Dict[str, Any], base: Path) -> Dict[str, Any]:
    def resolve(value: Any) -> Any:
        if value is None or value == "":
            return value
        p = Path(str(value)).expanduser()
        return p if p.is_absolute() else base / p

    out = dict(data)
    for key in _PATH_FIELDS:
        if key in out:
            out[key] = resolve(out[key])
    if isinstance(out.get("input_files"), list):
        out["input_files"] = [resolve(v) for v in out["input_files"]]
    if isinstance(out.get("assets"), list):
        out["assets"] = [
            dict(a, template=resolve(a.get("template"))) if isinstance(a, dict) else a
            for a in out["assets"]
        ]
    return out


def load_config_file(path: PathLike) -> Dict[str, Any]:
    cfg_path = Path(path).expanduser()
    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {cfg_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in config file {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {cfg_path} must contain a mapping")
    return _resolve_relative(data, cfg_path.resolve().parent)


def load_report_config(config_file: Optional[PathLike] = None, **overrides: Any) -> ReportConfig:
    """Build the run configuration.

    Precedence, lowest first: model defaults, YAML config file
    (``config_file`` or TESTSUMMARY_CONFIG), .env files and environment,
    then ``overrides`` whose value is not None.
    """
    merged: Dict[str, Any] = {}
    config_file = config_file or os.getenv("TESTSUMMARY_CONFIG")
    if config_file:
        merged.update(load_config_file(config_file))
        logger.debug("loaded config file", extra={"config_file": str(config_file)})
    merged.update(load_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ReportConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
