"""Two-stage XSLT pipeline: content transform, then localization transform.

The content template renders the summary document into HTML carrying
translation keys; the i18n template resolves those keys for one language.
Stage 1 output is handed to stage 2 as an in-memory result tree.
"""
from __future__ import annotations
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from lxml import etree

from .errors import TemplateLoadError, TransformError
from .params import i18n_parameters
from . import metrics
from . import writer

logger = logging.getLogger(__name__)

__all__ = [
    "PASSTHROUGH_EXTENSIONS",
    "StageOutput",
    "is_passthrough",
    "keep_intermediate",
    "load_template",
    "run_content_stage",
    "run_i18n_stage",
    "render",
    "transform",
]

PathLike = Union[str, Path]

# Outputs with these extensions are written straight from the content stage
PASSTHROUGH_EXTENSIONS = frozenset({".css"})


@dataclass(frozen=True)
class StageOutput:
    data: bytes
    tree: Optional[etree._ElementTree] = None


def is_passthrough(filename: PathLike) -> bool:
    return Path(filename).suffix.lower() in PASSTHROUGH_EXTENSIONS


def _describe(exc: Exception, error_log: Optional[Iterable] = None) -> str:
    messages = [f"line {e.line}: {e.message}" if e.line else e.message for e in (error_log or [])]
    return "; ".join(messages) or str(exc)


def load_template(path: PathLike) -> etree.XSLT:
    """Compile the XSLT stylesheet at ``path``.

    The stylesheet is parsed from its file so ``document()`` calls resolve
    relative to the template location.
    """
    p = Path(path)
    if not p.is_file():
        raise TemplateLoadError(str(p), "file not found")
    try:
        doc = etree.parse(str(p))
    except etree.XMLSyntaxError as e:
        raise TemplateLoadError(str(p), _describe(e, e.error_log)) from e
    except OSError as e:
        raise TemplateLoadError(str(p), str(e)) from e
    try:
        return etree.XSLT(doc)
    except etree.XSLTParseError as e:
        raise TemplateLoadError(str(p), _describe(e, e.error_log)) from e


def _apply(
    xslt: etree.XSLT,
    doc: etree._ElementTree,
    params: Mapping[str, str],
    stage: str,
    template: PathLike,
) -> etree._XSLTResultTree:
    xparams = {name: etree.XSLT.strparam(value) for name, value in params.items()}
    try:
        return xslt(doc, **xparams)
    except etree.XSLTApplyError as e:
        raise TransformError(stage, str(template), _describe(e, xslt.error_log)) from e


def _serialize(result: etree._XSLTResultTree) -> bytes:
    # str() honours xsl:output and drops the encoding declaration
    return str(result).encode("utf-8")


def keep_intermediate(data: bytes, directory: PathLike) -> Path:
    writer.ensure_directory(directory)
    with tempfile.NamedTemporaryFile(prefix="stage1-", suffix=".xml", dir=str(directory), delete=False) as fh:
        fh.write(data)
    logger.info("kept intermediate output", extra={"intermediate": fh.name})
    return Path(fh.name)


def run_content_stage(
    summary: etree._ElementTree,
    params: Mapping[str, str],
    template_path: PathLike,
) -> StageOutput:
    xslt = load_template(template_path)
    with metrics.STAGE_DURATION.labels(stage="content").time():
        result = _apply(xslt, summary, params, "content", template_path)
    tree = result if result.getroot() is not None else None
    return StageOutput(data=_serialize(result), tree=tree)


def run_i18n_stage(
    content: StageOutput,
    template_path: PathLike,
    language_code: str,
) -> bytes:
    xslt = load_template(template_path)
    if content.tree is None:
        raise TransformError("i18n", str(template_path), "content stage produced no document element")
    with metrics.STAGE_DURATION.labels(stage="i18n").time():
        result = _apply(xslt, content.tree, i18n_parameters(language_code), "i18n", template_path)
    return _serialize(result)


def render(
    summary: etree._ElementTree,
    params: Mapping[str, str],
    primary_template_path: PathLike,
    i18n_template_path: PathLike,
    language_code: str,
    output_filename: PathLike,
    intermediate_directory: Optional[PathLike] = None,
) -> bytes:
    """Run both stages and return the final bytes for ``output_filename``.

    Passthrough outputs return the content stage bytes unchanged.
    """
    content = run_content_stage(summary, params, primary_template_path)
    if intermediate_directory is not None:
        keep_intermediate(content.data, intermediate_directory)
    if is_passthrough(output_filename):
        logger.debug("passthrough output, skipping i18n stage", extra={"output": str(output_filename)})
        return content.data
    return run_i18n_stage(content, i18n_template_path, language_code)


def transform(
    summary: etree._ElementTree,
    params: Mapping[str, str],
    primary_template_path: PathLike,
    i18n_template_path: PathLike,
    language_code: str,
    output_path: PathLike,
    intermediate_directory: Optional[PathLike] = None,
) -> Path:
    out = Path(output_path)
    data = render(
        summary,
        params,
        primary_template_path,
        i18n_template_path,
        language_code,
        out.name,
        intermediate_directory=intermediate_directory,
    )
    return writer.write_bytes(out.parent, out.name, data)
