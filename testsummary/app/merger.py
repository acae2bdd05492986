"""Merge test-result XML files into a single summary document."""
from __future__ import annotations
import copy
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from lxml import etree

from .errors import ConfigurationError, InputParseError

logger = logging.getLogger(__name__)

SUMMARY_ROOT_TAG = "testsummary"
CREATED_ATTRIBUTE = "created"

_UTF8_BOM = b"\xef\xbb\xbf"
_PROLOG_ITEM = re.compile(rb"<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^\[>]*(?:\[.*?\])?\s*>", re.S)


def format_created(moment: datetime) -> str:
    # Locale-default rendering; parses back with strptime(value, "%c")
    return moment.strftime("%c")


def _is_rootless(raw: bytes) -> bool:
    """True when the data holds at most a prolog (declaration, comments, PIs, doctype)."""
    body = raw[len(_UTF8_BOM):] if raw.startswith(_UTF8_BOM) else raw
    return not _PROLOG_ITEM.sub(b"", body).strip()


def _parse_result(path: Union[str, Path]) -> Optional[etree._Element]:
    """Return the root element of one result file, or None if it has none."""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise InputParseError(str(path), e.strerror or str(e)) from e
    if _is_rootless(raw):
        return None
    parser = etree.XMLParser(remove_blank_text=False, resolve_entities=False)
    try:
        root = etree.fromstring(raw, parser=parser, base_url=str(path))
    except etree.XMLSyntaxError as e:
        raise InputParseError(str(path), str(e)) from e
    return root


def create_summary_document(
    paths: Optional[Iterable[Union[str, Path]]],
    now: Optional[datetime] = None,
) -> etree._ElementTree:
    """Build the ``testsummary`` document from result files, in input order.

    Files without a root element are skipped.
    """
    if paths is None:
        raise ConfigurationError("no input files supplied")
    paths = list(paths)
    if not paths:
        raise ConfigurationError("no input files supplied")

    root = etree.Element(SUMMARY_ROOT_TAG)
    root.set(CREATED_ATTRIBUTE, format_created(now or datetime.now()))

    for path in paths:
        source = _parse_result(path)
        if source is None:
            logger.debug("skipping input without root element", extra={"path": str(path)})
            continue
        root.append(copy.deepcopy(source))

    logger.info(
        "merged result documents",
        extra={"inputs": len(paths), "merged": len(root)},
    )
    return etree.ElementTree(root)
