"""Output directory handling and atomic file writes."""
from __future__ import annotations
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from .errors import OutputWriteError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_directory(directory: PathLike) -> Path:
    path = Path(directory)
    if path.is_dir():
        return path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(str(path), e.strerror or str(e), e.errno) from e
    logger.info("created output directory", extra={"directory": str(path)})
    return path


def _target_mode(target: Path) -> int:
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_bytes(directory: PathLike, filename: str, data: bytes) -> Path:
    """Write ``data`` to ``directory/filename``, replacing any existing file.

    ``filename`` may carry subdirectories; they are created like ``directory``.
    Data goes to a sibling temporary file first and is renamed into place, so
    a failed write never leaves a partial destination file. A replaced file
    keeps its permissions, a new one gets the usual umask-derived mode.
    """
    ensure_directory(directory)
    target = Path(directory) / filename
    target_dir = ensure_directory(target.parent)
    tmp_name = None
    try:
        mode = _target_mode(target)
        with tempfile.NamedTemporaryFile(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target_dir), delete=False
        ) as fh:
            tmp_name = fh.name
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp files are owner-only
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(str(target), e.strerror or str(e), e.errno) from e
    logger.debug("wrote output", extra={"output": str(target), "size": len(data)})
    return target
