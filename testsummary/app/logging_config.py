from __future__ import annotations
import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Send report logs to stderr as one JSON object per line.

    Stdout is left to the CLI's own output (report paths, merged XML, params
    JSON). The level comes from ``level``, then ``LOG_LEVEL``, then INFO.
    Calling it again replaces the previous handler instead of adding one.
    """
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, name, logging.INFO))

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    root.addHandler(handler)
