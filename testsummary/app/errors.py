"""Error taxonomy for report runs."""
from __future__ import annotations

from typing import Optional


class ReportError(Exception):
    pass


class ConfigurationError(ReportError):
    pass


class InputParseError(ReportError):
    def __init__(self, path: str, message: str) -> None:
        self.path = str(path)
        self.message = message
        super().__init__(f"failed to parse input {self.path}: {message}")


class TemplateLoadError(ReportError):
    def __init__(self, path: str, message: str) -> None:
        self.path = str(path)
        self.message = message
        super().__init__(f"failed to load template {self.path}: {message}")


class TransformError(ReportError):
    def __init__(self, stage: str, template: str, message: str) -> None:
        self.stage = stage
        self.template = str(template)
        self.message = message
        super().__init__(f"{stage} transform failed ({self.template}): {message}")


class OutputWriteError(ReportError, OSError):
    def __init__(self, path: str, message: str, errno: Optional[int] = None) -> None:
        self.path = str(path)
        self.message = message
        ReportError.__init__(self, f"failed to write {self.path}: {message}")
        self.errno = errno
