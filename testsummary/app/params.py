"""Transform parameters derived from the host and user options."""
from __future__ import annotations
import getpass
import logging
import platform
import socket
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

__all__ = [
    "HostInfo",
    "PlatformHostInfo",
    "StaticHostInfo",
    "build_parameters",
    "i18n_parameters",
]


class HostInfo(Protocol):
    def os_description(self) -> str: ...

    def runtime_version(self) -> str: ...

    def machine_name(self) -> str: ...

    def username(self) -> str: ...


def _safe(query: Callable[[], str], name: str) -> str:
    try:
        return str(query() or "")
    except Exception as e:
        logger.debug("host query failed", extra={"query": name, "error": str(e)})
        return ""


class PlatformHostInfo:
    """Host details from the running interpreter and operating system."""

    def os_description(self) -> str:
        return f"{platform.system()} {platform.release()} {platform.version()}".strip()

    def runtime_version(self) -> str:
        return f"{platform.python_implementation()} {platform.python_version()}"

    def machine_name(self) -> str:
        return socket.gethostname()

    def username(self) -> str:
        return getpass.getuser()


@dataclass(frozen=True)
class StaticHostInfo:
    os: str = ""
    runtime: str = ""
    machine: str = ""
    user: str = ""

    def os_description(self) -> str:
        return self.os

    def runtime_version(self) -> str:
        return self.runtime

    def machine_name(self) -> str:
        return self.machine

    def username(self) -> str:
        return self.user


def build_parameters(open_description: bool, host: Optional[HostInfo] = None) -> Dict[str, str]:
    """Return the parameter set for the content transform, in a fixed key order."""
    host = host or PlatformHostInfo()
    runtime = _safe(host.runtime_version, "runtime_version")
    return {
        "sys.os": _safe(host.os_description, "os_description"),
        "sys.clr.version": runtime,
        "sys.runtime.version": runtime,
        "sys.machine.name": _safe(host.machine_name, "machine_name"),
        "sys.username": _safe(host.username, "username"),
        # Reserved for embedding raw XML
        "summary.xml": "",
        "open.description": "yes" if open_description else "no",
    }


def i18n_parameters(language_code: str) -> Dict[str, str]:
    return {"lang": language_code}
