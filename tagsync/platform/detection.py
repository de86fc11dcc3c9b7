"""Build host detection.

Matrix entries are pinned to a host OS; the current host decides which
entries a local run can build.
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from enum import Enum
from functools import lru_cache

__all__ = ["Host", "detect_host", "detect_machine"]


class Host(Enum):
    """Build host operating system, valued by its short name."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def runner(self) -> str:
        """Hosted CI runner label for this OS."""
        return {
            Host.LINUX: "ubuntu-latest",
            Host.MACOS: "macos-latest",
            Host.WINDOWS: "windows-latest",
            Host.UNKNOWN: "ubuntu-latest",
        }[self]


@lru_cache(maxsize=1)
def detect_host() -> Host:
    """Detect the current operating system (cached)."""
    # NOTE: avoid platform.system(); on Windows it may query WMI.
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Host.LINUX
    if system.startswith("darwin"):
        return Host.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Host.WINDOWS
    return Host.UNKNOWN


@lru_cache(maxsize=1)
def detect_machine() -> str:
    """CPU architecture as it appears in target triples (``x86_64``, ``aarch64``)."""
    if detect_host() == Host.WINDOWS:
        machine = (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        ).lower()
    else:
        machine = _platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return "x86_64"
    if machine in ("aarch64", "arm64"):
        return "aarch64"
    return machine or "unknown"
