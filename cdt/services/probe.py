# SPDX-License-Identifier: MIT
"""Host access for detection.

Whether a tool is installed lives in the host's filesystem and package
databases, not in this process. Everything the reconciler learns about the
host goes through `HostProbe`, so tests can substitute a fake host.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Protocol

from cdt.platform.paths import expand

__all__ = ["HostProbe", "SystemHostProbe", "DEFAULT_PROBE_TIMEOUT"]

logger = logging.getLogger(__name__)

# Version probes should answer instantly; some GUI launchers never do
DEFAULT_PROBE_TIMEOUT = 15.0


class HostProbe(Protocol):
    """Read-only view of the host.

    Implementations may raise OSError or subprocess.SubprocessError when a
    probe itself breaks; callers translate that into DetectionError.
    """

    def which(self, name: str) -> str | None:
        """Return the full path of an executable on PATH, or None."""
        ...

    def path_exists(self, path: str) -> bool:
        """Return True if the (user-expanded) path exists."""
        ...

    def run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        """Run a short, side-effect free command and capture its output."""
        ...


class SystemHostProbe:
    """HostProbe backed by the real machine."""

    def __init__(self, *, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        self._timeout = timeout

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def path_exists(self, path: str) -> bool:
        return expand(path).exists()

    def run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        logger.debug("probe: %s", " ".join(args))
        return subprocess.run(
            args,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            stdin=subprocess.DEVNULL,
            timeout=self._timeout,
        )
