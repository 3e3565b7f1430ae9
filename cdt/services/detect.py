# SPDX-License-Identifier: MIT
"""Tool detection.

Evaluates a catalogue entry's detect checks against a `HostProbe`. Checks are
alternatives: the first one that passes decides. A check that crashes (the
probe raised) does not stop the others; only when nothing passed and at
least one check crashed is a `DetectionError` raised.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

from cdt.catalogue.model import CommandCheck, DetectCheck, FlatpakCheck, PathCheck, SnapCheck, ToolEntry
from cdt.core.versions import first_line, format_version, parse_version, version_at_least

from .probe import HostProbe

__all__ = ["Detection", "DetectionError", "detect_tool", "run_check"]

logger = logging.getLogger(__name__)


class DetectionError(Exception):
    """A detect check broke instead of answering yes or no."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name}: {message}")
        self.name = name
        self.message = message


@dataclass(frozen=True, slots=True)
class Detection:
    """Outcome of detecting one tool.

    Attributes:
        present: Installed at an acceptable version.
        version: First line of the version output, when known.
        detail: Why the tool counts as absent (or which check matched).
    """

    present: bool
    version: str | None = None
    detail: str | None = None

    @classmethod
    def found(cls, version: str | None = None, detail: str | None = None) -> Detection:
        return cls(present=True, version=version, detail=detail)

    @classmethod
    def absent(cls, detail: str, version: str | None = None) -> Detection:
        return cls(present=False, version=version, detail=detail)


def detect_tool(entry: ToolEntry, probe: HostProbe) -> Detection:
    """Detect an entry.

    Raises:
        DetectionError: No check passed and at least one crashed.
    """
    misses: list[Detection] = []
    crashes: list[str] = []

    for check in entry.detect:
        try:
            result = run_check(check, probe)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("%s: check %s crashed: %s", entry.name, check.describe(), e)
            crashes.append(f"{check.describe()}: {e}")
            continue
        if result.present:
            return result
        misses.append(result)

    if crashes:
        raise DetectionError(entry.name, "; ".join(crashes))

    # Prefer the most informative miss: an outdated version beats "not found"
    for miss in misses:
        if miss.version is not None:
            return miss
    return misses[0] if misses else Detection.absent("no detect checks")


def run_check(check: DetectCheck, probe: HostProbe) -> Detection:
    """Evaluate a single check. Probe exceptions propagate."""
    match check:
        case CommandCheck():
            return _check_command(check, probe)
        case PathCheck(path=path):
            if probe.path_exists(path):
                return Detection.found(detail=path)
            return Detection.absent(f"{path} not found")
        case SnapCheck(package=package):
            return _check_snap(package, probe)
        case FlatpakCheck(app_id=app_id):
            return _check_flatpak(app_id, probe)


def _check_command(check: CommandCheck, probe: HostProbe) -> Detection:
    path = probe.which(check.command)
    if not path:
        return Detection.absent(f"{check.command} not found on PATH")

    if not check.version_args:
        return Detection.found(detail=path)

    proc = probe.run([path, *check.version_args])
    # Some tools (java -version) report on stderr
    output = (proc.stdout or "") + "\n" + (proc.stderr or "")
    version_line = first_line(output) or None

    if check.min_version is None:
        if proc.returncode != 0:
            return Detection.found(detail=path)
        return Detection.found(version=version_line, detail=path)

    minimum = parse_version(check.min_version)
    found = parse_version(output)
    if minimum is None or found is None:
        return Detection.absent(
            f"cannot read {check.command} version (need >= {check.min_version})",
            version=version_line,
        )
    if not version_at_least(found, minimum):
        return Detection.absent(
            f"{check.command} {format_version(found)} is older than {check.min_version}",
            version=version_line,
        )
    return Detection.found(version=version_line, detail=path)


def _check_snap(package: str, probe: HostProbe) -> Detection:
    if not probe.which("snap"):
        return Detection.absent(f"snap:{package} (snap not available)")
    proc = probe.run(["snap", "list", package])
    if proc.returncode != 0:
        return Detection.absent(f"snap:{package} not installed")
    # "Name  Version  Rev ..." header, then one row per package
    lines = [line.split() for line in proc.stdout.splitlines() if line.strip()]
    for row in lines[1:]:
        if len(row) >= 2 and row[0] == package:
            return Detection.found(version=f"{package} {row[1]} (snap)", detail=f"snap:{package}")
    return Detection.found(detail=f"snap:{package}")


def _check_flatpak(app_id: str, probe: HostProbe) -> Detection:
    if not probe.which("flatpak"):
        return Detection.absent(f"flatpak:{app_id} (flatpak not available)")
    proc = probe.run(["flatpak", "list", "--app", "--columns=application,version"])
    if proc.returncode != 0:
        return Detection.absent(f"flatpak:{app_id} (flatpak list failed)")
    for line in proc.stdout.splitlines():
        columns = line.split()
        if columns and columns[0] == app_id:
            version = columns[1] if len(columns) > 1 else None
            label = f"{app_id} {version} (flatpak)" if version else None
            return Detection.found(version=label, detail=f"flatpak:{app_id}")
    return Detection.absent(f"flatpak:{app_id} not installed")
