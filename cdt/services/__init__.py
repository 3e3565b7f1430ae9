# SPDX-License-Identifier: MIT
"""Detection, reconciliation and reporting services."""

from .backends import detect_backends, select_backend
from .detect import Detection, DetectionError, detect_tool
from .probe import HostProbe, SystemHostProbe
from .reconcile import (
    FailureKind,
    InstallRunner,
    Outcome,
    PlannedEntry,
    ProcessInstallRunner,
    ReconcileResult,
    Reconciler,
)
from .report import Report, format_result
from .shell_rc import RcUpdate, ShellRcError, update_shell_rc

__all__ = [
    "detect_backends",
    "select_backend",
    "Detection",
    "DetectionError",
    "detect_tool",
    "HostProbe",
    "SystemHostProbe",
    "FailureKind",
    "InstallRunner",
    "Outcome",
    "PlannedEntry",
    "ProcessInstallRunner",
    "ReconcileResult",
    "Reconciler",
    "Report",
    "format_result",
    "RcUpdate",
    "ShellRcError",
    "update_shell_rc",
]
