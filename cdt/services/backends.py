# SPDX-License-Identifier: MIT
"""Backend detection.

A backend is available when all of its launcher binaries are on PATH.
Detection is a pure function of host state at call time and runs once per
command invocation (hosts gain package managers between runs).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from cdt.catalogue.model import BACKENDS, Backend, ToolEntry

from .probe import HostProbe

__all__ = ["detect_backends", "select_backend"]

logger = logging.getLogger(__name__)


def detect_backends(
    probe: HostProbe,
    registry: Mapping[str, Backend] = BACKENDS,
    *,
    disabled: Iterable[str] = (),
) -> frozenset[str]:
    """Return the ids of backends usable on this host.

    Args:
        probe: Host access.
        registry: Known backends.
        disabled: Backend ids to treat as unavailable regardless of the host.
    """
    off = set(disabled)
    available: set[str] = set()
    for backend in registry.values():
        if backend.id in off:
            continue
        missing = [launcher for launcher in backend.launchers if not probe.which(launcher)]
        if missing:
            logger.debug("backend %s unavailable (missing %s)", backend.id, ", ".join(missing))
            continue
        available.add(backend.id)
    return frozenset(available)


def select_backend(entry: ToolEntry, available: Iterable[str]) -> str | None:
    """First backend in the entry's preference order that is available."""
    usable = set(available)
    for backend in entry.backends:
        if backend in usable:
            return backend
    return None
