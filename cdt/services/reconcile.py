# SPDX-License-Identifier: MIT
"""Reconcile catalogue entries against the host.

For each entry, independently:

1. detect; present at an acceptable version -> ``already-present`` (no-op)
2. pick the first installer whose backend is available
3. none -> ``skipped-no-backend``
4. run it; exit 0 -> detect again; present -> ``installed``, otherwise
   ``failed`` (post-install verification failed)
5. non-zero exit, spawn error or timeout -> ``failed``

Nothing is retried. One entry's failure never stops the others.

Concurrency: entries are grouped into lanes. Every entry whose selected
backend is a system package manager (apt, dnf, pacman...) shares that
backend's lane, which runs sequentially because the manager holds a
host-wide lock. Every other entry is a lane of its own. Lanes run on a
bounded thread pool, system lanes submitted first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cdt.catalogue.model import SYSTEM_BACKENDS, InstallAction, ToolEntry
from cdt.core.config import DEFAULT_GRACE_PERIOD, DEFAULT_JOBS, DEFAULT_TIMEOUT
from cdt.core.result import Err, Ok, Result
from cdt.platform.process import ProcessError, run_cancellable

from .backends import select_backend
from .detect import Detection, DetectionError, detect_tool
from .probe import HostProbe

__all__ = [
    "FailureKind",
    "InstallRunner",
    "Outcome",
    "PlannedEntry",
    "ProcessInstallRunner",
    "ReconcileResult",
    "Reconciler",
]

logger = logging.getLogger(__name__)

# Lines of installer output kept on failure
_OUTPUT_TAIL = 20


class Outcome(Enum):
    """Per-entry outcome of a run."""

    ALREADY_PRESENT = "already-present"
    INSTALLED = "installed"
    FAILED = "failed"
    SKIPPED_NO_BACKEND = "skipped-no-backend"
    MISSING = "missing"  # check / dry-run: absent, nothing attempted
    CANCELLED = "cancelled"  # run interrupted before or during this entry

    def __str__(self) -> str:
        return self.value

    @property
    def is_satisfied(self) -> bool:
        return self in (Outcome.ALREADY_PRESENT, Outcome.INSTALLED)


class FailureKind(Enum):
    """Why a ``failed`` entry failed."""

    INSTALL_FAILED = "install-failed"
    TIMED_OUT = "timed-out"
    VERIFICATION_FAILED = "post-install-verification-failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome for one entry.

    Attributes:
        entry: The catalogue entry.
        outcome: What happened.
        backend: Backend selected for installation (if any).
        version: Detected version line (if known).
        detail: Human-readable explanation.
        failure: Failure kind when outcome is FAILED.
        output: Tail of the installer output on failure.
    """

    entry: ToolEntry
    outcome: Outcome
    backend: str | None = None
    version: str | None = None
    detail: str | None = None
    failure: FailureKind | None = None
    output: str | None = None

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def category(self) -> str:
        return self.entry.category

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.entry.name,
            "category": self.entry.category,
            "outcome": str(self.outcome),
            "backend": self.backend,
            "version": self.version,
            "detail": self.detail,
            "failure": None if self.failure is None else str(self.failure),
            "output": self.output,
        }


@dataclass(frozen=True, slots=True)
class PlannedEntry:
    """An entry with its selected installer (None when no backend fits)."""

    entry: ToolEntry
    action: InstallAction | None

    @property
    def backend(self) -> str | None:
        return None if self.action is None else self.action.backend

    @property
    def lane(self) -> str | None:
        """Shared lane key, or None if the entry can run on its own."""
        backend = self.backend
        if backend is not None and backend in SYSTEM_BACKENDS:
            return backend
        return None


class InstallRunner(Protocol):
    """Executes install actions. Substituted by a fake in tests."""

    def run(
        self,
        action: InstallAction,
        *,
        timeout: float | None,
        cancel: threading.Event,
        grace_period: float,
    ) -> Result[str, ProcessError]: ...


class ProcessInstallRunner:
    """InstallRunner that spawns the action's command."""

    def run(
        self,
        action: InstallAction,
        *,
        timeout: float | None,
        cancel: threading.Event,
        grace_period: float,
    ) -> Result[str, ProcessError]:
        return run_cancellable(
            action.argv,
            timeout=timeout,
            cancel=cancel,
            grace_period=grace_period,
        )


class Reconciler:
    """Brings the host toward the catalogue's desired state.

    Args:
        probe: Host access for detection.
        available: Backend ids available on this host.
        runner: Executes install actions.
        jobs: Maximum concurrently running lanes.
        timeout: Seconds per install action (None for no limit).
        grace_period: Seconds in-flight actions may run after cancel().
        on_result: Called (from worker threads) as each entry finishes.
    """

    def __init__(
        self,
        *,
        probe: HostProbe,
        available: Iterable[str],
        runner: InstallRunner | None = None,
        jobs: int = DEFAULT_JOBS,
        timeout: float | None = DEFAULT_TIMEOUT,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        on_result: Callable[[ReconcileResult], None] | None = None,
    ) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be >= 1 (got {jobs})")
        self._probe = probe
        self._available = frozenset(available)
        self._runner: InstallRunner = runner or ProcessInstallRunner()
        self._jobs = jobs
        self._timeout = timeout
        self._grace_period = grace_period
        self._on_result = on_result
        self._cancel = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Stop launching install actions. In-flight ones get the grace period."""
        self._cancel.set()

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def plan(self, entries: Sequence[ToolEntry]) -> list[PlannedEntry]:
        """Select an installer for each entry without touching the host."""
        planned: list[PlannedEntry] = []
        for entry in entries:
            backend = select_backend(entry, self._available)
            action = None if backend is None else entry.installer_for(backend)
            planned.append(PlannedEntry(entry=entry, action=action))
        return planned

    def check(self, entries: Sequence[ToolEntry]) -> list[ReconcileResult]:
        """Detect every entry; never installs anything."""
        lanes = [[p] for p in self.plan(entries)]
        return self._execute(entries, lanes, self._check_one)

    def reconcile(self, entries: Sequence[ToolEntry], *, dry_run: bool = False) -> list[ReconcileResult]:
        """Detect and install missing entries.

        With ``dry_run`` nothing is installed; absent entries that could be
        installed are reported as ``missing`` with the command that would run.

        Returns:
            Results in the order of ``entries``. If the run is interrupted,
            entries that never started are reported as ``cancelled``.
        """

        def work(planned: PlannedEntry) -> ReconcileResult:
            return self._reconcile_one(planned, dry_run=dry_run)

        return self._execute(entries, self._lanes(self.plan(entries)), work)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    @staticmethod
    def _lanes(planned: Sequence[PlannedEntry]) -> list[list[PlannedEntry]]:
        shared: dict[str, list[PlannedEntry]] = {}
        solo: list[list[PlannedEntry]] = []
        for item in planned:
            key = item.lane
            if key is None:
                solo.append([item])
            else:
                shared.setdefault(key, []).append(item)
        # System packages first: language-level managers may depend on them
        return [*shared.values(), *solo]

    def _execute(
        self,
        entries: Sequence[ToolEntry],
        lanes: list[list[PlannedEntry]],
        work: Callable[[PlannedEntry], ReconcileResult],
    ) -> list[ReconcileResult]:
        collected: dict[str, ReconcileResult] = {}
        lock = threading.Lock()

        def run_lane(lane: list[PlannedEntry]) -> None:
            for planned in lane:
                if self._cancel.is_set():
                    result = ReconcileResult(
                        planned.entry, Outcome.CANCELLED, backend=planned.backend, detail="not started"
                    )
                else:
                    result = work(planned)
                with lock:
                    collected[planned.entry.name] = result
                if self._on_result is not None:
                    self._on_result(result)

        logger.debug("running %d lane(s) with %d job(s)", len(lanes), self._jobs)
        executor = ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="cdt-lane")
        futures: list[Future[None]] = [executor.submit(run_lane, lane) for lane in lanes]
        try:
            for future in as_completed(futures):
                future.result()
        except KeyboardInterrupt:
            logger.warning("interrupted; waiting up to %ss for running installs", self._grace_period)
            self.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
        finally:
            executor.shutdown(wait=True)

        results: list[ReconcileResult] = []
        for entry in entries:
            result = collected.get(entry.name)
            if result is None:
                result = ReconcileResult(entry, Outcome.CANCELLED, detail="not started")
            results.append(result)
        return results

    # -------------------------------------------------------------------------
    # Per-entry work
    # -------------------------------------------------------------------------

    def _detect(self, entry: ToolEntry) -> Detection:
        try:
            return detect_tool(entry, self._probe)
        except DetectionError as e:
            logger.debug("detection error treated as absent: %s", e)
            return Detection.absent(f"detection error: {e.message}")

    def _check_one(self, planned: PlannedEntry) -> ReconcileResult:
        entry = planned.entry
        detection = self._detect(entry)
        if detection.present:
            return ReconcileResult(entry, Outcome.ALREADY_PRESENT, version=detection.version)
        return ReconcileResult(
            entry,
            Outcome.MISSING,
            backend=planned.backend,
            version=detection.version,
            detail=detection.detail,
        )

    def _reconcile_one(self, planned: PlannedEntry, *, dry_run: bool) -> ReconcileResult:
        entry = planned.entry
        detection = self._detect(entry)
        if detection.present:
            return ReconcileResult(entry, Outcome.ALREADY_PRESENT, version=detection.version)

        action = planned.action
        if action is None:
            return ReconcileResult(
                entry,
                Outcome.SKIPPED_NO_BACKEND,
                detail=f"no available backend (supports {', '.join(entry.backends)})",
            )

        if dry_run:
            return ReconcileResult(
                entry,
                Outcome.MISSING,
                backend=action.backend,
                version=detection.version,
                detail=f"would run: {action.display}",
            )

        # Detection may have outlived a cancel
        if self._cancel.is_set():
            return ReconcileResult(entry, Outcome.CANCELLED, backend=action.backend, detail="not started")

        logger.debug("%s: installing with %s: %s", entry.name, action.backend, action.display)
        result = self._runner.run(
            action,
            timeout=self._timeout,
            cancel=self._cancel,
            grace_period=self._grace_period,
        )

        match result:
            case Err(error):
                return self._failed_install(entry, action, error)
            case Ok(_):
                pass

        verification = self._detect(entry)
        if verification.present:
            return ReconcileResult(
                entry, Outcome.INSTALLED, backend=action.backend, version=verification.version
            )
        detail = "post-install verification failed"
        if verification.detail:
            detail += f" ({verification.detail})"
        return ReconcileResult(
            entry,
            Outcome.FAILED,
            backend=action.backend,
            version=verification.version,
            detail=detail,
            failure=FailureKind.VERIFICATION_FAILED,
        )

    def _failed_install(self, entry: ToolEntry, action: InstallAction, error: ProcessError) -> ReconcileResult:
        output = _tail(error.stdout, error.stderr)
        if error.cancelled:
            return ReconcileResult(
                entry, Outcome.CANCELLED, backend=action.backend, detail="interrupted", output=output
            )
        if error.timed_out:
            return ReconcileResult(
                entry,
                Outcome.FAILED,
                backend=action.backend,
                detail=f"timed out after {self._timeout}s",
                failure=FailureKind.TIMED_OUT,
                output=output,
            )
        detail = str(error) if error.returncode != -1 else f"could not run: {error.stderr}"
        return ReconcileResult(
            entry,
            Outcome.FAILED,
            backend=action.backend,
            detail=detail,
            failure=FailureKind.INSTALL_FAILED,
            output=output,
        )


def _tail(*streams: str) -> str | None:
    lines: list[str] = []
    for stream in streams:
        lines.extend(line for line in stream.splitlines() if line.strip())
    if not lines:
        return None
    return "\n".join(lines[-_OUTPUT_TAIL:])
