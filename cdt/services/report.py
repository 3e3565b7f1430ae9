# SPDX-License-Identifier: MIT
"""Aggregate reconcile results into a summary and one exit code."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from cdt.catalogue.model import CatalogueError
from cdt.core.errors import ErrorCode
from cdt.output.console import ConsoleProtocol, Style

from .reconcile import Outcome, ReconcileResult

__all__ = ["Report", "format_result", "outcome_style"]

_LABELS: dict[Outcome, str] = {
    Outcome.ALREADY_PRESENT: "present",
    Outcome.INSTALLED: "installed",
    Outcome.FAILED: "FAILED",
    Outcome.SKIPPED_NO_BACKEND: "skipped",
    Outcome.MISSING: "missing",
    Outcome.CANCELLED: "cancelled",
}

_STYLES: dict[Outcome, Style] = {
    Outcome.ALREADY_PRESENT: Style.SUCCESS,
    Outcome.INSTALLED: Style.SUCCESS,
    Outcome.FAILED: Style.ERROR,
    Outcome.SKIPPED_NO_BACKEND: Style.WARNING,
    Outcome.MISSING: Style.WARNING,
    Outcome.CANCELLED: Style.DIM,
}


def outcome_style(outcome: Outcome) -> Style:
    return _STYLES[outcome]


def format_result(result: ReconcileResult) -> str:
    """One-line human rendering of a result."""
    line = f"{result.name}: {_LABELS[result.outcome]}"
    if result.backend and result.outcome in (Outcome.INSTALLED, Outcome.FAILED):
        line += f" via {result.backend}"
    if result.version:
        line += f" ({result.version})"
    if result.detail and result.outcome is not Outcome.ALREADY_PRESENT:
        line += f" - {result.detail}"
    return line


@dataclass(frozen=True, slots=True)
class Report:
    """Results of one run, grouped by category in catalogue order.

    Attributes:
        results: Every result, ordered by category (first appearance) then
            catalogue position.
        errors: Catalogue entries that were excluded.
        check: Produced by ``check``: missing tools make the run fail.
    """

    results: tuple[ReconcileResult, ...]
    errors: tuple[CatalogueError, ...] = ()
    check: bool = False

    @classmethod
    def from_results(
        cls,
        results: Iterable[ReconcileResult],
        errors: Iterable[CatalogueError] = (),
        *,
        check: bool = False,
    ) -> Report:
        by_index = sorted(results, key=lambda r: r.entry.index)
        category_rank: dict[str, int] = {}
        for result in by_index:
            category_rank.setdefault(result.category, len(category_rank))
        ordered = sorted(by_index, key=lambda r: (category_rank[r.category], r.entry.index))
        return cls(results=tuple(ordered), errors=tuple(errors), check=check)

    @property
    def counts(self) -> dict[Outcome, int]:
        """Count per outcome (every outcome present, zero included)."""
        counter = Counter(r.outcome for r in self.results)
        return {outcome: counter.get(outcome, 0) for outcome in Outcome}

    @property
    def categories(self) -> dict[str, list[ReconcileResult]]:
        grouped: dict[str, list[ReconcileResult]] = {}
        for result in self.results:
            grouped.setdefault(result.category, []).append(result)
        return grouped

    def by_outcome(self, outcome: Outcome) -> list[ReconcileResult]:
        return [r for r in self.results if r.outcome is outcome]

    def exit_code(self, strict: bool = False) -> ErrorCode:
        """Single process exit code for the run.

        Interruption wins over failures, failures over missing tools.
        Skips count only in strict mode.
        """
        counts = self.counts
        if counts[Outcome.CANCELLED]:
            return ErrorCode.INTERRUPTED
        if counts[Outcome.FAILED]:
            return ErrorCode.INSTALL_ERROR
        if self.check and counts[Outcome.MISSING]:
            return ErrorCode.ENV_ERROR
        if strict and counts[Outcome.SKIPPED_NO_BACKEND]:
            return ErrorCode.ENV_ERROR
        return ErrorCode.OK

    def category_summary(self) -> dict[str, dict[str, int]]:
        summary: dict[str, dict[str, int]] = {}
        for category, results in self.categories.items():
            counter = Counter(str(r.outcome) for r in results)
            summary[category] = dict(sorted(counter.items()))
        return summary

    def to_dict(self, strict: bool = False) -> dict[str, object]:
        return {
            "summary": {
                "total": len(self.results),
                **{str(outcome): n for outcome, n in self.counts.items()},
                "catalogue_errors": len(self.errors),
                "exit_code": int(self.exit_code(strict)),
            },
            "categories": self.category_summary(),
            "results": [r.to_dict() for r in self.results],
            "catalogue_errors": [
                {"name": e.name, "index": e.index, "message": e.message} for e in self.errors
            ],
        }

    def render(self, console: ConsoleProtocol, *, verbose: bool = False) -> None:
        """Print results grouped by category, then the summary line."""
        for error in self.errors:
            console.warning(f"catalogue entry skipped: {error}")

        for category, results in self.categories.items():
            console.header(category)
            for result in results:
                console.print(f"  {format_result(result)}", _STYLES[result.outcome])
                if result.output and (verbose or result.outcome is Outcome.FAILED):
                    for line in result.output.splitlines():
                        console.print(f"      {line}", Style.DIM)

        console.newline()
        console.print(self.summary_line(), Style.BOLD)

    def summary_line(self) -> str:
        counts = self.counts
        parts: list[str] = [f"{len(self.results)} tools"]
        for outcome in Outcome:
            if counts[outcome]:
                parts.append(f"{counts[outcome]} {outcome}")
        return ", ".join(parts)

