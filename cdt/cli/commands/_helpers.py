"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING, NoReturn

import typer

from cdt.core.errors import ErrorCode
from cdt.output.console import Style
from cdt.services.report import Report, format_result, outcome_style

if TYPE_CHECKING:
    from cdt.catalogue.model import ToolEntry
    from cdt.cli.context import CLIContext
    from cdt.output.console import ConsoleProtocol
    from cdt.services.reconcile import ReconcileResult


def select_entries(
    ctx: CLIContext,
    categories: list[str] | None,
    names: list[str] | None,
) -> list[ToolEntry]:
    """Apply --category / --name filters. Filters matching nothing are a user error."""
    categories = categories or []
    names = names or []

    known = {c.lower() for c in ctx.catalogue.categories}
    unknown = [c for c in categories if c.strip().lower() not in known]
    if unknown:
        ctx.console.error(f"unknown category: {', '.join(unknown)}")
        ctx.console.print(f"available: {', '.join(ctx.catalogue.categories)}", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    entries = ctx.catalogue.select(categories, names)
    if not entries and (categories or names):
        ctx.console.error("no catalogue entry matches the given filters")
        exit_with_code(int(ErrorCode.USER_ERROR))
    return entries


def print_catalogue_errors(ctx: CLIContext) -> None:
    for error in ctx.catalogue.errors:
        ctx.console.warning(f"catalogue entry skipped: {error}")


def emit_json(document: dict[str, object]) -> None:
    typer.echo(json.dumps(document, indent=2))


def finish(report: Report, *, strict: bool) -> None:
    """Exit with the report's code unless the run succeeded."""
    code = report.exit_code(strict)
    if code != ErrorCode.OK:
        exit_with_code(int(code))


class Progress:
    """Prints ``[i/n] <result>`` lines as entries finish (thread-safe)."""

    def __init__(self, console: ConsoleProtocol, total: int) -> None:
        self._console = console
        self._total = total
        self._done = 0
        self._lock = threading.Lock()

    def __call__(self, result: ReconcileResult) -> None:
        with self._lock:
            self._done += 1
            width = len(str(self._total))
            self._console.print(
                f"[{self._done:>{width}}/{self._total}] {format_result(result)}",
                outcome_style(result.outcome),
            )


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
