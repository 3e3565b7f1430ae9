from __future__ import annotations

import typer

from cdt.cli.commands._helpers import emit_json, finish, select_entries
from cdt.cli.context import build_context
from cdt.output.console import Style
from cdt.services.backends import detect_backends
from cdt.services.reconcile import Reconciler
from cdt.services.report import Report


def check(
    category: list[str] | None = typer.Option(
        None, "--category", "-c", help="Only tools in this category (repeatable)."
    ),
    name: list[str] | None = typer.Option(
        None, "--name", "-n", help="Only tools whose name contains this (repeatable)."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON report."),
) -> None:
    """Report which tools are installed. Never installs anything."""
    ctx = build_context()
    entries = select_entries(ctx, category, name)
    available = detect_backends(ctx.probe, disabled=ctx.config.backends.disabled)

    reconciler = Reconciler(probe=ctx.probe, available=available, jobs=ctx.config.run.jobs)
    results = reconciler.check(entries)
    report = Report.from_results(results, ctx.catalogue.errors, check=True)

    if json_output:
        emit_json(report.to_dict())
    else:
        ctx.console.print(f"platform: {ctx.platform}", Style.DIM)
        report.render(ctx.console)
        if report.exit_code() != 0:
            ctx.console.print("run 'cdt install' to install missing tools", Style.DIM)

    finish(report, strict=False)
