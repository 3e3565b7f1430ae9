from __future__ import annotations

import typer

from cdt.cli.commands._helpers import (
    Progress,
    emit_json,
    exit_with_code,
    finish,
    select_entries,
)
from cdt.cli.context import CLIContext, build_context
from cdt.core.errors import ErrorCode
from cdt.core.result import Err
from cdt.output.console import Style
from cdt.platform.detection import is_root
from cdt.platform.paths import expand
from cdt.services.backends import detect_backends
from cdt.services.reconcile import Outcome, Reconciler
from cdt.services.report import Report
from cdt.services.shell_rc import update_shell_rc


def install(
    category: list[str] | None = typer.Option(
        None, "--category", "-c", help="Only tools in this category (repeatable)."
    ),
    name: list[str] | None = typer.Option(
        None, "--name", "-n", help="Only tools whose name contains this (repeatable)."
    ),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Concurrent install lanes."),
    timeout: float | None = typer.Option(
        None, "--timeout", min=0, help="Seconds per install action (0 = no limit)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be installed."),
    strict: bool = typer.Option(False, "--strict", help="Fail when a tool has no usable backend."),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON report."),
    no_path: bool = typer.Option(False, "--no-path", help="Do not touch the shell rc file."),
    allow_root: bool = typer.Option(False, "--allow-root", help="Run even as root."),
) -> None:
    """Install every missing tool from the catalogue."""
    ctx = build_context()
    console = ctx.console

    if is_root() and not allow_root and not dry_run:
        console.error("refusing to run as root (installers call sudo themselves)")
        console.print("hint: run as your user, or pass --allow-root", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    entries = select_entries(ctx, category, name)
    run = ctx.config.run
    available = detect_backends(ctx.probe, disabled=ctx.config.backends.disabled)

    if timeout is None:
        action_timeout = run.timeout
    else:
        action_timeout = timeout or None

    reconciler = Reconciler(
        probe=ctx.probe,
        available=available,
        jobs=jobs or run.jobs,
        timeout=action_timeout,
        grace_period=run.grace_period,
        on_result=None if json_output else Progress(console, len(entries)),
    )

    if not json_output:
        console.print(f"platform: {ctx.platform}", Style.DIM)
        console.print(f"backends: {', '.join(sorted(available)) or 'none'}", Style.DIM)
        mode = "dry run" if dry_run else "installing"
        console.print(f"{mode}: {len(entries)} tool(s)", Style.DIM)

    results = reconciler.reconcile(entries, dry_run=dry_run)
    report = Report.from_results(results, ctx.catalogue.errors)
    strict = strict or run.strict

    if json_output:
        emit_json(report.to_dict(strict))
    else:
        report.render(console)

    interrupted = bool(report.counts[Outcome.CANCELLED])
    if not (dry_run or no_path or interrupted) and ctx.config.shell.update_path:
        _update_path(ctx, quiet=json_output)

    finish(report, strict=strict)


def _update_path(ctx: CLIContext, *, quiet: bool) -> None:
    catalogue = ctx.catalogue
    if not catalogue.path_entries and not catalogue.profiles:
        return

    rc_file = expand(ctx.config.shell.rc_file)
    result = update_shell_rc(rc_file, catalogue.path_entries, catalogue.profiles)
    if isinstance(result, Err):
        if quiet:
            # stdout carries the JSON document
            typer.echo(f"warning: {result.error.message}", err=True)
        else:
            ctx.console.warning(result.error.message)
        return

    update = result.value
    if update.changed and not quiet:
        ctx.console.success(f"added {len(update.added)} line(s) to {rc_file}")
        ctx.console.print(f"run 'source {ctx.config.shell.rc_file}' or restart your shell", Style.DIM)
