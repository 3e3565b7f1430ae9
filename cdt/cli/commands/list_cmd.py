from __future__ import annotations

import typer

from cdt.cli.commands._helpers import print_catalogue_errors, select_entries
from cdt.cli.context import build_context
from cdt.output.console import Style
from cdt.services.backends import detect_backends, select_backend


def list_tools(
    category: list[str] | None = typer.Option(
        None, "--category", "-c", help="Only tools in this category (repeatable)."
    ),
) -> None:
    """List catalogue tools by category with their installers.

    The backend that would be used on this host is marked with ``*``.
    """
    ctx = build_context()
    console = ctx.console
    entries = select_entries(ctx, category, None)
    available = detect_backends(ctx.probe, disabled=ctx.config.backends.disabled)

    source = ctx.catalogue.source
    if source is not None:
        console.print(f"catalogue: {source}", Style.DIM)
    print_catalogue_errors(ctx)

    current: str | None = None
    for entry in entries:
        if entry.category != current:
            current = entry.category
            console.header(current)
        selected = select_backend(entry, available)
        backends = [f"{b}*" if b == selected else b for b in entry.backends]
        detect = " | ".join(check.describe() for check in entry.detect)
        style = Style.DEFAULT if selected else Style.DIM
        console.print(f"  {entry.name:<28} {', '.join(backends):<40} [{detect}]", style)

    console.newline()
    console.print(
        f"{len(entries)} tools in {len({e.category for e in entries})} categories",
        Style.BOLD,
    )
