from __future__ import annotations

from cdt.catalogue.model import BACKENDS
from cdt.cli.context import build_context
from cdt.output.console import Style
from cdt.services.backends import detect_backends


def backends() -> None:
    """Show which install backends are usable on this host."""
    ctx = build_context()
    console = ctx.console
    disabled = set(ctx.config.backends.disabled)
    available = detect_backends(ctx.probe, disabled=disabled)
    native = ctx.platform.distro.native_backend

    console.print(f"platform: {ctx.platform}", Style.DIM)
    console.header("Backends")
    for backend in BACKENDS.values():
        tags: list[str] = []
        if backend.system:
            tags.append("system")
        if backend.id == native:
            tags.append("native")
        suffix = f" ({', '.join(tags)})" if tags else ""

        if backend.id in disabled:
            console.print(f"  {backend.id}: disabled in config{suffix}", Style.DIM)
        elif backend.id in available:
            console.print(f"  {backend.id}: available{suffix}", Style.SUCCESS)
        else:
            missing = [name for name in backend.launchers if not ctx.probe.which(name)]
            console.print(
                f"  {backend.id}: missing {', '.join(missing)}{suffix}",
                Style.WARNING,
            )
