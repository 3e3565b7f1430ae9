"""Diagnostic logging setup.

User-facing output goes through `ConsoleProtocol`. Module loggers
(``logging.getLogger(__name__)``) carry debug traces of probes, spawned
processes and lane scheduling, shown on stderr with ``--verbose``.
"""

from __future__ import annotations

import logging

__all__ = ["configure_logging"]


def configure_logging(verbose: bool = False) -> None:
    """Route the ``cdt`` logger tree to a Rich handler on stderr."""
    from rich.console import Console
    from rich.logging import RichHandler

    root = logging.getLogger("cdt")
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
