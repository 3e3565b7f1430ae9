from __future__ import annotations

import os
from pathlib import Path

import typer

from cdt import __version__
from cdt.cli.commands.backends_cmd import backends
from cdt.cli.commands.check import check
from cdt.cli.commands.install import install
from cdt.cli.commands.list_cmd import list_tools
from cdt.cli.context import CATALOGUE_ENV, CONFIG_ENV
from cdt.core.errors import ErrorCode
from cdt.output.log import configure_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Install and check the development tools catalogue.",
)


# Commands
app.command()(install)
app.command()(check)
app.command("list")(list_tools)
app.command()(backends)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: ~/.config/cdt/config.toml).",
    ),
    catalogue: Path | None = typer.Option(
        None,
        "--catalogue",
        help="Catalogue file (default: the bundled catalogue).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs on stderr."),
) -> None:
    configure_logging(verbose)

    for option, path, env in (
        ("--config", config, CONFIG_ENV),
        ("--catalogue", catalogue, CATALOGUE_ENV),
    ):
        if path is None:
            continue
        resolved = path.expanduser()
        if not resolved.is_file():
            typer.echo(f"error: {option} '{resolved}' is not a file", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[env] = str(resolved.resolve())


def main() -> None:
    app()
