from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from cdt.catalogue.loader import default_catalogue_path, load_catalogue
from cdt.catalogue.model import Catalogue
from cdt.core.config import Config, load_config_or_default
from cdt.core.errors import ErrorCode
from cdt.core.result import Err
from cdt.output.console import ConsoleProtocol, RichConsole
from cdt.platform.detection import PlatformInfo, detect
from cdt.platform.paths import expand, user_config_dir
from cdt.services.probe import HostProbe, SystemHostProbe

CONFIG_ENV = "CDT_CONFIG"
CATALOGUE_ENV = "CDT_CATALOGUE"


@dataclass(frozen=True, slots=True)
class CLIContext:
    platform: PlatformInfo
    config: Config
    catalogue: Catalogue
    probe: HostProbe
    console: ConsoleProtocol


def config_path() -> Path:
    """--config / $CDT_CONFIG, else <user config dir>/config.toml."""
    env = os.environ.get(CONFIG_ENV)
    if env:
        return expand(env)
    return user_config_dir() / "config.toml"


def catalogue_path(config: Config) -> Path:
    """--catalogue / $CDT_CATALOGUE, else the config file's, else the bundled one."""
    env = os.environ.get(CATALOGUE_ENV)
    if env:
        return expand(env)
    if config.catalogue:
        return expand(config.catalogue)
    return default_catalogue_path()


def build_context() -> CLIContext:
    config_result = load_config_or_default(config_path())
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
    config = config_result.value

    catalogue_result = load_catalogue(catalogue_path(config))
    if isinstance(catalogue_result, Err):
        typer.echo(f"error: {catalogue_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    return CLIContext(
        platform=detect(),
        config=config,
        catalogue=catalogue_result.value,
        probe=SystemHostProbe(),
        console=RichConsole(),
    )
