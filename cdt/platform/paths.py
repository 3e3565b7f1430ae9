"""User-level path helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

__all__ = [
    "home",
    "user_config_dir",
    "expand",
    "clear_caches",
]

# Application name used for directory naming
APP_NAME = "cdt"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get the user's home directory.

    HOME wins over the password database so containers and CI can redirect it.
    """
    home_env = os.environ.get("HOME")
    if home_env:
        return Path(home_env)
    return Path.home()


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    """Get the user-level configuration directory.

    Location: $XDG_CONFIG_HOME/cdt or ~/.config/cdt
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return home() / ".config" / APP_NAME


def expand(path: str) -> Path:
    """Expand a leading ~ and $VARS the way a shell would."""
    expanded = os.path.expandvars(path)
    if expanded == "~" or expanded.startswith("~/"):
        expanded = str(home()) + expanded[1:]
    return Path(expanded)


def clear_caches() -> None:
    """Clear cached paths (for tests that change HOME or XDG vars)."""
    home.cache_clear()
    user_config_dir.cache_clear()
