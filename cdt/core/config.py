"""Typed configuration loading.

The config file is optional TOML:

    catalogue = "~/dotfiles/tools.toml"

    [run]
    jobs = 4            # concurrent install lanes
    timeout = 900       # seconds per install action
    grace_period = 10   # seconds in-flight actions get after Ctrl-C
    strict = false      # treat "no backend" skips as failures

    [backends]
    disabled = ["snap"]

    [shell]
    rc_file = "~/.bashrc"
    update_path = true
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_int, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "RunConfig",
    "BackendsConfig",
    "ShellConfig",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    "DEFAULT_JOBS",
    "DEFAULT_TIMEOUT",
    "DEFAULT_GRACE_PERIOD",
]

DEFAULT_JOBS = 4
DEFAULT_TIMEOUT = 900.0
DEFAULT_GRACE_PERIOD = 10.0
DEFAULT_RC_FILE = "~/.bashrc"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Reconciliation run settings."""

    jobs: int = DEFAULT_JOBS
    timeout: float | None = DEFAULT_TIMEOUT
    grace_period: float = DEFAULT_GRACE_PERIOD
    strict: bool = False


@dataclass(frozen=True, slots=True)
class BackendsConfig:
    """Backends the user never wants used, even when present on the host."""

    disabled: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ShellConfig:
    """Where PATH exports are written after installing."""

    rc_file: str = DEFAULT_RC_FILE
    update_path: bool = True


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    run: RunConfig = field(default_factory=RunConfig)
    backends: BackendsConfig = field(default_factory=BackendsConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)
    catalogue: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from parsed TOML.

        Raises:
            ValueError: If a value is present but out of range.
        """
        run: StrDict = get_table(data, "run") or {}
        backends: StrDict = get_table(data, "backends") or {}
        shell: StrDict = get_table(data, "shell") or {}

        jobs = get_int(run, "jobs")
        if jobs is not None and jobs < 1:
            raise ValueError(f"run.jobs must be >= 1 (got {jobs})")

        # timeout = 0 disables the per-action timeout
        timeout = get_float(run, "timeout")
        if timeout is not None and timeout < 0:
            raise ValueError(f"run.timeout must be >= 0 (got {timeout})")

        grace = get_float(run, "grace_period")
        if grace is not None and grace < 0:
            raise ValueError(f"run.grace_period must be >= 0 (got {grace})")

        strict = get_bool(run, "strict")
        update_path = get_bool(shell, "update_path")

        return cls(
            run=RunConfig(
                jobs=jobs or DEFAULT_JOBS,
                timeout=DEFAULT_TIMEOUT if timeout is None else (timeout or None),
                grace_period=DEFAULT_GRACE_PERIOD if grace is None else grace,
                strict=bool(strict),
            ),
            backends=BackendsConfig(
                disabled=tuple(get_str_list(backends, "disabled") or ()),
            ),
            shell=ShellConfig(
                rc_file=get_str(shell, "rc_file") or DEFAULT_RC_FILE,
                update_path=True if update_path is None else update_path,
            ),
            catalogue=get_str(data, "catalogue"),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the default Config.

    A file that exists but is broken is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
