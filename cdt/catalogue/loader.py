"""Catalogue loading and validation.

Catalogue files are TOML. Each tool is one ``[[tool]]`` table:

    [[tool]]
    name = "ripgrep"
    category = "Performance Tools"
    detect = { command = "rg" }

    [tool.install]
    apt = "sudo apt-get install -y ripgrep"
    pacman = "sudo pacman -S --noconfirm ripgrep"

``detect`` is a table with exactly one of ``command``, ``path``, ``snap`` or
``flatpak``, an array of such tables (any may match), or a bare string
meaning ``{ command = "<string>" }``. Install keys are backend ids; their
order is the preference order.

An optional ``[path]`` table lists directories to export on PATH after
installing (``entries``) and profile scripts to source (``profiles``).

Validation is per entry: a malformed entry is reported and excluded, the
rest of the catalogue still loads.
"""

from __future__ import annotations

import tomllib
from collections import Counter
from collections.abc import Mapping
from pathlib import Path

from cdt.core.result import Err, Ok, Result
from cdt.core.structured import StrDict, as_obj_list, as_str_dict, get_str, get_str_list, get_table
from cdt.core.versions import parse_version

from .model import (
    BACKENDS,
    Catalogue,
    CatalogueError,
    CommandCheck,
    DetectCheck,
    FlatpakCheck,
    InstallAction,
    PathCheck,
    SnapCheck,
    ToolEntry,
)

__all__ = ["default_catalogue_path", "load_catalogue", "parse_catalogue"]

DEFAULT_CATEGORY = "misc"

_DETECT_KINDS = ("command", "path", "snap", "flatpak")


def default_catalogue_path() -> Path:
    """The catalogue shipped with the package (cdt/data/catalogue.toml)."""
    return Path(__file__).parent.parent / "data" / "catalogue.toml"


def load_catalogue(path: Path) -> Result[Catalogue, CatalogueError]:
    """Read and parse a catalogue file.

    Only an unreadable file or invalid TOML is an error here; malformed
    entries end up in ``Catalogue.errors``.
    """
    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(CatalogueError(f"Catalogue not found: {path}", path=path))
    except PermissionError:
        return Err(CatalogueError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(CatalogueError(f"Invalid TOML syntax: {e}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(CatalogueError(f"Error reading catalogue: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(CatalogueError("Catalogue root must be a TOML table", path=path))
    return Ok(parse_catalogue(data, source=path))


def parse_catalogue(data: Mapping[str, object], *, source: Path | None = None) -> Catalogue:
    """Build a Catalogue from parsed TOML, excluding malformed entries."""
    errors: list[CatalogueError] = []
    parsed: list[ToolEntry] = []

    raw_tools = data.get("tool")
    tools = as_obj_list(raw_tools) if raw_tools is not None else []
    if tools is None:
        errors.append(CatalogueError("'tool' must be an array of tables", path=source))
        tools = []

    for index, raw in enumerate(tools):
        result = _parse_entry(raw, index)
        match result:
            case Ok(entry):
                parsed.append(entry)
            case Err(error):
                errors.append(error)

    # Both sides of a duplicate are rejected: neither can be trusted to be
    # the one the author meant
    counts = Counter(entry.name for entry in parsed)
    entries: list[ToolEntry] = []
    for entry in parsed:
        if counts[entry.name] > 1:
            errors.append(
                CatalogueError(
                    f"duplicate name ({counts[entry.name]} entries)",
                    name=entry.name,
                    index=entry.index,
                )
            )
            continue
        entries.append(entry)

    path_table: StrDict = get_table(data, "path") or {}
    return Catalogue(
        entries=tuple(entries),
        errors=tuple(errors),
        path_entries=tuple(get_str_list(path_table, "entries") or ()),
        profiles=tuple(get_str_list(path_table, "profiles") or ()),
        source=source,
    )


def _parse_entry(raw: object, index: int) -> Result[ToolEntry, CatalogueError]:
    table = as_str_dict(raw)
    if table is None:
        return Err(CatalogueError("entry must be a table", index=index))

    name = get_str(table, "name")
    if name is None:
        return Err(CatalogueError("missing 'name'", index=index))

    def fail(message: str) -> Err[CatalogueError]:
        return Err(CatalogueError(message, name=name, index=index))

    category = get_str(table, "category") or DEFAULT_CATEGORY

    detect_result = _parse_detect(table.get("detect"))
    if isinstance(detect_result, Err):
        return fail(detect_result.error)

    install = get_table(table, "install")
    if not install:
        return fail("no installers ('install' table is missing or empty)")

    installers: list[InstallAction] = []
    for backend, command in install.items():
        if backend not in BACKENDS:
            return fail(f"unknown backend '{backend}'")
        if not isinstance(command, str) or not command.strip():
            return fail(f"install.{backend} must be a non-empty string")
        action = InstallAction(backend=backend, command=command.strip())
        try:
            argv = action.argv
        except ValueError as e:
            return fail(f"install.{backend}: {e}")
        if not argv:
            return fail(f"install.{backend} is empty")
        installers.append(action)

    return Ok(
        ToolEntry(
            name=name,
            category=category,
            detect=detect_result.value,
            installers=tuple(installers),
            index=index,
        )
    )


def _parse_detect(raw: object) -> Result[tuple[DetectCheck, ...], str]:
    if raw is None:
        return Err("missing 'detect'")

    if isinstance(raw, str):
        if not raw.strip():
            return Err("'detect' must not be empty")
        return Ok((CommandCheck(command=raw.strip()),))

    items = as_obj_list(raw)
    if items is None:
        items = [raw]
    if not items:
        return Err("'detect' must not be empty")

    checks: list[DetectCheck] = []
    for item in items:
        result = _parse_check(item)
        if isinstance(result, Err):
            return result
        checks.append(result.value)
    return Ok(tuple(checks))


def _parse_check(raw: object) -> Result[DetectCheck, str]:
    table = as_str_dict(raw)
    if table is None:
        return Err("detect checks must be tables")

    kinds = [kind for kind in _DETECT_KINDS if kind in table]
    if len(kinds) != 1:
        return Err(f"a detect check needs exactly one of {', '.join(_DETECT_KINDS)}")

    kind = kinds[0]
    value = get_str(table, kind)
    if value is None:
        return Err(f"detect.{kind} must be a non-empty string")

    match kind:
        case "command":
            return _parse_command_check(table, value)
        case "path":
            return Ok(PathCheck(path=value))
        case "snap":
            return Ok(SnapCheck(package=value))
        case _:
            return Ok(FlatpakCheck(app_id=value))


def _parse_command_check(table: StrDict, command: str) -> Result[DetectCheck, str]:
    # Unknown keys are most likely typos of the known ones
    unknown = set(table) - {"command", "version_args", "min_version"}
    if unknown:
        return Err(f"unknown detect keys: {', '.join(sorted(unknown))}")

    version_args: tuple[str, ...] = ("--version",)
    if "version_args" in table:
        args = get_str_list(table, "version_args")
        if args is None:
            return Err("detect.version_args must be a list of strings")
        version_args = tuple(args)

    min_version = get_str(table, "min_version")
    if min_version is not None:
        if parse_version(min_version) is None:
            return Err(f"detect.min_version '{min_version}' is not a version")
        if not version_args:
            return Err("detect.min_version needs version_args to read a version")

    return Ok(CommandCheck(command=command, version_args=version_args, min_version=min_version))
