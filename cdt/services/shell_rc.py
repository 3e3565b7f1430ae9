# SPDX-License-Identifier: MIT
"""Shell rc file PATH exports.

Tools installed by curl scripts and language managers land in directories
(``~/.cargo/bin``, ``~/.deno/bin``...) that are not on PATH by default. After
an install run the catalogue's ``[path]`` directories are exported from the
user's rc file, and existing profile scripts (Nix) are sourced from it.

Lines are written verbatim (``$HOME`` stays unexpanded so the rc file keeps
working if the home directory moves) and only when not already present.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from cdt.core.result import Err, Ok, Result
from cdt.platform.files import atomic_write_text
from cdt.platform.paths import expand

__all__ = [
    "RcUpdate",
    "ShellRcError",
    "path_export_line",
    "plan_rc_lines",
    "source_line",
    "update_shell_rc",
]

logger = logging.getLogger(__name__)

MARKER = "# Added by cdt"


@dataclass(frozen=True, slots=True)
class ShellRcError:
    message: str
    path: Path


@dataclass(frozen=True, slots=True)
class RcUpdate:
    """Lines appended (or that would be appended) to an rc file."""

    path: Path
    added: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.added)


def path_export_line(directory: str) -> str:
    return f'export PATH="{directory}:$PATH"'


def source_line(profile: str) -> str:
    return f"source {profile}"


def _profile_exists(profile: str) -> bool:
    return expand(profile).exists()


def plan_rc_lines(
    existing: str,
    path_entries: Iterable[str],
    profiles: Iterable[str] = (),
    *,
    profile_exists: Callable[[str], bool] = _profile_exists,
) -> list[str]:
    """Lines missing from ``existing``, in declaration order.

    Profiles that do not exist on this host are left out.
    """
    present = {line.strip() for line in existing.splitlines()}
    wanted = [path_export_line(d) for d in path_entries]
    wanted += [source_line(p) for p in profiles if profile_exists(p)]

    missing: list[str] = []
    for line in wanted:
        if line not in present and line not in missing:
            missing.append(line)
    return missing


def update_shell_rc(
    rc_file: Path,
    path_entries: Iterable[str],
    profiles: Iterable[str] = (),
    *,
    dry_run: bool = False,
    profile_exists: Callable[[str], bool] = _profile_exists,
) -> Result[RcUpdate, ShellRcError]:
    """Append missing PATH exports and profile sources to ``rc_file``.

    A missing rc file is created. Running twice never duplicates a line.
    """
    try:
        existing = rc_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = ""
    except (OSError, UnicodeDecodeError) as e:
        return Err(ShellRcError(f"Cannot read {rc_file}: {e}", path=rc_file))

    missing = plan_rc_lines(existing, path_entries, profiles, profile_exists=profile_exists)
    if not missing or dry_run:
        return Ok(RcUpdate(path=rc_file, added=tuple(missing)))

    content = existing
    if content and not content.endswith("\n"):
        content += "\n"
    if MARKER not in existing:
        content += f"\n{MARKER}\n"
    content += "\n".join(missing) + "\n"

    # Write through symlinks (dotfile managers link ~/.bashrc)
    try:
        atomic_write_text(rc_file.resolve(), content)
    except OSError as e:
        return Err(ShellRcError(f"Cannot write {rc_file}: {e}", path=rc_file))

    logger.debug("appended %d line(s) to %s", len(missing), rc_file)
    return Ok(RcUpdate(path=rc_file, added=tuple(missing)))
