"""Catalogue data model.

A catalogue is an ordered, immutable list of `ToolEntry` values. Each entry
says how to tell whether the tool is present (`detect`) and how to install it
with each backend it supports (`installers`, in preference order).
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "Backend",
    "BACKENDS",
    "SYSTEM_BACKENDS",
    "Catalogue",
    "CatalogueError",
    "CommandCheck",
    "DetectCheck",
    "FlatpakCheck",
    "InstallAction",
    "PathCheck",
    "SnapCheck",
    "ToolEntry",
]


# -----------------------------------------------------------------------------
# Backends
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Backend:
    """A package manager or installation mechanism.

    Attributes:
        id: Identifier used as key in catalogue ``install`` tables.
        launchers: Binaries that must all be on PATH for the backend to work.
        system: Holds a host-wide lock (dpkg, rpm, pacman db, snapd...).
            Actions for the same system backend never run concurrently.
    """

    id: str
    launchers: tuple[str, ...]
    system: bool = False
    description: str = ""


_BACKEND_LIST: tuple[Backend, ...] = (
    Backend("apt", ("apt-get",), system=True, description="Debian/Ubuntu packages"),
    Backend("dnf", ("dnf",), system=True, description="Fedora/RHEL packages"),
    Backend("pacman", ("pacman",), system=True, description="Arch packages"),
    Backend("zypper", ("zypper",), system=True, description="openSUSE packages"),
    Backend("snap", ("snap",), system=True, description="Snap packages"),
    Backend("flatpak", ("flatpak",), system=True, description="Flatpak applications"),
    Backend("brew", ("brew",), system=True, description="Homebrew"),
    Backend("cargo", ("cargo",), description="Rust crates"),
    Backend("npm", ("npm",), description="Global npm packages"),
    Backend("pip", ("pip3",), description="Python packages (--user)"),
    Backend("go", ("go",), description="go install"),
    Backend("curl-script", ("curl", "sh"), description="Installer scripts fetched with curl"),
    Backend("script", ("sh",), description="Arbitrary shell commands"),
)

BACKENDS: dict[str, Backend] = {b.id: b for b in _BACKEND_LIST}
SYSTEM_BACKENDS: frozenset[str] = frozenset(b.id for b in _BACKEND_LIST if b.system)


# -----------------------------------------------------------------------------
# Detection checks
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CommandCheck:
    """Binary on PATH, optionally at or above a minimum version."""

    command: str
    version_args: tuple[str, ...] = ("--version",)
    min_version: str | None = None

    def describe(self) -> str:
        if self.min_version:
            return f"{self.command} >= {self.min_version}"
        return self.command


@dataclass(frozen=True, slots=True)
class PathCheck:
    """File or directory exists (``~`` and ``$VARS`` expanded)."""

    path: str

    def describe(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class SnapCheck:
    """Snap package installed (``snap list <package>``)."""

    package: str

    def describe(self) -> str:
        return f"snap:{self.package}"


@dataclass(frozen=True, slots=True)
class FlatpakCheck:
    """Flatpak application installed (listed by ``flatpak list``)."""

    app_id: str

    def describe(self) -> str:
        return f"flatpak:{self.app_id}"


type DetectCheck = CommandCheck | PathCheck | SnapCheck | FlatpakCheck


# -----------------------------------------------------------------------------
# Install actions
# -----------------------------------------------------------------------------

# Any of these means the command needs a shell
_SHELL_META = ("|", "&&", ";", ">", "<", "`", "$")


@dataclass(frozen=True, slots=True)
class InstallAction:
    """How one backend installs one tool.

    Plain commands are split with shell quoting rules and executed directly.
    Commands using pipes, redirections, ``&&`` or expansions run via
    ``sh -c``.
    """

    backend: str
    command: str

    @property
    def uses_shell(self) -> bool:
        return any(meta in self.command for meta in _SHELL_META)

    @property
    def argv(self) -> list[str]:
        """Argument vector to execute.

        Raises:
            ValueError: If the command has unbalanced quotes.
        """
        if self.uses_shell:
            return ["sh", "-c", self.command]
        return shlex.split(self.command, posix=True)

    @property
    def display(self) -> str:
        return self.command


# -----------------------------------------------------------------------------
# Entries
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolEntry:
    """One declarative catalogue unit.

    Attributes:
        name: Unique identifier.
        category: Grouping label for reports.
        detect: Checks; the tool is present if ANY passes.
        installers: Install actions in preference order.
        index: Position in the catalogue source (report ordering).
    """

    name: str
    category: str
    detect: tuple[DetectCheck, ...]
    installers: tuple[InstallAction, ...]
    index: int = 0

    @property
    def backends(self) -> tuple[str, ...]:
        return tuple(action.backend for action in self.installers)

    def installer_for(self, backend: str) -> InstallAction | None:
        for action in self.installers:
            if action.backend == backend:
                return action
        return None


@dataclass(frozen=True, slots=True)
class CatalogueError:
    """A malformed catalogue or catalogue entry.

    Entry-level errors exclude the entry; they never abort loading.
    """

    message: str
    name: str | None = None
    index: int | None = None
    path: Path | None = None

    def __str__(self) -> str:
        if self.name:
            return f"{self.name}: {self.message}"
        if self.index is not None:
            return f"entry #{self.index + 1}: {self.message}"
        return self.message


def _fold(values: Iterable[str]) -> set[str]:
    return {v.strip().lower() for v in values if v.strip()}


@dataclass(frozen=True, slots=True)
class Catalogue:
    """Loaded catalogue: valid entries plus the errors of excluded ones."""

    entries: tuple[ToolEntry, ...]
    errors: tuple[CatalogueError, ...] = ()
    path_entries: tuple[str, ...] = ()
    profiles: tuple[str, ...] = ()
    source: Path | None = None

    @property
    def categories(self) -> list[str]:
        """Categories in order of first appearance."""
        seen: list[str] = []
        for entry in self.entries:
            if entry.category not in seen:
                seen.append(entry.category)
        return seen

    def get(self, name: str) -> ToolEntry | None:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def select(
        self,
        categories: Iterable[str] = (),
        names: Iterable[str] = (),
    ) -> list[ToolEntry]:
        """Filter entries, keeping catalogue order.

        Args:
            categories: Exact category names (case-insensitive). Empty = all.
            names: Name substrings (case-insensitive). Empty = all.
        """
        wanted_categories = _fold(categories)
        wanted_names = _fold(names)

        selected: list[ToolEntry] = []
        for entry in self.entries:
            if wanted_categories and entry.category.lower() not in wanted_categories:
                continue
            if wanted_names and not any(n in entry.name.lower() for n in wanted_names):
                continue
            selected.append(entry)
        return selected
