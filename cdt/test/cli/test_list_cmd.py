from __future__ import annotations

import subprocess
from pathlib import Path

import pytest
import typer

from cdt.catalogue.model import (
    Catalogue,
    CatalogueError,
    CommandCheck,
    InstallAction,
    PathCheck,
    ToolEntry,
)
from cdt.cli.context import CLIContext
from cdt.core.config import Config
from cdt.core.errors import ErrorCode
from cdt.output.console import MockConsole, Style
from cdt.platform.detection import Arch, LinuxDistro, Platform, PlatformInfo


class FakeHost:
    def __init__(self, *binaries: str) -> None:
        self.binaries = set(binaries)

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.binaries else None

    def path_exists(self, path: str) -> bool:
        return False

    def run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        raise AssertionError("list must not run commands")


def _ctx(host: FakeHost) -> CLIContext:
    entries = (
        ToolEntry(
            name="jq",
            category="System Tools",
            detect=(CommandCheck("jq"),),
            installers=(
                InstallAction("apt", "sudo apt-get install -y jq"),
                InstallAction("brew", "brew install jq"),
            ),
            index=0,
        ),
        ToolEntry(
            name="flutter",
            category="Mobile Development",
            detect=(CommandCheck("flutter"), PathCheck("~/.local/flutter/bin/flutter")),
            installers=(InstallAction("snap", "sudo snap install flutter --classic"),),
            index=1,
        ),
    )
    return CLIContext(
        platform=PlatformInfo(Platform.LINUX, Arch.X64, LinuxDistro.DEBIAN),
        config=Config(),
        catalogue=Catalogue(
            entries=entries,
            errors=(CatalogueError("no installers", name="broken", index=2),),
            source=Path("/etc/cdt/catalogue.toml"),
        ),
        probe=host,
        console=MockConsole(),
    )


def _patch(monkeypatch: pytest.MonkeyPatch, ctx: CLIContext) -> MockConsole:
    import cdt.cli.commands.list_cmd as list_cmd

    monkeypatch.setattr(list_cmd, "build_context", lambda: ctx)
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


def test_list_marks_selected_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    import cdt.cli.commands.list_cmd as list_cmd

    console = _patch(monkeypatch, _ctx(FakeHost("apt-get")))

    list_cmd.list_tools(category=None)

    [jq] = console.find("jq")
    assert "apt*, brew" in jq.message
    assert jq.message.endswith("[jq]")
    [flutter] = console.find("flutter ")
    assert flutter.style == Style.DIM
    assert "[flutter | ~/.local/flutter/bin/flutter]" in flutter.message
    assert console.messages[-1] == "2 tools in 2 categories"


def test_list_shows_source_and_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    import cdt.cli.commands.list_cmd as list_cmd

    console = _patch(monkeypatch, _ctx(FakeHost()))

    list_cmd.list_tools(category=None)

    assert console.messages[0] == "catalogue: /etc/cdt/catalogue.toml"
    assert console.find("catalogue entry skipped: broken: no installers")


def test_list_category(monkeypatch: pytest.MonkeyPatch) -> None:
    import cdt.cli.commands.list_cmd as list_cmd

    console = _patch(monkeypatch, _ctx(FakeHost()))

    list_cmd.list_tools(category=["mobile development"])

    assert not console.find("jq")
    assert console.messages[-1] == "1 tools in 1 categories"


def test_list_unknown_category(monkeypatch: pytest.MonkeyPatch) -> None:
    import cdt.cli.commands.list_cmd as list_cmd

    _patch(monkeypatch, _ctx(FakeHost()))

    with pytest.raises(typer.Exit) as exc:
        list_cmd.list_tools(category=["Games"])

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
