from __future__ import annotations

import subprocess

import pytest

from cdt.catalogue.model import Catalogue
from cdt.cli.context import CLIContext
from cdt.core.config import BackendsConfig, Config
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
        raise AssertionError("backends must not run commands")


def test_backends_status(monkeypatch: pytest.MonkeyPatch) -> None:
    import cdt.cli.commands.backends_cmd as backends_cmd

    console = MockConsole()
    ctx = CLIContext(
        platform=PlatformInfo(Platform.LINUX, Arch.X64, LinuxDistro.DEBIAN),
        config=Config(backends=BackendsConfig(disabled=("snap",))),
        catalogue=Catalogue(entries=()),
        probe=FakeHost("apt-get", "snap", "curl", "npm"),
        console=console,
    )
    monkeypatch.setattr(backends_cmd, "build_context", lambda: ctx)

    backends_cmd.backends()

    messages = console.messages
    assert messages[0] == "platform: linux-debian-x64"
    assert "  apt: available (system, native)" in messages
    assert "  npm: available" in messages
    assert "  snap: disabled in config (system)" in messages
    assert "  dnf: missing dnf (system)" in messages
    assert "  curl-script: missing sh" in messages
    [cargo] = console.find("cargo:")
    assert cargo.style == Style.WARNING
