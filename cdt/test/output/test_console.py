"""Tests for cdt.output.console module."""

from __future__ import annotations

import logging
import threading

import pytest

from cdt.output.console import ConsoleProtocol, MockConsole, RichConsole, Style
from cdt.output.log import configure_logging


class TestStyle:
    """Test Style enum."""

    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.ERROR) == "error"
        assert str(Style.DEFAULT) == "default"


class TestMockConsole:
    """Test MockConsole for testing purposes."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs[0].message == "hello"
        assert console.outputs[0].style == Style.DEFAULT

    def test_shorthands(self) -> None:
        console = MockConsole()
        console.success("installed jq")
        console.error("boom")
        console.warning("careful")
        console.info("fyi")
        console.header("System Tools")
        console.newline()

        assert console.messages == [
            "OK installed jq",
            "error: boom",
            "warning: careful",
            "info: fyi",
            "System Tools",
            "",
        ]
        assert console.has_error()
        assert console.has_warning()
        assert console.count(Style.HEADER) == 1

    def test_find_and_text(self) -> None:
        console = MockConsole()
        console.print("jq: present")
        console.print("rg: missing")

        assert len(console.find("missing")) == 1
        assert console.text == "jq: present\nrg: missing"

    def test_thread_safe_append(self) -> None:
        console = MockConsole()

        def worker() -> None:
            for i in range(200):
                console.print(str(i))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(console.outputs) == 800

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("x")


class TestRichConsole:
    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.print("detect: [rg]", Style.INFO)
        console.warning("catalogue entry skipped: [tool] #3")

        out = capsys.readouterr().out
        assert "[rg]" in out
        assert "[tool] #3" in out


class TestConfigureLogging:
    def test_verbose_sets_debug(self) -> None:
        configure_logging(verbose=True)
        logger = logging.getLogger("cdt")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_quiet_sets_warning_and_replaces_handler(self) -> None:
        configure_logging(verbose=True)
        configure_logging(verbose=False)
        logger = logging.getLogger("cdt")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
