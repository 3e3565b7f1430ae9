"""Tests for cdt.services.report module."""

from __future__ import annotations

from cdt.catalogue.model import CatalogueError, CommandCheck, InstallAction, ToolEntry
from cdt.core.errors import ErrorCode
from cdt.output.console import MockConsole, Style
from cdt.services.reconcile import FailureKind, Outcome, ReconcileResult
from cdt.services.report import Report, format_result


def _result(
    name: str,
    outcome: Outcome,
    *,
    category: str = "System Tools",
    index: int = 0,
    **kwargs: object,
) -> ReconcileResult:
    entry = ToolEntry(
        name=name,
        category=category,
        detect=(CommandCheck(name),),
        installers=(InstallAction("apt", f"sudo apt-get install -y {name}"),),
        index=index,
    )
    return ReconcileResult(entry, outcome, **kwargs)  # type: ignore[arg-type]


class TestFormatResult:
    def test_installed(self) -> None:
        line = format_result(_result("jq", Outcome.INSTALLED, backend="apt", version="jq-1.7.1"))
        assert line == "jq: installed via apt (jq-1.7.1)"

    def test_present_hides_detail(self) -> None:
        line = format_result(_result("jq", Outcome.ALREADY_PRESENT, version="jq-1.7.1", detail="x"))
        assert line == "jq: present (jq-1.7.1)"

    def test_failed_with_detail(self) -> None:
        line = format_result(
            _result("jq", Outcome.FAILED, backend="apt", detail="sudo apt-get install ... failed (exit 100)")
        )
        assert line == "jq: FAILED via apt - sudo apt-get install ... failed (exit 100)"

    def test_skipped(self) -> None:
        line = format_result(_result("jq", Outcome.SKIPPED_NO_BACKEND, detail="no available backend (supports apt)"))
        assert line == "jq: skipped - no available backend (supports apt)"


class TestOrdering:
    def test_category_first_appearance_then_index(self) -> None:
        report = Report.from_results(
            [
                _result("ripgrep", Outcome.INSTALLED, category="Performance Tools", index=3),
                _result("jq", Outcome.INSTALLED, category="System Tools", index=2),
                _result("rust", Outcome.INSTALLED, category="Programming Languages", index=1),
                _result("curl", Outcome.INSTALLED, category="System Tools", index=0),
            ]
        )

        assert [r.name for r in report.results] == ["curl", "jq", "rust", "ripgrep"]
        assert list(report.categories) == ["System Tools", "Programming Languages", "Performance Tools"]


class TestCounts:
    def test_every_outcome_counted(self) -> None:
        report = Report.from_results(
            [
                _result("a", Outcome.INSTALLED, index=0),
                _result("b", Outcome.INSTALLED, index=1),
                _result("c", Outcome.ALREADY_PRESENT, index=2),
            ]
        )

        assert report.counts[Outcome.INSTALLED] == 2
        assert report.counts[Outcome.ALREADY_PRESENT] == 1
        assert report.counts[Outcome.FAILED] == 0
        assert set(report.counts) == set(Outcome)

    def test_summary_line(self) -> None:
        report = Report.from_results(
            [
                _result("a", Outcome.INSTALLED, index=0),
                _result("b", Outcome.FAILED, index=1),
            ]
        )
        assert report.summary_line() == "2 tools, 1 installed, 1 failed"

    def test_by_outcome(self) -> None:
        report = Report.from_results(
            [_result("a", Outcome.FAILED, index=0), _result("b", Outcome.INSTALLED, index=1)]
        )
        assert [r.name for r in report.by_outcome(Outcome.FAILED)] == ["a"]


class TestExitCode:
    def test_all_good(self) -> None:
        report = Report.from_results([_result("a", Outcome.INSTALLED), _result("b", Outcome.ALREADY_PRESENT, index=1)])
        assert report.exit_code() == ErrorCode.OK

    def test_failure(self) -> None:
        report = Report.from_results([_result("a", Outcome.FAILED), _result("b", Outcome.INSTALLED, index=1)])
        assert report.exit_code() == ErrorCode.INSTALL_ERROR

    def test_skip_only_fails_when_strict(self) -> None:
        report = Report.from_results([_result("a", Outcome.SKIPPED_NO_BACKEND)])
        assert report.exit_code() == ErrorCode.OK
        assert report.exit_code(strict=True) == ErrorCode.ENV_ERROR

    def test_missing_fails_in_check_mode_only(self) -> None:
        results = [_result("a", Outcome.MISSING)]
        assert Report.from_results(results).exit_code() == ErrorCode.OK
        assert Report.from_results(results, check=True).exit_code() == ErrorCode.ENV_ERROR

    def test_cancelled_wins(self) -> None:
        report = Report.from_results([_result("a", Outcome.FAILED), _result("b", Outcome.CANCELLED, index=1)])
        assert report.exit_code() == ErrorCode.INTERRUPTED

    def test_catalogue_errors_do_not_fail(self) -> None:
        report = Report.from_results(
            [_result("a", Outcome.ALREADY_PRESENT)], [CatalogueError("missing detect", index=4)]
        )
        assert report.exit_code(strict=True) == ErrorCode.OK


class TestToDict:
    def test_shape(self) -> None:
        report = Report.from_results(
            [
                _result("a", Outcome.INSTALLED, backend="apt", index=0),
                _result(
                    "b",
                    Outcome.FAILED,
                    backend="apt",
                    index=1,
                    category="Network Tools",
                    failure=FailureKind.TIMED_OUT,
                ),
            ],
            [CatalogueError("bad", name="zz", index=7)],
        )

        data = report.to_dict()

        summary = data["summary"]
        assert isinstance(summary, dict)
        assert summary["total"] == 2
        assert summary["installed"] == 1
        assert summary["failed"] == 1
        assert summary["already-present"] == 0
        assert summary["catalogue_errors"] == 1
        assert summary["exit_code"] == int(ErrorCode.INSTALL_ERROR)
        assert data["categories"] == {"System Tools": {"installed": 1}, "Network Tools": {"failed": 1}}
        results = data["results"]
        assert isinstance(results, list)
        assert results[1]["failure"] == "timed-out"
        assert data["catalogue_errors"] == [{"name": "zz", "index": 7, "message": "bad"}]

    def test_strict_exit_code(self) -> None:
        report = Report.from_results([_result("a", Outcome.SKIPPED_NO_BACKEND)])
        summary = report.to_dict(strict=True)["summary"]
        assert isinstance(summary, dict)
        assert summary["exit_code"] == int(ErrorCode.ENV_ERROR)


class TestRender:
    def test_groups_and_summary(self) -> None:
        console = MockConsole()
        report = Report.from_results(
            [
                _result("curl", Outcome.ALREADY_PRESENT, index=0),
                _result("rust", Outcome.INSTALLED, category="Programming Languages", backend="curl-script", index=1),
            ]
        )

        report.render(console)

        assert console.messages == [
            "System Tools",
            "  curl: present",
            "Programming Languages",
            "  rust: installed via curl-script",
            "",
            "2 tools, 1 already-present, 1 installed",
        ]
        assert console.count(Style.HEADER) == 2

    def test_failure_output_shown(self) -> None:
        console = MockConsole()
        report = Report.from_results(
            [_result("jq", Outcome.FAILED, backend="apt", detail="boom", output="E: Unable to locate package jq")]
        )

        report.render(console)

        assert console.find("      E: Unable to locate package jq")
        assert console.count(Style.ERROR) == 1

    def test_catalogue_errors_are_warnings(self) -> None:
        console = MockConsole()
        report = Report.from_results([], [CatalogueError("unknown backend 'brew2'", name="jq", index=0)])

        report.render(console)

        assert console.has_warning()
        assert console.find("catalogue entry skipped: jq: unknown backend 'brew2'")
