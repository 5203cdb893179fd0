"""Unit tests for asm_provider.model.teardown."""

from __future__ import annotations

from unittest.mock import MagicMock

from asm_provider.model.teardown import StepResult, TeardownReport, run_best_effort, run_step


def test_run_step_success() -> None:
    assert run_step("a", lambda: None) == StepResult("a", ok=True)


def test_run_step_false_is_skipped() -> None:
    result = run_step("a", lambda: False)
    assert result.ok is True
    assert result.skipped is True


def test_run_step_failure_keeps_error() -> None:
    err = RuntimeError("boom")
    result = run_step("a", MagicMock(side_effect=err))
    assert result.ok is False
    assert result.error is err


def test_best_effort_continues_past_failures() -> None:
    last = MagicMock(return_value=True)
    report = run_best_effort(
        [
            ("first", MagicMock(side_effect=ValueError("bad"))),
            ("second", lambda: False),
            ("third", last),
        ]
    )
    last.assert_called_once_with()
    assert [s.name for s in report.steps] == ["first", "second", "third"]
    assert [s.name for s in report.failed] == ["first"]
    assert report.ok is False


def test_report_extend_and_add() -> None:
    report = TeardownReport()
    report.add(StepResult.success("a"))
    other = TeardownReport([StepResult.skip("b")])
    report.extend(other)
    assert [s.name for s in report.steps] == ["a", "b"]
    assert report.ok is True
    assert report.failed == []
