"""Result types for best-effort teardown steps."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    """Outcome of one teardown step.

    Attributes:
        name: Step name, e.g. ``"evict_vsan"``.
        ok: ``True`` when the step completed.
        error: The exception the step raised, when it failed.
        skipped: ``True`` when the step had nothing to do.
    """

    name: str
    ok: bool
    error: Exception | None = None
    skipped: bool = False

    @classmethod
    def success(cls, name: str) -> StepResult:
        return cls(name=name, ok=True)

    @classmethod
    def skip(cls, name: str) -> StepResult:
        return cls(name=name, ok=True, skipped=True)

    @classmethod
    def failure(cls, name: str, error: Exception) -> StepResult:
        return cls(name=name, ok=False, error=error)


@dataclass
class TeardownReport:
    """Aggregated results of a best-effort teardown run."""

    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    @property
    def failed(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]

    def add(self, result: StepResult) -> StepResult:
        self.steps.append(result)
        return result

    def extend(self, other: TeardownReport) -> None:
        self.steps.extend(other.steps)


def run_step(name: str, step: Callable[[], object]) -> StepResult:
    """Run *step*, turning an exception into a failed :class:`StepResult`.

    A step returning ``False`` is reported as skipped.
    """
    try:
        outcome = step()
    except Exception as exc:
        logger.info("Teardown step %s failed: %s: %s", name, type(exc).__name__, exc)
        return StepResult.failure(name, exc)
    if outcome is False:
        return StepResult.skip(name)
    return StepResult.success(name)


def run_best_effort(steps: Iterable[tuple[str, Callable[[], object]]]) -> TeardownReport:
    """Run every step in order, continuing past failures.

    Args:
        steps: ``(name, callable)`` pairs.

    Returns:
        A :class:`TeardownReport` with one result per step.
    """
    report = TeardownReport()
    for name, step in steps:
        report.add(run_step(name, step))
    if not report.ok:
        logger.warning(
            "Teardown finished with %d failed step(s): %s",
            len(report.failed),
            ", ".join(s.name for s in report.failed),
        )
    return report
