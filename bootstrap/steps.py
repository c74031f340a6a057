"""Step model: phases, steps, safety-gated steps and their results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bootstrap.types import ActionFunc, CheckFunc


class Phase(Enum):
    ROOT = "root"
    USER = "user"


class StepStatus(Enum):
    SKIPPED = "skipped"
    APPLIED = "applied"
    FAILED = "failed"


class StepSkipped(Exception):
    """Raised by an action that found nothing it could do."""

    def __init__(self, message: str, warning: bool = False):
        super().__init__(message)
        self.message = message
        self.warning = warning


@dataclass(frozen=True)
class Step:
    """A single "check state, act if needed" unit of work.

    ``check`` returns True when the goal is already met. ``action`` is only
    called when it is not, and must be safe to call again after a crash.
    """
    name: str
    description: str
    check: CheckFunc
    action: ActionFunc
    phase: Phase
    requires: tuple[str, ...] = ()


@dataclass(frozen=True)
class SafetyGatedStep(Step):
    """A step whose action carries irreversible risk.

    ``precondition`` is evaluated right before the action on every run; when
    it does not hold the step is skipped with a warning instead of acting.
    """
    precondition: CheckFunc = field(default=lambda ctx: False)
    blocked_message: str = "Precondition not met"


@dataclass
class ExecutionResult:
    name: str
    status: StepStatus
    message: Optional[str] = None
    warning: bool = False


@dataclass
class PlannedStep:
    """What a dry run found for one step."""
    name: str
    description: str
    satisfied: bool
    blocked: bool = False
    message: Optional[str] = None


@dataclass
class RunSummary:
    applied: int = 0
    skipped: int = 0
    failed: int = 0
    warnings: int = 0

    @classmethod
    def from_results(cls, results: list[ExecutionResult]) -> "RunSummary":
        summary = cls()
        for result in results:
            if result.status is StepStatus.APPLIED:
                summary.applied += 1
            elif result.status is StepStatus.SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1
            if result.warning:
                summary.warnings += 1
        return summary

    @property
    def success(self) -> bool:
        return self.failed == 0
