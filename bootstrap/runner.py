"""Sequential, forward-only runner for idempotent steps."""

from __future__ import annotations

import subprocess
from logging import Logger
from typing import Any, Optional

from bootstrap.logging_utils import get_logger
from bootstrap.progress import step_header
from bootstrap.steps import (
    ExecutionResult,
    PlannedStep,
    SafetyGatedStep,
    Step,
    StepSkipped,
    StepStatus,
)
from bootstrap.system_utils import EnvironmentMismatchError

# Errors recorded as a failed step. Anything else is a bug and propagates.
STEP_ERRORS = (OSError, ValueError, LookupError, RuntimeError, subprocess.SubprocessError)


class StepRunner:
    """Runs steps in declared order, recording one result per step.

    A failing step never stops the run; steps that declare ``requires`` on a
    failed step are skipped with a warning instead of being attempted.
    EnvironmentMismatchError from any check or action aborts the run.
    """

    def __init__(self, ctx: Any, logger: Optional[Logger] = None, show_progress: bool = True):
        self.ctx = ctx
        self.logger = logger or get_logger()
        self.show_progress = show_progress

    def run(self, steps: list[Step]) -> list[ExecutionResult]:
        results: list[ExecutionResult] = []
        failed: set[str] = set()
        total = len(steps)

        for i, step in enumerate(steps, 1):
            if self.show_progress:
                self.logger.info(f"\n{step_header(i, total, step.description)}")
            result = self._run_step(step, failed)
            self._log_result(result)
            if result.status is StepStatus.FAILED:
                failed.add(step.name)
            results.append(result)

        return results

    def _run_step(self, step: Step, failed: set[str]) -> ExecutionResult:
        blocked_by = [name for name in step.requires if name in failed]
        if blocked_by:
            return ExecutionResult(
                step.name, StepStatus.SKIPPED,
                f"Not attempted: requires {', '.join(blocked_by)} which failed",
                warning=True,
            )

        try:
            satisfied = step.check(self.ctx)
        except EnvironmentMismatchError:
            raise
        except STEP_ERRORS as e:
            return ExecutionResult(step.name, StepStatus.FAILED, f"Check failed: {e}")

        if satisfied:
            return ExecutionResult(step.name, StepStatus.SKIPPED, "Already satisfied")

        if isinstance(step, SafetyGatedStep):
            try:
                allowed = step.precondition(self.ctx)
            except EnvironmentMismatchError:
                raise
            except STEP_ERRORS as e:
                return ExecutionResult(step.name, StepStatus.FAILED, f"Precondition check failed: {e}")
            if not allowed:
                return ExecutionResult(step.name, StepStatus.SKIPPED, step.blocked_message, warning=True)

        try:
            message = step.action(self.ctx)
        except EnvironmentMismatchError:
            raise
        except StepSkipped as e:
            return ExecutionResult(step.name, StepStatus.SKIPPED, e.message, warning=e.warning)
        except STEP_ERRORS as e:
            return ExecutionResult(step.name, StepStatus.FAILED, str(e))

        return ExecutionResult(step.name, StepStatus.APPLIED, message or "Done")

    def _log_result(self, result: ExecutionResult) -> None:
        if result.status is StepStatus.FAILED:
            self.logger.error(f"  ✗ {result.name}: {result.message}")
        elif result.warning:
            self.logger.warning(f"  ⚠ WARNING: {result.message}")
        elif result.status is StepStatus.SKIPPED and result.message != "Already satisfied":
            self.logger.info(f"  ℹ {result.message}")
        elif result.status is StepStatus.SKIPPED:
            self.logger.info(f"  ✓ {result.name} already satisfied")
        else:
            self.logger.info(f"  ✓ {result.message}")

    def check_only(self, steps: list[Step]) -> list[PlannedStep]:
        """Evaluate checks without running any action."""
        plan: list[PlannedStep] = []
        for step in steps:
            planned = self._plan_step(step)
            if planned.satisfied:
                self.logger.info(f"  ✓ {step.name}: already satisfied")
            elif planned.blocked:
                self.logger.warning(f"  ⚠ {step.name}: would skip ({planned.message})")
            elif planned.message:
                self.logger.warning(f"  ⚠ {step.name}: would apply ({planned.message})")
            else:
                self.logger.info(f"  → {step.name}: would apply")
            plan.append(planned)
        return plan

    def _plan_step(self, step: Step) -> PlannedStep:
        try:
            satisfied = step.check(self.ctx)
        except EnvironmentMismatchError:
            raise
        except STEP_ERRORS as e:
            return PlannedStep(step.name, step.description, False, message=f"check failed: {e}")

        if satisfied:
            return PlannedStep(step.name, step.description, True)

        if isinstance(step, SafetyGatedStep):
            try:
                allowed = step.precondition(self.ctx)
            except EnvironmentMismatchError:
                raise
            except STEP_ERRORS as e:
                return PlannedStep(step.name, step.description, False, blocked=True,
                                   message=f"precondition check failed: {e}")
            if not allowed:
                return PlannedStep(step.name, step.description, False, blocked=True,
                                   message=step.blocked_message)

        return PlannedStep(step.name, step.description, False)
