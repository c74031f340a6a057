"""server_bootstrap - Idempotent two-phase setup for fresh Linux servers."""

from __future__ import annotations

from .config import BootstrapConfig
from .steps import Phase, Step, SafetyGatedStep, StepStatus, ExecutionResult, StepSkipped
from .runner import StepRunner
from .phase_selector import select_phase
from .validators import validate_username, validate_email

__all__ = [
    "BootstrapConfig",
    "Phase",
    "Step",
    "SafetyGatedStep",
    "StepStatus",
    "ExecutionResult",
    "StepSkipped",
    "StepRunner",
    "select_phase",
    "validate_username",
    "validate_email",
]
