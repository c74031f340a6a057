"""Maps the caller's privilege level to exactly one phase."""

from __future__ import annotations

import os
from typing import Optional

from bootstrap.logging_utils import get_logger
from bootstrap.steps import Phase


def detect_phase(euid: Optional[int] = None) -> Phase:
    euid = os.geteuid() if euid is None else euid
    return Phase.ROOT if euid == 0 else Phase.USER


def select_phase(override: Optional[str] = None, euid: Optional[int] = None) -> Phase:
    """Return the phase to run.

    An explicit override wins over the detected privilege level; a mismatch
    is logged so the operator notices.
    """
    detected = detect_phase(euid)
    if override is None:
        return detected

    try:
        phase = Phase(override)
    except ValueError:
        raise ValueError(f"Unknown phase: {override} (expected 'root' or 'user')")

    if phase is not detected:
        get_logger().warning(
            f"⚠ Running the {phase.value} phase as a {'root' if detected is Phase.ROOT else 'non-root'} user"
        )
    return phase
