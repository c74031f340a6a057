"""Common type aliases for the project to reduce repetition and improve readability.

Add new aliases here when you spot repeated typing patterns across modules.
"""
from __future__ import annotations

from typing import Any, Optional, Callable, Union

StrDict = dict[str, str]

# Strings run through the shell, lists run directly
Command = Union[str, list[str]]

# Checks and preconditions return True when satisfied,
# actions may return a short message for the summary.
CheckFunc = Callable[[Any], bool]
ActionFunc = Callable[[Any], Optional[str]]

__all__ = [
    "StrDict",
    "Command",
    "CheckFunc",
    "ActionFunc",
]
