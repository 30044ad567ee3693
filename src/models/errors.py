"""
Harness errors

Every failure names the operation that was refused, what the harness
expected and what it actually found, so harness misuse can be told apart
from a defect in the code under test.
"""

from typing import Any, Optional


class HarnessError(Exception):
    """Base class for all harness failures."""

    def __init__(
        self,
        operation: str,
        expected: Any,
        actual: Any,
        detail: Optional[str] = None
    ):
        self.operation = operation
        self.expected = expected
        self.actual = actual
        self.detail = detail

        message = f"{operation}: expected {_describe(expected)}, got {_describe(actual)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidState(HarnessError):
    """Operation forbidden in the current state (e.g. double start())."""


class InvalidConfig(HarnessError, ValueError):
    """Rejected configuration (non-positive duration, empty name, ...)."""


class InvalidTransition(HarnessError):
    """State change rejected by an attached transition validator."""


class WrongClockMode(HarnessError):
    """Clock-specific operation called under the other clock discipline."""


class StaleResultAccess(HarnessError):
    """Hook result read after its session was unmounted."""


class PendingWorkLeak(HarnessError):
    """Scenario teardown found work that was never drained or released."""


class SequenceMismatch(HarnessError, AssertionError):
    """Observed sequence (transitions, phases, properties) differs from expectation."""


def _describe(value: Any) -> str:
    # Enum members read better by value than by repr
    if hasattr(value, "value") and hasattr(value, "name"):
        return str(value.value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return "{" + ", ".join(_describe(v) for v in value) + "}"
    return str(value)
