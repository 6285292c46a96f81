"""
Tagged error values for calculations.
Validation failures are returned, not raised, so every calculation is total.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Why a calculation could not produce a value."""
    MISSING_INPUT = "missing_input"
    INVALID_TYPE = "invalid_type"
    INSUFFICIENT_DATA = "insufficient_data"
    LENGTH_MISMATCH = "length_mismatch"
    INVALID_VALUE = "invalid_value"
    ZERO_VARIANCE = "zero_variance"


@dataclass(frozen=True)
class CalculationError:
    """Result value standing in for a number that could not be computed."""
    kind: ErrorKind
    reason: str

    def __str__(self) -> str:
        return self.reason


def is_error(value: Any) -> bool:
    """True when a calculation returned a CalculationError instead of a value."""
    return isinstance(value, CalculationError)


def value_or(value: Any, default: Any) -> Any:
    """Unwrap a calculation result, substituting default for errors."""
    return default if is_error(value) else value
