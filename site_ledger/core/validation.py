"""
Input validation shared by the costing engine.
"""

import math
from datetime import date
from typing import Any, Optional

from .errors import InvalidInput


def _as_real(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{field} must be a number", field=field, value=value)
    if not math.isfinite(value):
        raise InvalidInput(f"{field} must be finite", field=field, value=value)
    return float(value)


def require_positive(value: Any, field: str) -> float:
    """Return value as float, raising InvalidInput unless finite and > 0."""
    number = _as_real(value, field)
    if number <= 0:
        raise InvalidInput(f"{field} must be > 0", field=field, value=value)
    return number


def require_non_negative(value: Any, field: str) -> float:
    """Return value as float, raising InvalidInput unless finite and >= 0."""
    number = _as_real(value, field)
    if number < 0:
        raise InvalidInput(f"{field} must be >= 0", field=field, value=value)
    return number


def optional_non_negative(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    return require_non_negative(value, field)


def require_name(value: Any, field: str = "name") -> str:
    """Return the stripped name, raising InvalidInput when it is empty."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} cannot be empty", field=field, value=value)
    return value.strip()


def require_date(value: Any, field: str) -> date:
    if not isinstance(value, date):
        raise InvalidInput(f"{field} must be a date", field=field, value=value)
    return value
