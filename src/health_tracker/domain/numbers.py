"""Numeric validation helpers."""

import math

from health_tracker.domain.errors import InvalidArgumentError


def require_number(value: object, name: str) -> float:
    """Return a finite float or raise InvalidArgumentError."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidArgumentError(f"{name} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise InvalidArgumentError(f"{name} must be finite")
    return number


def require_non_negative(value: object, name: str) -> float:
    """Return a finite, non-negative float or raise InvalidArgumentError."""
    number = require_number(value, name)
    if number < 0:
        raise InvalidArgumentError(f"{name} cannot be negative")
    return number


def require_in_range(value: object, name: str, low: float, high: float) -> float:
    """Return a finite float within [low, high] or raise InvalidArgumentError."""
    number = require_number(value, name)
    if number < low or number > high:
        raise InvalidArgumentError(f"{name} must be between {low:g} and {high:g}")
    return number


def round2(value: float) -> float:
    return round(value, 2)


def round_percent(numerator: float, denominator: float) -> int:
    """Percentage rounded half-up, 0 when the denominator is 0."""
    if denominator <= 0:
        return 0
    return math.floor(numerator / denominator * 100 + 0.5)
