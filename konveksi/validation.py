"""Validation helpers for engine precondition checks.

Eliminates repeated validation boilerplate across pricing and payment code.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional

from .errors import InvalidInput


def require_positive(value: int, error_msg: str) -> None:
    """Require that a value is greater than zero."""
    if value <= 0:
        raise InvalidInput(error_msg)


def require_non_negative(value: int, error_msg: str) -> None:
    """Require that a value is zero or greater."""
    if value < 0:
        raise InvalidInput(error_msg)


def require_integer(value: Any, error_msg: str) -> None:
    """Require a whole number (bool is rejected even though it is an int)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(error_msg)


def require_percent(value: int, error_msg: str) -> None:
    """Require a value within 0..100 inclusive."""
    if not 0 <= value <= 100:
        raise InvalidInput(error_msg)


def require_not_empty(items: Sequence[Any], error_msg: str) -> None:
    """Require that a sequence has at least one element."""
    if not items:
        raise InvalidInput(error_msg)


def require_text(value: str, error_msg: str) -> None:
    """Require a non-blank string."""
    if not value or not value.strip():
        raise InvalidInput(error_msg)


def require_unique(values: Sequence[Any], error_msg: str) -> None:
    """Require that a sequence has no repeated elements."""
    seen = set()
    for value in values:
        if value in seen:
            raise InvalidInput(f"{error_msg}: {value}")
        seen.add(value)


def require_aware(value: Optional[datetime], error_msg: str) -> None:
    """Require a timezone-aware datetime; None passes."""
    if value is not None and (value.tzinfo is None or value.utcoffset() is None):
        raise InvalidInput(error_msg)
