# greencart/utils.py
"""
Utility functions for the GreenCart delivery simulation.

Provides rounding and time manipulation helpers shared by the scoring,
dispatch and dashboard modules.
"""

from __future__ import annotations

import math
import logging
from datetime import datetime, timedelta, timezone
from typing import Union

logger = logging.getLogger(__name__)

Number = Union[int, float]


def round_half_up(value: Number, ndigits: int = 0) -> float:
    """
    Round to ``ndigits`` decimals with halves rounded towards +infinity.

    Python's built-in ``round`` uses banker's rounding (``round(22.5) == 22``).
    Delivery times and money in this system round halves up, so
    22.5 minutes becomes 23 and -2.5 becomes -2.

    Args:
        value: Number to round
        ndigits: Decimal places to keep

    Returns:
        The rounded value (an int-valued float when ndigits == 0)

    Example:
        >>> round_half_up(67.5)
        68.0
        >>> round_half_up(22.5)
        23.0
        >>> round_half_up(156.754, 2)
        156.75
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: Number) -> int:
    """Round half up and return an int (for minutes and whole Rs)."""
    return int(round_half_up(value))


def add_minutes(base: datetime, minutes: Number) -> datetime:
    """
    Add a number of minutes to a datetime.

    Args:
        base: The starting timestamp
        minutes: Number of minutes to add (can be negative)

    Returns:
        A new datetime
    """
    return base + timedelta(minutes=minutes)


def hours_between(later: datetime, earlier: datetime) -> float:
    """Signed difference ``later - earlier`` in hours."""
    return (later - earlier).total_seconds() / 3600


def to_naive_utc(value: datetime) -> datetime:
    """
    Drop the timezone from an aware datetime after converting it to UTC.

    All timestamps in the system are naive so they can be compared with
    each other; naive values are returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into a naive datetime.

    Accepts ``'2025-01-15 18:07:14'``, ``'2025-01-15T18:07:14'``, a
    trailing ``Z`` and explicit offsets. Timestamps carrying a zone are
    converted to UTC (see to_naive_utc).

    Raises:
        ValueError: If the string is not a recognizable timestamp
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def format_time_duration(minutes: float) -> str:
    """
    Format a duration in minutes as a human-readable string.

    Args:
        minutes: Duration in minutes

    Returns:
        Formatted string like "1h 23m" or "45m"
    """
    if minutes < 60:
        return f"{minutes:.0f}m"
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    return f"{hours}h {mins}m"


def safe_percentage(numerator: Number, denominator: Number) -> float:
    """Return ``numerator / denominator * 100``, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return (numerator / denominator) * 100
