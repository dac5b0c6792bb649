"""
Month key utilities for monthly forecasting.

Key concepts:
  - Month key: a ``"YYYY-MM"`` string (month 01..12).  Month keys sort
    lexicographically in chronological order, so plain string comparison is
    used for before/after checks throughout the package.
  - Label axis: the score-based forecasts are plotted on ``base+1 .. base+horizon``.
  - Reference month: flash reports default to the previous calendar month in
    India Standard Time (UTC+05:30), regardless of server timezone.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")

IST = timezone(timedelta(hours=5, minutes=30))

MAX_LABEL_HORIZON = 24


class InvalidPeriodKey(ValueError):
    """Raised when a period string is not a valid ``YYYY-MM`` month key.

    Attributes:
        value: The rejected input.
    """

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid month key {value!r}: expected 'YYYY-MM' with month 01..12.")


def is_month_key(value: object) -> bool:
    """Return ``True`` if ``value`` is a well-formed ``YYYY-MM`` string."""
    if not isinstance(value, str):
        return False
    match = MONTH_KEY_PATTERN.match(value)
    return bool(match) and 1 <= int(match.group(2)) <= 12


def parse_month_key(value: str) -> tuple[int, int]:
    """Split a month key into ``(year, month)``.

    Raises:
        InvalidPeriodKey: If ``value`` is not a valid month key.
    """
    if not is_month_key(value):
        raise InvalidPeriodKey(value)
    year, month = value.split("-")
    return int(year), int(month)


def validate_month_key(value: str) -> str:
    """Return ``value`` unchanged if valid, otherwise raise ``InvalidPeriodKey``."""
    parse_month_key(value)
    return value


def add_months(base: str, delta: int) -> str:
    """Shift a month key by ``delta`` months (negative moves backwards).

    Examples::

        add_months("2024-11", 3)   # "2025-02"
        add_months("2024-01", -1)  # "2023-12"
    """
    year, month = parse_month_key(base)
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def clamp_label_horizon(horizon: int | None, default: int = 6) -> int:
    """Clamp a label-axis horizon into ``[1, MAX_LABEL_HORIZON]``."""
    if horizon is None:
        horizon = default
    return max(1, min(MAX_LABEL_HORIZON, int(horizon)))


def future_month_labels(base_month: str, horizon: int | None) -> list[str]:
    """Return the score label axis ``base+1 .. base+horizon``.

    ``horizon`` is clamped to ``[1, 24]`` (``None`` means 6).
    """
    count = clamp_label_horizon(horizon)
    return [add_months(base_month, i + 1) for i in range(count)]


def previous_calendar_month_ist(now: datetime | None = None) -> str:
    """Return the calendar month before ``now`` as seen in IST.

    ``now`` defaults to the current UTC time.  Naive datetimes are treated as UTC.
    """
    if now is None:
        now = datetime.now(tz=timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(IST)
    return add_months(f"{local.year:04d}-{local.month:02d}", -1)
