"""Comparing an inverter's clock with ours and building the values to reset it."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Sequence

TIME_REGISTER = 12
SYNC_LIMIT = timedelta(seconds=120)


def inverter_datetime(values: Sequence[int]) -> datetime:
    """The time in the inverter's clock registers, treated as UTC.

    The inverter keeps local time; calling it UTC sidesteps ambiguous conversions.
    """
    if len(values) < 6:
        raise ValueError(f"need six time values, got {list(values)!r}")
    year, month, day, hour, minute, second = values[:6]
    return datetime(2000 + year, month, day, hour, minute, second, tzinfo=timezone.utc)


def local_now() -> datetime:
    """The current local wall-clock time, labelled as UTC to compare with the inverter."""
    now = datetime.now(timezone.utc)
    offset = now.astimezone().utcoffset() or timedelta(0)
    return now + offset


def needs_sync(inverter_time: datetime, now: datetime) -> bool:
    """Whether the two times differ by more than the allowed limit."""
    return abs(inverter_time - now) > SYNC_LIMIT


def set_time_values(now: datetime) -> list[int]:
    """The six register bytes that set the inverter clock to now."""
    year = now.year - 2000
    if not 0 <= year <= 0xFF:
        raise ValueError(f"year {now.year} cannot be stored by the inverter")
    return [year, now.month, now.day, now.hour, now.minute, now.second]