"""
Work-shift dates for submitted forms.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

SHIFT_HOURS = {"1": 13, "2": 16, "3": 19}

# Shift 3 runs past midnight
NIGHT_SHIFT = "3"
NIGHT_SHIFT_CUTOFF_HOUR = 5


@dataclass(frozen=True)
class DateShift:
    date: str
    date_time: str


def shift_datetime(shift: Union[str, int, None], now: Optional[datetime] = None) -> datetime:
    """
    Start time of a work shift on the current day.

    Shift 3 belongs to the previous day between 00:00 and 05:00. Unknown
    shifts fall back to midnight.
    """
    now = now or datetime.now()
    shift = str(shift) if shift is not None else ""

    if shift == NIGHT_SHIFT and now.hour < NIGHT_SHIFT_CUTOFF_HOUR:
        now = now - timedelta(days=1)

    hour = SHIFT_HOURS.get(shift, 0)
    return now.replace(hour=hour, minute=0, second=0, microsecond=0)


def format_date_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def format_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def date_shift(shift: Union[str, int, None], now: Optional[datetime] = None) -> DateShift:
    """Both formats of a shift date; empty strings when no shift is chosen."""
    if shift in (None, ""):
        return DateShift("", "")
    value = shift_datetime(shift, now)
    return DateShift(format_date(value), format_date_time(value))
