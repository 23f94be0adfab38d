# salonbook/core.py
"""Time arithmetic shared by the scheduling engine.

A working day is modelled as minutes since midnight. Appointments never
cross midnight, so every interval lives inside ``[0, 1440)``.
"""

from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from salonbook.config import get_settings
from salonbook.errors import ValidationError

MINUTES_PER_DAY = 24 * 60


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValidationError("Appointments cannot span midnight")
    return time(hour=minutes // 60, minute=minutes % 60)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def end_of(start: time, duration_minutes: int) -> time:
    """Return the time ``duration_minutes`` after ``start`` on the same day."""
    if duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes")
    return from_minutes(to_minutes(start) + duration_minutes)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: back-to-back slots do not conflict
    return start_a < end_b and start_b < end_a


def weekday_number(day: date) -> int:
    """Weekday as stored on schedules: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def round_half_up(value) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_timezone(name: Optional[str], default: str) -> ZoneInfo:
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone {name!r}")


def local_now(tz: ZoneInfo) -> datetime:
    """Current wall-clock time in ``tz``, returned naive like stored appointment times."""
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def hours_until(now: datetime, day: date, start: time) -> float:
    return (datetime.combine(day, start) - now).total_seconds() / 3600


def merchant_now(merchant, now: Optional[datetime] = None) -> datetime:
    """``now`` if given, else the current wall-clock time in the merchant's time zone."""
    if now is not None:
        return now
    tz = resolve_timezone(getattr(merchant, "timezone", None), get_settings().DEFAULT_TIMEZONE)
    return local_now(tz)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}min"
