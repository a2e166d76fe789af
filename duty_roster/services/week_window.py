# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Week window — pure calendar computation, no side effects.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from duty_roster.core.config import settings
from duty_roster.models.domain import DAY_LABELS


def local_now(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE))


def to_local(now: Optional[datetime], tz_name: Optional[str] = None) -> datetime:
    """Express ``now`` in the organization timezone (naive values are taken as local)."""
    if now is None:
        return local_now(tz_name)
    if now.tzinfo is None:
        return now
    return now.astimezone(ZoneInfo(tz_name or settings.TIMEZONE))


def today(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> date:
    return to_local(now, tz_name).date()


def current_week(
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> list[tuple[date, str]]:
    """
    Return the seven (date, day label) pairs of the Monday..Sunday span
    containing ``now``. Sunday closes the week that began on the prior Monday.
    """
    local_date = today(now, tz_name)
    monday = local_date - timedelta(days=local_date.weekday())
    return [(monday + timedelta(days=i), DAY_LABELS[i]) for i in range(7)]


def week_key(dates: list[date]) -> str:
    """Short label for a week, e.g. ``10/19~10/25``."""
    start, end = dates[0], dates[-1]
    return f"{start.month}/{start.day}~{end.month}/{end.day}"


def display_date(value: date) -> str:
    return f"{value.month}/{value.day}"
