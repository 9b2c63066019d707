"""
Clinic calendar helpers.

"Today" is always the current date in the clinic's timezone, never the
server's local date, so queries around midnight hit the right day.
"""

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from frontdesk.config import get_settings


def clinic_timezone(name: Optional[str] = None) -> ZoneInfo:
    """Resolve the configured clinic timezone."""
    return ZoneInfo(name or get_settings().clinic_timezone)


def clinic_today(tz: Optional[ZoneInfo] = None, now: Optional[datetime] = None) -> date:
    """
    Current calendar day in the clinic timezone.

    Args:
        tz: Timezone to resolve in (defaults to the configured clinic timezone)
        now: Reference instant; naive values are taken as UTC

    Returns:
        The clinic's calendar date at that instant
    """
    tz = tz or clinic_timezone()
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def clinic_day_of(moment: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Calendar day an instant falls on in the clinic timezone."""
    return clinic_today(tz=tz, now=moment)


def clinic_datetime(day: date, hour: int, minute: int = 0, tz: Optional[ZoneInfo] = None) -> datetime:
    """Timezone-aware wall-clock time on a clinic day."""
    tz = tz or clinic_timezone()
    return datetime.combine(day, time(hour, minute), tzinfo=tz)


def format_day(day: date) -> str:
    """ISO calendar date (YYYY-MM-DD), as used in record store searches."""
    return day.isoformat()
