"""
Calendar-day policy for learning activity.

Every ledger and streak computation takes "today" as a parameter; this module
is the only place that reads the wall clock. Days are cut at midnight in
settings.ACTIVITY_TIMEZONE (UTC unless configured).
"""

from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from tracker_api.config import settings


def activity_timezone() -> ZoneInfo:
    return ZoneInfo(settings.ACTIVITY_TIMEZONE)


def day_key(value: Union[date, datetime], tz: Optional[ZoneInfo] = None) -> date:
    """
    Normalize a timestamp to its calendar day.

    Naive datetimes are taken to be UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz or activity_timezone()).date()
    return value


def get_today() -> date:
    """FastAPI dependency for the current activity day."""
    return day_key(datetime.now(timezone.utc))
