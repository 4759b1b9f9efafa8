"""
Calendar helpers.
"Today" and "this month" are the company's local day and month, expressed as
naive UTC bounds (timestamp columns read naive values as UTC).
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
import pytz
from ..config import settings


def _tz(timezone_str: Optional[str] = None):
    try:
        return pytz.timezone(timezone_str or settings.tz_default)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def utc_to_local(utc_datetime: datetime, timezone_str: Optional[str] = None) -> datetime:
    """
    Convert a UTC datetime to the local timezone.

    Args:
        utc_datetime: UTC datetime (naive values are taken as UTC)
        timezone_str: Timezone string (defaults to TZ_DEFAULT)

    Returns:
        Local datetime (timezone-aware)
    """
    if utc_datetime.tzinfo is None:
        utc_datetime = utc_datetime.replace(tzinfo=pytz.UTC)
    return utc_datetime.astimezone(_tz(timezone_str))


def local_to_utc(local_datetime: datetime, timezone_str: Optional[str] = None) -> datetime:
    """Localize a naive local datetime and return it as naive UTC."""
    tz = _tz(timezone_str)
    if local_datetime.tzinfo is None:
        local_datetime = tz.localize(local_datetime)
    return local_datetime.astimezone(pytz.UTC).replace(tzinfo=None)


def local_today(now: Optional[datetime] = None, timezone_str: Optional[str] = None) -> date:
    return utc_to_local(now or datetime.now(timezone.utc), timezone_str).date()


def day_bounds(now: Optional[datetime] = None, timezone_str: Optional[str] = None) -> Tuple[datetime, datetime]:
    """[start, end) of the local day containing ``now``, as naive UTC."""
    today = local_today(now, timezone_str)
    start = local_to_utc(datetime.combine(today, time.min), timezone_str)
    end = local_to_utc(datetime.combine(today + timedelta(days=1), time.min), timezone_str)
    return start, end


def month_start(now: Optional[datetime] = None, timezone_str: Optional[str] = None) -> date:
    return local_today(now, timezone_str).replace(day=1)
