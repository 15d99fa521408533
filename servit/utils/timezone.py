from datetime import date, datetime
from typing import Optional

import pytz

from servit.config import settings

SERVICE_TZ = pytz.timezone(settings.SERVICE_TIMEZONE)
EPOCH = datetime(1970, 1, 1, tzinfo=pytz.utc)


def utcnow():
    """Get current time in UTC"""
    return datetime.now(pytz.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are assumed to be UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def to_service_tz(dt):
    """Convert datetime to the restaurant's service timezone"""
    return as_utc(dt).astimezone(SERVICE_TZ)


def service_date(dt: Optional[datetime] = None) -> date:
    """Calendar date of service for a moment (defaults to now)"""
    return to_service_tz(dt or utcnow()).date()
