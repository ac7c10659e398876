from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pytz

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError.for_field(field_name, f"{field_name} must use the YYYY-MM-DD format")


def get_timezone(timezone_str: Optional[str]) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(timezone_str or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(DEFAULT_TIMEZONE)


def utc_now() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch it; services accept ``now`` explicitly as well.
    """
    return datetime.now(pytz.UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt


def to_local(dt: datetime, timezone_str: Optional[str]) -> datetime:
    return ensure_aware(dt).astimezone(get_timezone(timezone_str))


def local_today(now: datetime, timezone_str: Optional[str]) -> date:
    return to_local(now, timezone_str).date()


def to_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC for DATETIME columns."""
    if dt is None:
        return None
    return ensure_aware(dt).astimezone(pytz.UTC).replace(tzinfo=None)


def from_db(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return ensure_aware(dt)
