"""
Timezone utility functions for the Weekly Pick'em application
"""

from datetime import datetime, timezone

import pytz


def get_app_timezone(timezone_name="UTC"):
    """Resolve a configured timezone name, falling back to UTC"""
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def get_utc_time():
    """Get current time in UTC"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """Return an aware UTC datetime; naive values are assumed to be UTC"""
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_naive_utc(dt):
    """Convert a datetime to naive UTC for storage"""
    if dt is None:
        return None

    return ensure_utc(dt).replace(tzinfo=None)


def parse_timestamp(value):
    """
    Parse a provider timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (with or without a trailing ``Z``) and unix
    epoch seconds. Returns None for anything unparseable.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None
