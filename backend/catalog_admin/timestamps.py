"""
Timestamp helpers.

Rows store naive UTC datetimes. JSON carries ISO-8601 strings with a trailing
"Z", including image created_at values produced before a product is saved.
"""
from __future__ import annotations

from datetime import datetime, timezone


_UTC_OFFSET = "+00:00"


def now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_z(dt: datetime | None) -> str | None:
    """Second-precision ISO-8601 with 'Z'; naive input is taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def now_z() -> str:
    return format_z(now_utc())


def parse_timestamp(value) -> datetime | None:
    """
    Naive UTC datetime from a datetime or an ISO-8601 string ("Z" or an
    explicit offset). None / blank gives None; anything else unparsable
    raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text[-1] in ("Z", "z"):
            text = text[:-1] + _UTC_OFFSET
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
