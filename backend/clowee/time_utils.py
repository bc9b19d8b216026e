from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from .errors import ValidationError


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()


def parse_iso_date(value, field: str = "date") -> date:
    """
    Parse a calendar date.

    - date instances pass through (datetimes are truncated to their date)
    - "YYYY-MM-DD" strings are parsed
    - anything else raises ValidationError naming the field
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", {"field": field, "value": value})


def parse_optional_date(value, field: str = "date") -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_iso_date(value, field)


def to_iso_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    return d.isoformat()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
