"""
Timestamp helpers.

Every timestamp Motostock stores (imports, transfer stages, sales, sessions,
log entries) is naive UTC. Conversion to and from wire strings happens only
here.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-03-01", "2026-03-01T09:30" and "2026-03-01T09:30:00Z" style input
    to naive UTC. Offsets are converted; values without one are taken as UTC.
    Blank input is None. Anything else raises ValueError.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Whole-second ISO-8601 with a trailing Z; naive input is UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def to_iso_date(value: Union[date, str, None]) -> Optional[str]:
    """SQL date() returns a string on SQLite and a date elsewhere."""
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]
