from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def iso_date(d: date | datetime | str) -> str:
    """Normalize to `YYYY-MM-DD`.

    Accepts dates, datetimes and ISO-8601 strings of either form (for example
    `2024-01-05` or `2024-01-05T10:00:00.000Z`). Offset-aware datetimes are
    converted to UTC first. Raises ValueError for unparseable strings.
    """
    if isinstance(d, str):
        s = d.strip()
        if len(s) <= 10:
            return date.fromisoformat(s).isoformat()
        d = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if isinstance(d, datetime):
        if d.tzinfo is not None:
            d = d.astimezone(timezone.utc)
        return d.date().isoformat()
    if isinstance(d, date):
        return d.isoformat()
    raise ValueError(f"not a date: {d!r}")
