from datetime import datetime, timezone
from typing import Optional

_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def diff_for_humans(dt: datetime, now: Optional[datetime] = None) -> str:
    """
    Relative age of ``dt``, e.g. ``"5 minutes ago"`` or ``"2 days from now"``.

    Uses the largest whole unit; anything under a second reads as one second.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    delta = (now - _as_utc(dt)).total_seconds()
    suffix = "ago" if delta >= 0 else "from now"
    seconds = abs(int(delta))

    for unit, size in _UNITS:
        if seconds >= size:
            count = seconds // size
            break
    else:
        unit, count = "second", 1

    plural = "" if count == 1 else "s"
    return f"{count} {unit}{plural} {suffix}"
