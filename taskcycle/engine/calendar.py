"""Calendar helpers shared by the expiration and recurrence rules.

All day boundaries are computed in UTC. Instants are handled as naive UTC
datetimes (the storage convention); aware datetimes are converted first.
"""

import re
from datetime import datetime, time, timezone
from typing import Optional

END_OF_DAY = time(23, 59, 59, 999000)

# "2:30 PM", "12:05am", "14:30"
_DUE_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize a datetime to naive UTC."""
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def end_of_day(dt: datetime) -> datetime:
    """Return 23:59:59.999 of the (UTC) calendar day containing dt."""
    return datetime.combine(to_utc_naive(dt).date(), END_OF_DAY)


def weekday_index(dt: datetime) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6 (the ordinal stored on weekly tasks)."""
    return to_utc_naive(dt).isoweekday() % 7


def parse_due_time(value: Optional[str]) -> Optional[time]:
    """Parse a wall-clock due time.

    Accepts 12-hour "H:MM AM/PM" and 24-hour "HH:MM". Anything unparsable
    returns None so callers fall back to the date-only rule.
    """
    if not value:
        return None
    match = _DUE_TIME_RE.match(value)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(3)
    if minutes > 59:
        return None

    if period:
        if not 1 <= hours <= 12:
            return None
        period = period.upper()
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        return None

    return time(hours, minutes)
