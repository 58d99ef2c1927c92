"""
Timezone-aware datetime utilities.

SQLite hands back naive datetimes, so everything read from the store goes
through ensure_utc before it is compared with the clock.
"""

import math
from datetime import datetime, timezone
from typing import Optional

# UTC timezone constant
UTC = timezone.utc

_SECONDS_PER_DAY = 24 * 60 * 60


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces datetime.utcnow() which is deprecated in Python 3.12+.
    """
    return datetime.now(UTC)


def parse_iso_to_utc(iso_string: str) -> datetime:
    """
    Parse ISO datetime string to UTC timezone-aware datetime.

    Handles "Z" suffixes, explicit offsets, and naive strings (assumed UTC).

    Raises:
        ValueError: If the string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")
    dt = datetime.fromisoformat(normalized)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def days_until(target: datetime, now: Optional[datetime] = None) -> int:
    """
    Whole days from now until target, rounded up.

    A deadline 1 hour away is 1 day away; one that passed 1 hour ago is 0.
    """
    now = now or now_utc()
    delta = ensure_utc(target) - ensure_utc(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)
