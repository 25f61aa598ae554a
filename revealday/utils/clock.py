"""
Countdown arithmetic shared by the server and the client poller.

Remaining time is always recomputed from the target instant and a fresh
"now"; nothing here keeps state between calls.
"""
import math
from datetime import datetime, timezone
from typing import NamedTuple

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


class TimeRemaining(NamedTuple):
    days: int
    hours: int
    is_expired: bool


EXPIRED = TimeRemaining(days=0, hours=0, is_expired=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value) -> datetime | None:
    """
    Parse an ISO-8601 string (or pass through a datetime) as an aware datetime.
    Naive values are read as UTC. Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_epoch_ms(ms: int | float) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def remaining(scheduled_at, now: datetime | None = None) -> TimeRemaining:
    """
    Days and hours left until ``scheduled_at``, rounding the sub-day part up
    so the display never under-counts (14h30m shows as 15h).
    """
    target = parse_instant(scheduled_at)
    if target is None:
        return EXPIRED

    now = parse_instant(now) if now is not None else utcnow()
    if now is None or target <= now:
        return EXPIRED

    total_hours = (target - now).total_seconds() / SECONDS_PER_HOUR
    days = math.floor(total_hours / HOURS_PER_DAY)
    hours = math.ceil(total_hours - days * HOURS_PER_DAY)

    if hours >= HOURS_PER_DAY:
        days += 1
        hours = 0

    return TimeRemaining(days=max(0, days), hours=max(0, hours), is_expired=False)
