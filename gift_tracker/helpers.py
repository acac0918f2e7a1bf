"""Shared time helpers used by the refresh loop, queries and the web app."""

import re
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")


def round_time(t: datetime, interval: int) -> datetime:
    """Truncate `t` to the start of its `interval`-second bucket (UTC)."""
    ts = int(t.timestamp())
    if interval <= 0:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    return datetime.fromtimestamp(ts - ts % interval, tz=timezone.utc)


def parse_duration(value: str | timedelta) -> timedelta:
    """Parse a duration like "24h", "90m", "1h30m" or "20000h".

    A timedelta is passed through. Raises ValueError on anything else.
    """
    if isinstance(value, timedelta):
        return value
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")
    pos = 0
    total = timedelta()
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def epoch_seconds(t: datetime | None) -> int:
    return int(t.timestamp()) if t else 0


def from_epoch(seconds) -> datetime:
    """Epoch seconds to an aware UTC datetime. Raises ValueError when out of range."""
    try:
        return datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError(f"timestamp out of range: {seconds!r}") from e


def format_time(t: datetime | None) -> str:
    """Format as "2026-10-18 14:20" (minutes resolution), or "never"."""
    if t is None:
        return "never"
    return t.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M")


def relative_time(t: datetime | None, now: datetime | None = None) -> str:
    """Convert a timestamp to human-readable relative time."""
    if t is None:
        return "never"
    now = now or datetime.now(timezone.utc)
    seconds = int((now - t).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    return t.strftime("%b %d")
