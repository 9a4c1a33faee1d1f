from __future__ import annotations

from datetime import datetime, time

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> time:
    value = value.strip()
    parts: list[str]
    if ":" in value:
        parts = value.split(":", 1)
    elif "." in value:
        parts = value.split(".", 1)
    else:
        raise ValueError(f"Unsupported time format: {value}")
    if not (parts[0].strip().isdigit() and parts[1].strip().isdigit()):
        raise ValueError(f"Unsupported time format: {value}")
    hour = int(parts[0])
    minute = int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time value: {value}")
    return time(hour=hour, minute=minute)


def try_parse_hhmm(value: object) -> time | None:
    """Parse ``value`` as HH:MM, returning ``None`` for anything unusable."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parse_hhmm(value)
    except ValueError:
        return None


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: time | datetime) -> int:
    if isinstance(value, datetime):
        value = value.time()
    return value.hour * 60 + value.minute
