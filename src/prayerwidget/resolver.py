"""Work out which prayer window a moment of the day falls into.

Prayer windows are half-open intervals ``[checkpoint_i, checkpoint_i+1)``:
the most recently passed prayer checkpoint names the active window. Some
windows close before the next prayer begins; those are listed in
``CLOSING_BOUNDARIES`` (Fajr ends at sunrise, leaving no current prayer
until Dhuhr). Isha has no closing boundary and stays current until the end
of the day.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Final, Literal

from .models import PRAYER_ORDER, Checkpoint, PrayerName, Schedule
from .timeutils import to_minutes

NONE: Final = ""

CLOSING_BOUNDARIES: Final[dict[PrayerName, PrayerName]] = {
    PrayerName.FAJR: PrayerName.SYURUK,
}


def _has_passed(checkpoint: Checkpoint, now_minutes: int) -> bool:
    minutes = checkpoint.minutes
    return minutes is not None and now_minutes >= minutes


def resolve_current_prayer(schedule: Schedule, now: time | datetime) -> PrayerName | Literal[""]:
    now_minutes = to_minutes(now)
    current: PrayerName | Literal[""] = NONE
    for name in PRAYER_ORDER:
        if _has_passed(schedule.get(name), now_minutes):
            current = name
    if current:
        closing = CLOSING_BOUNDARIES.get(current)
        if closing is not None and _has_passed(schedule.get(closing), now_minutes):
            return NONE
    return current


def resolve_next_prayer(schedule: Schedule, now: time | datetime) -> Checkpoint | None:
    """Return the next prayer checkpoint strictly after ``now``.

    Once Isha has begun the next prayer is the following day's Fajr, which is
    reported with today's Fajr time.
    """
    now_minutes = to_minutes(now)
    known = [checkpoint for checkpoint in schedule.prayers() if checkpoint.minutes is not None]
    for checkpoint in known:
        if checkpoint.minutes > now_minutes:
            return checkpoint
    if not known:
        return None
    fajr = schedule.get(PrayerName.FAJR)
    return fajr if fajr.time is not None else known[0]
