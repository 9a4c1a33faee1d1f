from __future__ import annotations

from dataclasses import dataclass
from datetime import time as time_type
from enum import Enum
import logging
from typing import Iterator, Mapping

from .timeutils import format_hhmm, to_minutes, try_parse_hhmm

logger = logging.getLogger(__name__)


class PrayerName(str, Enum):
    FAJR = "Fajr"
    SYURUK = "Syuruk"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    @property
    def key(self) -> str:
        return self.value.lower()

    @property
    def is_prayer(self) -> bool:
        return self is not PrayerName.SYURUK


# Chronological order of a day's checkpoints.
CHECKPOINT_ORDER: tuple[PrayerName, ...] = (
    PrayerName.FAJR,
    PrayerName.SYURUK,
    PrayerName.DHUHR,
    PrayerName.ASR,
    PrayerName.MAGHRIB,
    PrayerName.ISHA,
)

PRAYER_ORDER: tuple[PrayerName, ...] = tuple(name for name in CHECKPOINT_ORDER if name.is_prayer)


@dataclass(frozen=True, slots=True)
class Checkpoint:
    name: PrayerName
    time: time_type | None = None

    @property
    def minutes(self) -> int | None:
        if self.time is None:
            return None
        return to_minutes(self.time)

    @property
    def display_time(self) -> str:
        return format_hhmm(self.time) if self.time is not None else ""


@dataclass(frozen=True, slots=True)
class Schedule:
    """One day's checkpoints, always held in chronological order."""

    checkpoints: tuple[Checkpoint, ...]

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "Schedule":
        checkpoints = []
        for name in CHECKPOINT_ORDER:
            raw = values.get(name.key)
            parsed = try_parse_hhmm(raw)
            if parsed is None and raw not in (None, ""):
                logger.debug("Ignoring unparseable %s time %r", name.key, raw)
            checkpoints.append(Checkpoint(name=name, time=parsed))
        return cls(checkpoints=tuple(checkpoints))

    @classmethod
    def empty(cls) -> "Schedule":
        return cls.from_mapping({})

    def get(self, name: PrayerName) -> Checkpoint:
        for checkpoint in self.checkpoints:
            if checkpoint.name is name:
                return checkpoint
        return Checkpoint(name=name)

    def prayers(self) -> Iterator[Checkpoint]:
        return (checkpoint for checkpoint in self.checkpoints if checkpoint.name.is_prayer)

    def to_mapping(self) -> dict[str, str]:
        return {checkpoint.name.key: checkpoint.display_time for checkpoint in self.checkpoints}
