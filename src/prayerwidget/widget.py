from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
import logging
from typing import Literal

from .config import WidgetConfig
from .models import CHECKPOINT_ORDER, Checkpoint, PrayerName, Schedule
from .resolver import NONE, resolve_current_prayer, resolve_next_prayer
from .store import KeyValueStore

logger = logging.getLogger(__name__)

PASSTHROUGH_KEYS = ("zone", "date", "day", "hijri")
CURRENT_PRAYER_KEY = "currentPrayer"
NEXT_PRAYER_KEY = "nextPrayer"
NEXT_PRAYER_TIME_KEY = "nextPrayerTime"


def label_key(name: PrayerName) -> str:
    return f"{name.key}Label"


@dataclass(slots=True)
class WidgetSnapshot:
    """Values a widget renders, read fresh from the shared store."""

    schedule: Schedule
    times: dict[PrayerName, str] = field(default_factory=dict)
    labels: dict[PrayerName, str] = field(default_factory=dict)
    fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_store(cls, store: KeyValueStore, placeholder: str = "-") -> "WidgetSnapshot":
        try:
            values = store.snapshot()
        except (OSError, ValueError) as exc:
            logger.warning("Widget store unavailable, rendering empty schedule: %s", exc)
            values = {}
        times: dict[PrayerName, str] = {}
        labels: dict[PrayerName, str] = {}
        for name in CHECKPOINT_ORDER:
            raw = values.get(name.key)
            times[name] = raw.strip() if raw and raw.strip() else placeholder
            labels[name] = values.get(label_key(name)) or name.value
        return cls(
            schedule=Schedule.from_mapping(values),
            times=times,
            labels=labels,
            fields={key: values.get(key, "") for key in PASSTHROUGH_KEYS},
        )


@dataclass(slots=True)
class WidgetState:
    snapshot: WidgetSnapshot
    current: PrayerName | Literal[""]
    next: Checkpoint | None

    def is_current(self, name: PrayerName) -> bool:
        return self.current == name

    def to_store_values(self) -> dict[str, str]:
        next_name = self.next.name.value if self.next else ""
        next_time = self.next.display_time if self.next else ""
        return {
            CURRENT_PRAYER_KEY: self.current.value if self.current else NONE,
            NEXT_PRAYER_KEY: next_name,
            NEXT_PRAYER_TIME_KEY: next_time,
        }


class WidgetRefresher:
    """Run one render cycle: read the store, resolve prayers, write results back."""

    def __init__(self, store: KeyValueStore, config: WidgetConfig | None = None) -> None:
        self.store = store
        self.config = config or WidgetConfig.default()

    def refresh(self, now: time | datetime) -> WidgetState:
        snapshot = WidgetSnapshot.from_store(self.store, self.config.widget.placeholder)
        state = WidgetState(
            snapshot=snapshot,
            current=resolve_current_prayer(snapshot.schedule, now),
            next=resolve_next_prayer(snapshot.schedule, now),
        )
        values = state.to_store_values()
        self.store.update(values)
        logger.debug(
            "Widget refreshed at %s: current=%r next=%r at %r",
            now,
            values[CURRENT_PRAYER_KEY],
            values[NEXT_PRAYER_KEY],
            values[NEXT_PRAYER_TIME_KEY],
        )
        return state
