from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import tomllib

from .models import CHECKPOINT_ORDER, Schedule
from .validation import ScheduleValidationError, ScheduleValidator

DEFAULT_PRAYERS = {
    "fajr": "05:50",
    "syuruk": "07:15",
    "dhuhr": "13:07",
    "asr": "16:28",
    "maghrib": "19:20",
    "isha": "20:35",
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _default_config_root() -> Path:
    return Path.home() / ".config" / "prayerwidget"


def _default_store_path() -> Path:
    return Path.home() / ".cache" / "prayerwidget" / "widget_data.json"


def _toml_string(value: object) -> str:
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace("\"", "\\\"")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f"\"{escaped}\""


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass(slots=True)
class WidgetSettings:
    store_path: Path = field(default_factory=_default_store_path)
    placeholder: str = "-"
    log_level: str = "INFO"


@dataclass(slots=True)
class LocationSettings:
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    zone: str = ""


@dataclass(slots=True)
class PrayerSettings:
    provider: str = "aladhan"
    calculation_method: str = "JAKIM"
    madhab: str = "Shafi"


@dataclass(slots=True)
class WidgetConfig:
    widget: WidgetSettings
    location: LocationSettings
    prayer_settings: PrayerSettings
    prayers: Schedule

    @classmethod
    def default(cls) -> "WidgetConfig":
        return cls(
            widget=WidgetSettings(),
            location=LocationSettings(),
            prayer_settings=PrayerSettings(),
            prayers=Schedule.from_mapping(DEFAULT_PRAYERS),
        )

    def to_dict(self) -> dict:
        return {
            "widget": {
                "store_path": str(self.widget.store_path),
                "placeholder": self.widget.placeholder,
                "log_level": self.widget.log_level,
            },
            "location": {
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "timezone": self.location.timezone,
                "zone": self.location.zone,
            },
            "prayer_settings": {
                "provider": self.prayer_settings.provider,
                "calculation_method": self.prayer_settings.calculation_method,
                "madhab": self.prayer_settings.madhab,
            },
            "prayers": self.prayers.to_mapping(),
        }


class ConfigManager:
    """Simple TOML configuration loader."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or (_default_config_root() / "config.toml")
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self._errors: list[str] = []

    def errors(self) -> list[str]:
        return list(self._errors)

    def load(self) -> WidgetConfig:
        self._errors.clear()
        if not self.config_path.exists():
            config = WidgetConfig.default()
            self._write(config)
            return config

        try:
            with self.config_path.open("rb") as handle:
                raw = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            self._errors.append(f"Invalid config file: {exc}")
            return WidgetConfig.default()

        widget_cfg = raw.get("widget", {})
        location_cfg = raw.get("location", {})
        prayer_cfg = raw.get("prayer_settings", {})

        def _float_or_none(value: float | str | None) -> float | None:
            if value in (None, "", "nan"):
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                self._errors.append(f"Invalid coordinate in config: {value!r}")
                return None

        prayers_raw = {**DEFAULT_PRAYERS, **raw.get("prayers", {})}
        prayers = Schedule.from_mapping(prayers_raw)
        try:
            ScheduleValidator.validate(prayers)
        except ScheduleValidationError as exc:
            self._errors.extend(f"Invalid prayer time in config: {issue}" for issue in exc.issues)
            prayers = Schedule.from_mapping(DEFAULT_PRAYERS)

        store_path_value = widget_cfg.get("store_path") or str(_default_store_path())
        return WidgetConfig(
            widget=WidgetSettings(
                store_path=Path(store_path_value).expanduser(),
                placeholder=str(widget_cfg.get("placeholder", "-")),
                log_level=str(widget_cfg.get("log_level", "INFO")),
            ),
            location=LocationSettings(
                latitude=_float_or_none(location_cfg.get("latitude")),
                longitude=_float_or_none(location_cfg.get("longitude")),
                timezone=location_cfg.get("timezone") or None,
                zone=str(location_cfg.get("zone", "")),
            ),
            prayer_settings=PrayerSettings(
                provider=prayer_cfg.get("provider", "aladhan"),
                calculation_method=str(prayer_cfg.get("calculation_method", "JAKIM")),
                madhab=prayer_cfg.get("madhab", "Shafi"),
            ),
            prayers=prayers,
        )

    def _write(self, config: WidgetConfig) -> None:
        data = config.to_dict()
        lines = [
            "[widget]",
            f"store_path = {_toml_string(data['widget']['store_path'])}",
            f"placeholder = {_toml_string(data['widget']['placeholder'])}",
            f"log_level = {_toml_string(data['widget']['log_level'])}",
            "",
            "[location]",
        ]
        if data["location"]["latitude"] is not None:
            lines.append(f"latitude = {data['location']['latitude']}")
        if data["location"]["longitude"] is not None:
            lines.append(f"longitude = {data['location']['longitude']}")
        lines.append(f"timezone = {_toml_string(data['location']['timezone'] or '')}")
        lines.append(f"zone = {_toml_string(data['location']['zone'])}")
        lines.extend([
            "",
            "[prayer_settings]",
            f"provider = {_toml_string(data['prayer_settings']['provider'])}",
            f"calculation_method = {_toml_string(data['prayer_settings']['calculation_method'])}",
            f"madhab = {_toml_string(data['prayer_settings']['madhab'])}",
            "",
            "[prayers]",
        ])
        for name in CHECKPOINT_ORDER:
            lines.append(f"{name.key} = {_toml_string(data['prayers'][name.key])}")
        self.config_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def save(self, config: WidgetConfig) -> None:
        self._write(config)
