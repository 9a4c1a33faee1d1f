from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
import logging
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx  # type: ignore[import]
from pyIslam.praytimes import LIST_FAJR_ISHA_METHODS, Prayer as PyIslamPrayer, PrayerConf  # type: ignore[import]

from ..config import LocationSettings, PrayerSettings, WidgetConfig
from ..models import Schedule
from ..store import KeyValueStore
from ..validation import ScheduleValidator

logger = logging.getLogger(__name__)

ALADHAN_API = "https://api.aladhan.com/v1/timings/{day}"

ALADHAN_METHODS = {
    "Shia Ithna-Ansari": 0,
    "Karachi": 1,
    "Islamic Society of North America": 2,
    "MuslimWorldLeague": 3,
    "UmmAlQura": 4,
    "EgyptianGeneralAuthority": 5,
    "Singapore": 11,
    "Diyanet": 13,
    "JAKIM": 17,
    "Kemenag": 20,
}

PYISLAM_METHODS = {
    "karachi": 1,
    "muslimworldleague": 2,
    "egyptiangeneralauthority": 3,
    "ummalqura": 4,
    "makkah": 4,
    "islamicsocietyofnorthamerica": 5,
    "uoif": 6,
    "islamicreligiouscouncilofsingapore": 7,
    "muis": 7,
    "jakim": 7,
    "kemenag": 7,
    "russia": 8,
    "fixedishaatimeinterval90min": 9,
}


@dataclass(slots=True)
class GeoLocation:
    latitude: float
    longitude: float
    timezone: str | None = None

    @classmethod
    def from_settings(cls, settings: LocationSettings) -> "GeoLocation | None":
        if settings.latitude is None or settings.longitude is None:
            return None
        return cls(
            latitude=settings.latitude,
            longitude=settings.longitude,
            timezone=settings.timezone,
        )


class PrayerProvider(Protocol):
    name: str

    def fetch(self, day: date, location: GeoLocation, settings: PrayerSettings) -> dict[str, str]:
        ...


class AladhanProvider:
    name = "aladhan"

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def fetch(self, day: date, location: GeoLocation, settings: PrayerSettings) -> dict[str, str]:
        method_setting = settings.calculation_method
        method_value = ALADHAN_METHODS.get(method_setting, method_setting)
        try:
            method_value = int(method_value)
        except (TypeError, ValueError):
            logger.warning("Unknown Aladhan method %r, using MuslimWorldLeague", method_setting)
            method_value = 3
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "method": method_value,
            "school": 1 if settings.madhab.lower() == "hanafi" else 0,
        }
        url = ALADHAN_API.format(day=day.strftime("%d-%m-%Y"))
        response = httpx.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        timings = payload.get("data", {}).get("timings", {})
        if not timings:
            raise ValueError("Unexpected response from Aladhan API")
        return {
            "fajr": _sanitize_time(timings.get("Fajr", "")),
            "syuruk": _sanitize_time(timings.get("Sunrise", "")),
            "dhuhr": _sanitize_time(timings.get("Dhuhr", "")),
            "asr": _sanitize_time(timings.get("Asr", "")),
            "maghrib": _sanitize_time(timings.get("Maghrib", "")),
            "isha": _sanitize_time(timings.get("Isha", "")),
        }


class PyIslamProvider:
    name = "pyislam"

    def fetch(self, day: date, location: GeoLocation, settings: PrayerSettings) -> dict[str, str]:
        tz = _resolve_timezone(location.timezone)
        conf = PrayerConf(
            longitude=location.longitude,
            latitude=location.latitude,
            timezone=_offset_minutes(tz, day) / 60,
            angle_ref=_map_pyislam_method(settings.calculation_method),
            asr_madhab=2 if settings.madhab.lower() == "hanafi" else 1,
            enable_summer_time=_is_dst(tz, day),
        )
        calculator = PyIslamPrayer(conf, datetime(day.year, day.month, day.day))
        return {
            "fajr": _format_pyislam_time(calculator.fajr_time()),
            "syuruk": _format_pyislam_time(calculator.sherook_time()),
            "dhuhr": _format_pyislam_time(calculator.dohr_time()),
            "asr": _format_pyislam_time(calculator.asr_time()),
            "maghrib": _format_pyislam_time(calculator.maghreb_time()),
            "isha": _format_pyislam_time(calculator.ishaa_time()),
        }


class PrayerService:
    """Publishes a day's prayer times into the widget store for the widgets to read."""

    def __init__(self, config: WidgetConfig, providers: dict[str, PrayerProvider] | None = None) -> None:
        self.config = config
        if providers is None:
            pyislam_provider = PyIslamProvider()
            providers = {
                "aladhan": AladhanProvider(),
                "pyislam": pyislam_provider,
                "praytimes": pyislam_provider,
            }
        self.providers = providers

    def get_schedule(self, day: date) -> Schedule:
        provider_name = self.config.prayer_settings.provider
        provider = self.providers.get(provider_name)
        if provider is None:
            logger.warning("Unknown prayer provider %r, using configured times", provider_name)
            return self.config.prayers
        location = GeoLocation.from_settings(self.config.location)
        if location is None:
            logger.warning("No latitude/longitude configured, using configured times")
            return self.config.prayers
        try:
            values = provider.fetch(day, location, self.config.prayer_settings)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Provider %s failed for %s, using configured times: %s", provider.name, day, exc)
            return self.config.prayers
        return Schedule.from_mapping(values)

    def publish(self, store: KeyValueStore, day: date | None = None) -> Schedule:
        day = day or date.today()
        schedule = self.get_schedule(day)
        for warning in ScheduleValidator.validate(schedule):
            logger.warning(warning)
        values = schedule.to_mapping()
        values["date"] = day.isoformat()
        if self.config.location.zone:
            values["zone"] = self.config.location.zone
        store.update(values)
        logger.info("Published prayer times for %s", day.isoformat())
        return schedule


def _sanitize_time(value: str) -> str:
    value = value.strip()
    if " " in value:
        value = value.split(" ", 1)[0]
    if "+" in value:
        value = value.split("+", 1)[0]
    return value


def _resolve_timezone(tz_name: str | None) -> timezone | ZoneInfo:
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using local time", tz_name)
    return datetime.now().astimezone().tzinfo or timezone.utc


def _offset_minutes(tz: timezone | ZoneInfo, day: date) -> int:
    dt = datetime(day.year, day.month, day.day, tzinfo=tz)
    offset = dt.utcoffset() or timedelta()
    return int(offset.total_seconds() // 60)


def _is_dst(tz: timezone | ZoneInfo, day: date) -> bool:
    dt = datetime(day.year, day.month, day.day, tzinfo=tz)
    delta = dt.dst()
    return bool(delta and delta.total_seconds())


def _normalize_method_key(method_name: str) -> str:
    return "".join(ch for ch in method_name.lower() if ch.isalnum())


def _map_pyislam_method(method_name: str | None) -> int:
    default_method = 2
    if not method_name:
        return default_method
    try:
        method_id = int(method_name)
    except (TypeError, ValueError):
        method_id = None
    if isinstance(method_id, int) and 1 <= method_id <= len(LIST_FAJR_ISHA_METHODS):
        return method_id
    return PYISLAM_METHODS.get(_normalize_method_key(method_name), default_method)


def _format_pyislam_time(value: time | datetime | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value).strip()
