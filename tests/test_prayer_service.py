from __future__ import annotations

from datetime import date, time
import unittest
from unittest.mock import MagicMock, patch

import httpx

from prayerwidget.config import PrayerSettings, WidgetConfig
from prayerwidget.models import PrayerName
from prayerwidget.services.prayer import (
    AladhanProvider,
    GeoLocation,
    PrayerService,
    PyIslamProvider,
    _map_pyislam_method,
    _sanitize_time,
)
from prayerwidget.store import MemoryStore
from prayerwidget.validation import ScheduleValidationError


DAY_VALUES = {
    "fajr": "05:50",
    "syuruk": "07:15",
    "dhuhr": "13:07",
    "asr": "16:28",
    "maghrib": "19:20",
    "isha": "20:35",
}


class DummyProvider:
    name = "aladhan"

    def __init__(self, values: dict[str, str] | None = None, error: Exception | None = None) -> None:
        self.values = values or DAY_VALUES
        self.error = error
        self.calls: list[date] = []

    def fetch(self, day, location, settings):
        self.calls.append(day)
        if self.error is not None:
            raise self.error
        return dict(self.values)


def _location() -> GeoLocation:
    return GeoLocation(latitude=3.139, longitude=101.6869, timezone="Asia/Kuala_Lumpur")


def _located_config() -> WidgetConfig:
    config = WidgetConfig.default()
    config.location.latitude = 3.139
    config.location.longitude = 101.6869
    config.location.timezone = "Asia/Kuala_Lumpur"
    return config


class AladhanProviderTests(unittest.TestCase):
    def test_parses_timings(self) -> None:
        response = MagicMock()
        response.json.return_value = {
            "data": {
                "timings": {
                    "Fajr": "05:50 (+08)",
                    "Sunrise": "07:15",
                    "Dhuhr": "13:07",
                    "Asr": "16:28",
                    "Maghrib": "19:20",
                    "Isha": "20:35",
                }
            }
        }
        with patch("prayerwidget.services.prayer.httpx.get", return_value=response) as get:
            values = AladhanProvider().fetch(date(2024, 3, 11), _location(), PrayerSettings())
        self.assertEqual(values, DAY_VALUES)
        url = get.call_args.args[0]
        self.assertTrue(url.endswith("/11-03-2024"))
        self.assertEqual(get.call_args.kwargs["params"]["method"], 17)
        self.assertEqual(get.call_args.kwargs["params"]["school"], 0)

    def test_empty_payload_is_an_error(self) -> None:
        response = MagicMock()
        response.json.return_value = {"data": {}}
        with patch("prayerwidget.services.prayer.httpx.get", return_value=response):
            with self.assertRaises(ValueError):
                AladhanProvider().fetch(date(2024, 3, 11), _location(), PrayerSettings())

    def test_sanitize_time(self) -> None:
        self.assertEqual(_sanitize_time(" 05:50 (+08) "), "05:50")
        self.assertEqual(_sanitize_time("05:50+08"), "05:50")


class PyIslamProviderTests(unittest.TestCase):
    def test_formats_calculator_times(self) -> None:
        calculator = MagicMock()
        calculator.fajr_time.return_value = time(5, 50)
        calculator.sherook_time.return_value = time(7, 15)
        calculator.dohr_time.return_value = time(13, 7)
        calculator.asr_time.return_value = time(16, 28)
        calculator.maghreb_time.return_value = time(19, 20)
        calculator.ishaa_time.return_value = time(20, 35)
        settings = PrayerSettings(provider="pyislam")
        with patch("prayerwidget.services.prayer.PyIslamPrayer", return_value=calculator), \
                patch("prayerwidget.services.prayer.PrayerConf") as conf:
            values = PyIslamProvider().fetch(date(2024, 3, 11), _location(), settings)
        self.assertEqual(values, DAY_VALUES)
        self.assertEqual(conf.call_args.kwargs["timezone"], 8)
        self.assertEqual(conf.call_args.kwargs["angle_ref"], 7)
        self.assertFalse(conf.call_args.kwargs["enable_summer_time"])

    def test_method_mapping(self) -> None:
        self.assertEqual(_map_pyislam_method("JAKIM"), 7)
        self.assertEqual(_map_pyislam_method("Umm al-Qura"), 4)
        self.assertEqual(_map_pyislam_method("3"), 3)
        self.assertEqual(_map_pyislam_method(None), 2)
        self.assertEqual(_map_pyislam_method("unknown"), 2)


class PrayerServiceTests(unittest.TestCase):
    def test_publish_writes_checkpoints(self) -> None:
        config = _located_config()
        config.location.zone = "WLY01"
        provider = DummyProvider()
        service = PrayerService(config, providers={"aladhan": provider})
        store = MemoryStore({"hijri": "1 Ramadan 1445"})

        schedule = service.publish(store, date(2024, 3, 11))

        self.assertEqual(provider.calls, [date(2024, 3, 11)])
        self.assertEqual(schedule.get(PrayerName.ASR).display_time, "16:28")
        snapshot = store.snapshot()
        self.assertEqual(snapshot["syuruk"], "07:15")
        self.assertEqual(snapshot["date"], "2024-03-11")
        self.assertEqual(snapshot["zone"], "WLY01")
        self.assertEqual(snapshot["hijri"], "1 Ramadan 1445")

    def test_provider_failure_uses_configured_times(self) -> None:
        config = _located_config()
        provider = DummyProvider(error=httpx.ConnectError("offline"))
        service = PrayerService(config, providers={"aladhan": provider})
        with self.assertLogs("prayerwidget.services.prayer", level="WARNING"):
            schedule = service.get_schedule(date(2024, 3, 11))
        self.assertEqual(schedule, config.prayers)

    def test_unknown_provider_uses_configured_times(self) -> None:
        config = WidgetConfig.default()
        config.prayer_settings.provider = "nope"
        service = PrayerService(config, providers={})
        self.assertEqual(service.get_schedule(date(2024, 3, 11)), config.prayers)

    def test_missing_coordinates_skip_provider(self) -> None:
        config = WidgetConfig.default()
        config.location.latitude = 3.139
        provider = DummyProvider(values=dict(DAY_VALUES, fajr="06:40"))
        service = PrayerService(config, providers={"aladhan": provider})
        store = MemoryStore()

        with self.assertLogs("prayerwidget.services.prayer", level="WARNING"):
            schedule = service.publish(store, date(2024, 3, 11))

        self.assertEqual(provider.calls, [])
        self.assertEqual(schedule, config.prayers)
        self.assertEqual(store.get("fajr"), "05:50")

    def test_location_passed_to_provider(self) -> None:
        provider = DummyProvider()
        provider.fetch = MagicMock(return_value=dict(DAY_VALUES))
        service = PrayerService(_located_config(), providers={"aladhan": provider})
        service.get_schedule(date(2024, 3, 11))
        location = provider.fetch.call_args.args[1]
        self.assertEqual(location, _location())

    def test_publish_rejects_disordered_schedule(self) -> None:
        values = dict(DAY_VALUES, asr="12:00")
        service = PrayerService(_located_config(), providers={"aladhan": DummyProvider(values)})
        store = MemoryStore()
        with self.assertRaises(ScheduleValidationError):
            service.publish(store, date(2024, 3, 11))
        self.assertEqual(store.snapshot(), {})

    def test_default_providers(self) -> None:
        service = PrayerService(WidgetConfig.default())
        self.assertIsInstance(service.providers["aladhan"], AladhanProvider)
        self.assertIs(service.providers["pyislam"], service.providers["praytimes"])


if __name__ == "__main__":
    unittest.main()
