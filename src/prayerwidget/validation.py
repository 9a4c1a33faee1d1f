from __future__ import annotations

from typing import Sequence

from .models import PrayerName, Schedule


class ScheduleValidationError(ValueError):
    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = list(issues)
        message = "\n".join(self.issues)
        super().__init__(message)


class ScheduleValidator:
    @classmethod
    def validate(cls, schedule: Schedule) -> list[str]:
        issues: list[str] = []
        warnings: list[str] = []
        cls._validate_present(schedule, issues, warnings)
        cls._validate_order(schedule, issues)
        cls._validate_sunrise(schedule, issues)
        if issues:
            raise ScheduleValidationError(issues)
        return warnings

    @classmethod
    def _validate_present(cls, schedule: Schedule, issues: list[str], warnings: list[str]) -> None:
        for checkpoint in schedule.checkpoints:
            if checkpoint.time is not None:
                continue
            if checkpoint.name.is_prayer:
                issues.append(f"{checkpoint.name.value} time is missing or invalid.")
            else:
                warnings.append("Syuruk time is missing; Fajr will stay current until Dhuhr.")

    @classmethod
    def _validate_order(cls, schedule: Schedule, issues: list[str]) -> None:
        previous = None
        for checkpoint in schedule.checkpoints:
            if checkpoint.minutes is None:
                continue
            if previous is not None and checkpoint.minutes <= previous.minutes:
                issues.append(
                    f"{checkpoint.name.value} ({checkpoint.display_time}) must be later than "
                    f"{previous.name.value} ({previous.display_time})."
                )
            previous = checkpoint

    @classmethod
    def _validate_sunrise(cls, schedule: Schedule, issues: list[str]) -> None:
        sunrise = schedule.get(PrayerName.SYURUK).minutes
        fajr = schedule.get(PrayerName.FAJR).minutes
        dhuhr = schedule.get(PrayerName.DHUHR).minutes
        if sunrise is None or fajr is None or dhuhr is None:
            return
        if not (fajr < sunrise < dhuhr):
            issues.append("Syuruk must fall between Fajr and Dhuhr.")
