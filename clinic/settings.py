"""Clinic settings: working days and hours, holidays, tags, slot size, logo."""
from typing import List, Optional

from clinic import config
from clinic.logging_config import get_logger
from clinic.models import ClinicSettings, WorkShift
from clinic.repository import ClinicRepository
from clinic.timeutils import parse_iso_date, to_minutes

logger = get_logger(__name__)


class SettingsValidationError(ValueError):
    """Raised when a settings change would leave the schedule unusable."""
    pass


def validate_shifts(shifts: List[WorkShift]) -> None:
    """
    Each shift must end after it starts and shifts must not overlap.

    Raises:
        SettingsValidationError: On an empty or overlapping shift
    """
    windows = []
    for shift in shifts:
        start, end = to_minutes(shift.start_time), to_minutes(shift.end_time)
        if end <= start:
            raise SettingsValidationError(
                f"Shift {shift.id} must end after it starts ({shift.start_time}-{shift.end_time})"
            )
        windows.append((start, end, shift.id))

    windows.sort()
    for (_, prev_end, prev_id), (start, _, shift_id) in zip(windows, windows[1:]):
        if start < prev_end:
            raise SettingsValidationError(f"Shifts {prev_id} and {shift_id} overlap")


class SettingsService:
    """Each change is saved immediately."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    def get(self) -> ClinicSettings:
        return self.repository.get_settings()

    def _save(self, settings: ClinicSettings, change: str) -> ClinicSettings:
        settings = ClinicSettings.model_validate(settings.model_dump())
        self.repository.save_settings(settings)
        logger.info("settings_changed", change=change)
        return settings

    def toggle_work_day(self, day: int) -> ClinicSettings:
        """Add or remove a weekday (0 = Sunday ... 6 = Saturday)."""
        if not 0 <= day <= 6:
            raise SettingsValidationError(f"Weekday must be 0-6, got {day}")
        settings = self.get()
        days = set(settings.work_days)
        days.symmetric_difference_update({day})
        return self._save(settings.model_copy(update={"work_days": sorted(days)}), "work_days")

    def set_working_hours(self, start_time: str, end_time: str) -> ClinicSettings:
        """One shift for the whole clinic day."""
        shift = WorkShift(id="default", start_time=start_time, end_time=end_time)
        validate_shifts([shift])
        settings = self.get().model_copy(update={
            "start_time": start_time,
            "end_time": end_time,
            "shifts": [shift],
        })
        return self._save(settings, "working_hours")

    def set_shifts(self, shifts: List[WorkShift]) -> ClinicSettings:
        """Several shifts per day (e.g. morning and evening), in display order."""
        validate_shifts(shifts)
        update = {"shifts": list(shifts)}
        if shifts:
            update["start_time"] = min(s.start_time for s in shifts)
            update["end_time"] = max(s.end_time for s in shifts)
        return self._save(self.get().model_copy(update=update), "shifts")

    def set_slot_duration(self, minutes: int) -> ClinicSettings:
        if minutes <= 0:
            raise SettingsValidationError(f"Slot duration must be positive, got {minutes}")
        return self._save(self.get().model_copy(update={"slot_duration": minutes}), "slot_duration")

    def add_holiday(self, date: str) -> ClinicSettings:
        parse_iso_date(date)
        settings = self.get()
        if date in settings.holidays:
            return settings
        return self._save(
            settings.model_copy(update={"holidays": sorted([*settings.holidays, date])}),
            "holidays"
        )

    def remove_holiday(self, date: str) -> ClinicSettings:
        settings = self.get()
        holidays = [h for h in settings.holidays if h != date]
        return self._save(settings.model_copy(update={"holidays": holidays}), "holidays")

    def add_tag(self, tag: str) -> ClinicSettings:
        """Add a patient tag; ignored when blank, duplicate or already at the limit."""
        settings = self.get()
        tag = tag.strip()
        if not tag or tag in settings.tags or len(settings.tags) >= config.MAX_PATIENT_TAGS:
            return settings
        return self._save(settings.model_copy(update={"tags": [*settings.tags, tag]}), "tags")

    def remove_tag(self, tag: str) -> ClinicSettings:
        settings = self.get()
        return self._save(
            settings.model_copy(update={"tags": [t for t in settings.tags if t != tag]}),
            "tags"
        )

    def set_logo(self, data_url: Optional[str]) -> ClinicSettings:
        return self._save(self.get().model_copy(update={"logo": data_url}), "logo")
