"""Test slot grid generation and calendar helpers."""
import pytest

from clinic.availability import (
    appointments_at,
    bucket_appointments,
    generate_slots,
    is_holiday,
    is_open,
    is_work_day,
    slots_for_settings,
    week_days,
    weekday_index,
)
from clinic.models import ClinicSettings, WorkShift
from clinic.timeutils import to_minutes


class TestGenerateSlots:
    """Booking grid from work shifts."""

    def test_morning_shift_half_hour_slots(self):
        shifts = [WorkShift(start_time="09:00", end_time="12:00")]

        slots = generate_slots(shifts, 30)

        assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    def test_end_is_exclusive(self):
        shifts = [WorkShift(start_time="09:00", end_time="10:00")]

        assert "10:00" not in generate_slots(shifts, 30)

    def test_step_not_dividing_shift(self):
        shifts = [WorkShift(start_time="09:00", end_time="10:00")]

        assert generate_slots(shifts, 25) == ["09:00", "09:25", "09:50"]

    def test_step_larger_than_hour(self):
        shifts = [WorkShift(start_time="08:00", end_time="12:00")]

        assert generate_slots(shifts, 90) == ["08:00", "09:30", "11:00"]

    def test_multiple_shifts_in_list_order(self):
        shifts = [
            WorkShift(id="am", start_time="09:00", end_time="10:00"),
            WorkShift(id="pm", start_time="16:00", end_time="17:00"),
        ]

        assert generate_slots(shifts, 30) == ["09:00", "09:30", "16:00", "16:30"]

    def test_no_shifts_uses_default_window(self):
        slots = generate_slots([], 60, default_start="09:00", default_end="12:00")

        assert slots == ["09:00", "10:00", "11:00"]

    def test_empty_shift_yields_nothing(self):
        shifts = [WorkShift(start_time="10:00", end_time="10:00")]

        assert generate_slots(shifts, 30) == []

    @pytest.mark.parametrize("step", [0, -15])
    def test_non_positive_step_rejected(self, step):
        with pytest.raises(ValueError):
            generate_slots([WorkShift(start_time="09:00", end_time="10:00")], step)

    @pytest.mark.parametrize("step", [5, 15, 20, 30, 45, 60])
    def test_slots_increase_and_stay_inside_shift(self, step):
        shift = WorkShift(start_time="08:10", end_time="13:05")

        slots = generate_slots([shift], step)
        minutes = [to_minutes(s) for s in slots]

        assert minutes == sorted(set(minutes))
        assert all(to_minutes("08:10") <= m < to_minutes("13:05") for m in minutes)

    def test_slots_are_zero_padded(self):
        slots = generate_slots([WorkShift(start_time="08:00", end_time="09:00")], 5)

        assert slots[1] == "08:05"
        assert all(len(s) == 5 for s in slots)

    def test_slots_for_settings_uses_slot_duration(self):
        settings = ClinicSettings(
            shifts=[WorkShift(start_time="09:00", end_time="11:00")],
            slot_duration=60,
        )

        assert slots_for_settings(settings) == ["09:00", "10:00"]

    def test_slots_for_settings_without_shifts(self):
        settings = ClinicSettings(start_time="14:00", end_time="15:00", shifts=[], slot_duration=30)

        assert slots_for_settings(settings) == ["14:00", "14:30"]


class TestMicroGrid:
    """Bucketing existing appointments into display rows."""

    def test_start_floors_to_grid_row(self, make_appointment):
        apt = make_appointment(time="10:20")

        rows = bucket_appointments([apt], "2025-01-15", grid_minutes=15)

        assert rows == {"10:15": [apt]}

    def test_filters_date_and_doctor(self, make_appointment):
        keep = make_appointment(time="09:00", doctor_id="D1")
        other_doctor = make_appointment(time="09:00", doctor_id="D2")
        other_day = make_appointment(time="09:00", date="2025-01-16")

        rows = bucket_appointments([keep, other_doctor, other_day], "2025-01-15", doctor_id="D1")

        assert rows == {"09:00": [keep]}

    def test_same_row_keeps_input_order(self, make_appointment):
        a = make_appointment(time="09:05", doctor_id="D1")
        b = make_appointment(time="09:10", doctor_id="D2")

        rows = bucket_appointments([a, b], "2025-01-15")

        assert rows["09:00"] == [a, b]

    def test_appointments_at_exact_start(self, make_appointment):
        exact = make_appointment(time="10:00")
        later = make_appointment(time="10:05")

        assert appointments_at([exact, later], "2025-01-15", "10:00") == [exact]


class TestCalendarDays:

    @pytest.fixture
    def settings(self):
        return ClinicSettings(work_days=[0, 1, 2, 3, 4], holidays=["2025-01-14"])

    def test_weekday_index_starts_sunday(self):
        assert weekday_index("2025-01-12") == 0  # Sunday
        assert weekday_index("2025-01-15") == 3  # Wednesday
        assert weekday_index("2025-01-18") == 6  # Saturday

    def test_work_days(self, settings):
        assert is_work_day("2025-01-12", settings)
        assert not is_work_day("2025-01-17", settings)  # Friday

    def test_holiday(self, settings):
        assert is_holiday("2025-01-14", settings)
        assert not is_open("2025-01-14", settings)
        assert is_open("2025-01-15", settings)

    def test_week_days_sunday_to_saturday(self):
        assert week_days("2025-01-15") == [
            "2025-01-12", "2025-01-13", "2025-01-14", "2025-01-15",
            "2025-01-16", "2025-01-17", "2025-01-18",
        ]

    def test_week_days_from_sunday(self):
        assert week_days("2025-01-12")[0] == "2025-01-12"
