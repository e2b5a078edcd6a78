"""Time-slot grid and calendar helpers.

Booking grid:
- Slots are generated per work shift, from start (inclusive) to end (exclusive)
- Shifts are processed in list order; with no shifts a default window is used

Display grid:
- A finer micro-grid buckets existing appointments into calendar rows
- It never affects conflict checking, which uses exact start + duration
"""
from collections import defaultdict
from datetime import timedelta
from typing import Dict, Iterable, List, Optional

from clinic import config
from clinic.models import Appointment, ClinicSettings, WorkShift
from clinic.timeutils import format_hhmm, parse_iso_date, to_minutes


def generate_slots(
    shifts: Iterable[WorkShift],
    step_minutes: int,
    default_start: str = config.DEFAULT_START_TIME,
    default_end: str = config.DEFAULT_END_TIME
) -> List[str]:
    """
    Generate bookable HH:mm slots for the given shifts.

    Args:
        shifts: Ordered work shifts
        step_minutes: Slot granularity in minutes
        default_start: Window start used when no shifts are configured
        default_end: Window end used when no shifts are configured

    Returns:
        Zero-padded HH:mm strings, ascending within each shift

    Raises:
        ValueError: If step_minutes is not positive

    Example:
        >>> generate_slots([WorkShift(start_time="09:00", end_time="10:00")], 30)
        ['09:00', '09:30']
    """
    if step_minutes <= 0:
        raise ValueError(f"Slot step must be positive, got {step_minutes}")

    windows = [(shift.start_time, shift.end_time) for shift in shifts]
    if not windows:
        windows = [(default_start, default_end)]

    slots = []
    for start, end in windows:
        current = to_minutes(start)
        end_minutes = to_minutes(end)
        while current < end_minutes:
            slots.append(format_hhmm(current))
            current += step_minutes

    return slots


def slots_for_settings(settings: ClinicSettings) -> List[str]:
    """Booking grid for the clinic's configured shifts and slot duration."""
    return generate_slots(
        settings.effective_shifts(),
        settings.slot_duration,
        default_start=settings.start_time,
        default_end=settings.end_time,
    )


def _matches(appointment: Appointment, date: str, doctor_id: Optional[str]) -> bool:
    if appointment.date != date:
        return False
    return doctor_id is None or appointment.doctor_id == doctor_id


def bucket_appointments(
    appointments: Iterable[Appointment],
    date: str,
    grid_minutes: int = config.MICRO_GRID_MINUTES,
    doctor_id: Optional[str] = None
) -> Dict[str, List[Appointment]]:
    """
    Group a day's appointments into micro-grid rows.

    Each appointment lands in the row whose start floors its own start time,
    e.g. with a 15 minute grid 10:20 goes to the 10:15 row.

    Args:
        appointments: Appointments to place (any dates)
        date: Day to show
        grid_minutes: Row height in minutes
        doctor_id: Restrict to one doctor (None = all)

    Returns:
        Row start (HH:mm) -> appointments in that row, in input order
    """
    if grid_minutes <= 0:
        raise ValueError(f"Grid step must be positive, got {grid_minutes}")

    rows: Dict[str, List[Appointment]] = defaultdict(list)
    for appointment in appointments:
        if not _matches(appointment, date, doctor_id):
            continue
        start = appointment.start_minutes
        rows[format_hhmm(start - start % grid_minutes)].append(appointment)
    return dict(rows)


def appointments_at(
    appointments: Iterable[Appointment],
    date: str,
    time: str,
    doctor_id: Optional[str] = None
) -> List[Appointment]:
    """Appointments starting exactly at date + time."""
    return [
        appointment
        for appointment in appointments
        if _matches(appointment, date, doctor_id) and appointment.time == time
    ]


def weekday_index(date: str) -> int:
    """Weekday of an ISO date with 0 = Sunday ... 6 = Saturday."""
    # Python's weekday() is 0 = Monday
    return (parse_iso_date(date).weekday() + 1) % 7


def is_work_day(date: str, settings: ClinicSettings) -> bool:
    return weekday_index(date) in settings.work_days


def is_holiday(date: str, settings: ClinicSettings) -> bool:
    return date in settings.holidays


def is_open(date: str, settings: ClinicSettings) -> bool:
    """Clinic accepts bookings on work days that are not holidays."""
    return is_work_day(date, settings) and not is_holiday(date, settings)


def week_days(date: str) -> List[str]:
    """The seven ISO dates of the Sunday-started week containing `date`."""
    day = parse_iso_date(date)
    sunday = day - timedelta(days=weekday_index(date))
    return [(sunday + timedelta(days=offset)).isoformat() for offset in range(7)]
