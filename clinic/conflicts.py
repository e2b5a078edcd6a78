"""Appointment overlap detection.

Two appointments for the same doctor on the same date conflict when their
[start, start + duration) intervals overlap. Boundaries are exclusive, so an
appointment may start exactly when another one ends.

Pure functions: all appointments are passed in, nothing is read from storage.
"""
from typing import Iterable, List, Optional

from clinic.models import Appointment
from clinic.timeutils import to_minutes


def intervals_overlap(start_a: int, duration_a: int, start_b: int, duration_b: int) -> bool:
    """
    Check whether [start_a, start_a + duration_a) and [start_b, start_b + duration_b) overlap.

    Args:
        start_a, start_b: Minutes since midnight
        duration_a, duration_b: Lengths in minutes

    Returns:
        True on any shared minute; touching boundaries do not overlap
    """
    return start_a < start_b + duration_b and start_a + duration_a > start_b


def conflicting_appointment(
    existing: Iterable[Appointment],
    date: str,
    time: str,
    duration_minutes: int,
    doctor_id: str,
    exclude_id: Optional[str] = None
) -> Optional[Appointment]:
    """
    Find the first existing appointment that clashes with a proposed booking.

    Args:
        existing: Appointments to check against (iteration order decides ties)
        date: Proposed date (YYYY-MM-DD)
        time: Proposed start (HH:mm)
        duration_minutes: Proposed length
        doctor_id: Doctor being booked
        exclude_id: Appointment being edited; never conflicts with itself

    Returns:
        The first overlapping appointment, or None when the slot is free
    """
    start = to_minutes(time)

    for appointment in existing:
        if appointment.doctor_id != doctor_id or appointment.date != date:
            continue
        if exclude_id is not None and appointment.id == exclude_id:
            continue
        if intervals_overlap(start, duration_minutes, appointment.start_minutes, appointment.duration):
            return appointment

    return None


def all_conflicts(
    existing: Iterable[Appointment],
    date: str,
    time: str,
    duration_minutes: int,
    doctor_id: str,
    exclude_id: Optional[str] = None
) -> List[Appointment]:
    """Every appointment that clashes with the proposed booking, in iteration order."""
    start = to_minutes(time)
    return [
        appointment
        for appointment in existing
        if appointment.doctor_id == doctor_id
        and appointment.date == date
        and (exclude_id is None or appointment.id != exclude_id)
        and intervals_overlap(start, duration_minutes, appointment.start_minutes, appointment.duration)
    ]
