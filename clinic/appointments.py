"""Appointment booking service.

Lifecycle: scheduled -> waiting -> in_progress -> completed.
Cancelling is allowed only before the patient is seen (scheduled or waiting).
Cancelled appointments free their time: they never block a booking.
"""
from typing import List, Optional

from clinic import config
from clinic.availability import is_open, slots_for_settings
from clinic.conflicts import conflicting_appointment
from clinic.logging_config import get_logger
from clinic.models import Appointment, AppointmentStatus
from clinic.repository import ClinicRepository
from clinic.storage import StorageKey, generate_id

logger = get_logger(__name__)

NEXT_STATUS = {
    AppointmentStatus.SCHEDULED: AppointmentStatus.WAITING,
    AppointmentStatus.WAITING: AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.IN_PROGRESS: AppointmentStatus.COMPLETED,
}

CANCELLABLE = {AppointmentStatus.SCHEDULED, AppointmentStatus.WAITING}


class AppointmentValidationError(ValueError):
    """Raised when a booking is missing its doctor or patient."""
    pass


class AppointmentConflictError(ValueError):
    """Raised when a booking overlaps another appointment of the same doctor."""

    def __init__(self, conflict: Appointment):
        self.conflict = conflict
        super().__init__(
            f"Doctor {conflict.doctor_id} already has an appointment on "
            f"{conflict.date} {conflict.time}-{conflict.end_time}"
        )


class InvalidStatusTransitionError(ValueError):
    """Raised when an appointment cannot move to the requested status."""

    def __init__(self, appointment_id: str, current: AppointmentStatus, action: str):
        self.appointment_id = appointment_id
        self.current = current
        super().__init__(f"Cannot {action} appointment {appointment_id} in status {current.value}")


class AppointmentBook:
    """
    Books and tracks appointments.

    Responsibilities:
    - Validate doctor and patient (file or temporary walk-in name)
    - Reject overlapping bookings per doctor
    - Drive the status lifecycle
    """

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    def _active(self) -> List[Appointment]:
        return [
            a for a in self.repository.appointments()
            if a.status != AppointmentStatus.CANCELLED
        ]

    def _check_conflict(
        self,
        date: str,
        time: str,
        duration: int,
        doctor_id: str,
        exclude_id: Optional[str] = None
    ) -> None:
        conflict = conflicting_appointment(
            self._active(), date, time, duration, doctor_id, exclude_id=exclude_id
        )
        if conflict is not None:
            logger.warning(
                "appointment_conflict",
                date=date,
                time=time,
                doctor_id=doctor_id,
                conflict_id=conflict.id
            )
            raise AppointmentConflictError(conflict)

    def book(
        self,
        date: str,
        time: str,
        doctor_id: str,
        duration: int = config.DEFAULT_APPOINTMENT_DURATION,
        patient_id: Optional[str] = None,
        temp_patient_name: Optional[str] = None,
        treatment_type: str = config.DEFAULT_TREATMENT_TYPE,
        notes: str = ""
    ) -> Appointment:
        """
        Book a new appointment.

        Args:
            date: YYYY-MM-DD
            time: Start time HH:mm
            doctor_id: Treating doctor
            duration: Minutes
            patient_id: Existing patient file
            temp_patient_name: Walk-in name when the patient has no file yet
            treatment_type: Free-text visit type
            notes: Free text

        Returns:
            The stored appointment (status scheduled)

        Raises:
            AppointmentValidationError: No doctor, or neither patient nor walk-in name
            RecordNotFoundError: Unknown doctor or patient id
            AppointmentConflictError: Overlaps another booking of the doctor
        """
        if not doctor_id:
            raise AppointmentValidationError("Doctor is required")
        self.repository.get(StorageKey.DOCTORS, doctor_id)

        temp_name = (temp_patient_name or "").strip() or None
        if patient_id:
            self.repository.get(StorageKey.PATIENTS, patient_id)
            temp_name = None
        elif not temp_name:
            raise AppointmentValidationError("Patient or temporary patient name is required")

        appointment = Appointment(
            id=generate_id(),
            date=date,
            time=time,
            duration=duration,
            doctor_id=doctor_id,
            patient_id=patient_id or None,
            temp_patient_name=temp_name,
            treatment_type=treatment_type,
            notes=notes,
        )
        self._check_conflict(date, time, duration, doctor_id)

        self.repository.add(StorageKey.APPOINTMENTS, appointment)
        logger.info(
            "appointment_booked",
            appointment_id=appointment.id,
            date=date,
            time=time,
            duration=duration,
            doctor_id=doctor_id,
            temporary_patient=appointment.is_temporary_patient
        )
        return appointment

    def reschedule(
        self,
        appointment_id: str,
        date: str,
        time: str,
        duration: Optional[int] = None,
        doctor_id: Optional[str] = None
    ) -> Appointment:
        """
        Move an appointment; it never conflicts with its own old slot.

        Raises:
            RecordNotFoundError: Unknown appointment or doctor
            AppointmentConflictError: New slot overlaps another booking
        """
        appointment = self.repository.get(StorageKey.APPOINTMENTS, appointment_id)
        if doctor_id:
            self.repository.get(StorageKey.DOCTORS, doctor_id)

        updated = Appointment.model_validate({
            **appointment.model_dump(),
            "date": date,
            "time": time,
            "duration": duration or appointment.duration,
            "doctor_id": doctor_id or appointment.doctor_id,
        })
        self._check_conflict(
            updated.date, updated.time, updated.duration, updated.doctor_id,
            exclude_id=appointment_id
        )

        self.repository.update(StorageKey.APPOINTMENTS, updated)
        logger.info(
            "appointment_rescheduled",
            appointment_id=appointment_id,
            old_date=appointment.date,
            old_time=appointment.time,
            date=updated.date,
            time=updated.time
        )
        return updated

    def advance(self, appointment_id: str) -> Appointment:
        """
        Move to the next lifecycle status.

        Raises:
            InvalidStatusTransitionError: Already completed or cancelled
        """
        appointment = self.repository.get(StorageKey.APPOINTMENTS, appointment_id)
        next_status = NEXT_STATUS.get(appointment.status)
        if next_status is None:
            raise InvalidStatusTransitionError(appointment_id, appointment.status, "advance")

        updated = appointment.model_copy(update={"status": next_status})
        self.repository.update(StorageKey.APPOINTMENTS, updated)
        logger.info(
            "appointment_status_changed",
            appointment_id=appointment_id,
            from_status=appointment.status.value,
            to_status=next_status.value
        )
        return updated

    def cancel(self, appointment_id: str) -> Appointment:
        """
        Cancel a scheduled or waiting appointment.

        Raises:
            InvalidStatusTransitionError: Patient already in treatment, done, or cancelled
        """
        appointment = self.repository.get(StorageKey.APPOINTMENTS, appointment_id)
        if appointment.status not in CANCELLABLE:
            raise InvalidStatusTransitionError(appointment_id, appointment.status, "cancel")

        updated = appointment.model_copy(update={"status": AppointmentStatus.CANCELLED})
        self.repository.update(StorageKey.APPOINTMENTS, updated)
        logger.info("appointment_cancelled", appointment_id=appointment_id)
        return updated

    def link_patient(self, appointment_id: str, patient_id: str) -> Appointment:
        """Attach a newly opened patient file to a walk-in appointment."""
        appointment = self.repository.get(StorageKey.APPOINTMENTS, appointment_id)
        self.repository.get(StorageKey.PATIENTS, patient_id)

        updated = appointment.model_copy(update={"patient_id": patient_id, "temp_patient_name": None})
        self.repository.update(StorageKey.APPOINTMENTS, updated)
        logger.info("appointment_patient_linked", appointment_id=appointment_id, patient_id=patient_id)
        return updated

    def agenda(self, date: str, doctor_id: Optional[str] = None) -> List[Appointment]:
        """A day's appointments (all statuses), optionally for one doctor, by start time."""
        day = [
            a for a in self.repository.appointments()
            if a.date == date and (doctor_id is None or a.doctor_id == doctor_id)
        ]
        return sorted(day, key=lambda a: a.time)

    def free_slots(
        self,
        date: str,
        doctor_id: str,
        duration: Optional[int] = None
    ) -> List[str]:
        """
        Grid slots where `duration` minutes (default: slot size) fit for the doctor.

        Closed days (non-work days and holidays) have no bookable slots.
        """
        settings = self.repository.get_settings()
        if not is_open(date, settings):
            return []
        length = duration or settings.slot_duration
        active = self._active()
        return [
            slot for slot in slots_for_settings(settings)
            if conflicting_appointment(active, date, slot, length, doctor_id) is None
        ]

    def patient_name(self, appointment: Appointment) -> str:
        """Display name: walk-in name, patient file name, or '-'."""
        if appointment.temp_patient_name:
            return appointment.temp_patient_name
        if not appointment.patient_id:
            return "-"
        patient = self.repository.find(StorageKey.PATIENTS, appointment.patient_id)
        return patient.full_name if patient else "-"
