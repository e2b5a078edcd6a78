"""Doctors and staff records.

The clinic owner is always a doctor: listed first, never deactivated.
"""
from typing import List, Optional

from clinic import config
from clinic.logging_config import get_logger
from clinic.models import Doctor, Staff, StaffRole
from clinic.repository import ClinicRepository
from clinic.storage import StorageKey, generate_id

logger = get_logger(__name__)

ALL_PERMISSIONS = ["patients", "appointments", "invoices", "payments", "expenses", "labs", "settings"]


class OwnerDeactivationError(ValueError):
    """Raised when trying to deactivate the clinic owner."""
    pass


class StaffValidationError(ValueError):
    """Raised when a doctor or staff form is incomplete."""
    pass


def ensure_owner(doctors: List[Doctor]) -> List[Doctor]:
    """Doctors with the default owner prepended when no owner exists."""
    if any(d.is_owner or d.id == config.OWNER_DOCTOR_ID for d in doctors):
        return doctors
    return [Doctor(**config.DEFAULT_DOCTORS[0]), *doctors]


def sort_doctors(doctors: List[Doctor]) -> List[Doctor]:
    """Owner first, then the rest in stored order."""
    return sorted(doctors, key=lambda d: not d.is_owner)


class StaffDirectory:
    """Doctors and nurses/assistants."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    # -- doctors -------------------------------------------------------------

    def doctors(self, active_only: bool = False) -> List[Doctor]:
        """
        All doctors, owner first.

        Args:
            active_only: Hide deactivated doctors (appointment and treatment pickers)
        """
        stored = self.repository.doctors()
        doctors = ensure_owner(stored)
        if len(doctors) != len(stored):
            self.repository.save(StorageKey.DOCTORS, doctors)
        if active_only:
            doctors = [d for d in doctors if d.is_active]
        return sort_doctors(doctors)

    def add_doctor(self, name: str, specialty: str = "", phone: str = "") -> Doctor:
        if not name.strip():
            raise StaffValidationError("Doctor name is required")
        doctor = Doctor(id=generate_id(), name=name.strip(), specialty=specialty, phone=phone)
        self.repository.add(StorageKey.DOCTORS, doctor)
        logger.info("doctor_added", doctor_id=doctor.id)
        return doctor

    def update_doctor(
        self,
        doctor_id: str,
        name: Optional[str] = None,
        specialty: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Doctor:
        doctor = self.repository.get(StorageKey.DOCTORS, doctor_id)
        changes = {
            field: value
            for field, value in (("name", name), ("specialty", specialty), ("phone", phone))
            if value is not None
        }
        if "name" in changes and not changes["name"].strip():
            raise StaffValidationError("Doctor name is required")
        updated = doctor.model_copy(update=changes)
        self.repository.update(StorageKey.DOCTORS, updated)
        return updated

    def toggle_doctor_active(self, doctor_id: str) -> Doctor:
        """
        Activate an inactive doctor or deactivate an active one.

        Raises:
            OwnerDeactivationError: Doctor is the clinic owner
        """
        doctor = self.repository.get(StorageKey.DOCTORS, doctor_id)
        if doctor.is_owner:
            raise OwnerDeactivationError("The clinic owner cannot be deactivated")

        updated = doctor.model_copy(update={"is_active": not doctor.is_active})
        self.repository.update(StorageKey.DOCTORS, updated)
        logger.info("doctor_active_changed", doctor_id=doctor_id, is_active=updated.is_active)
        return updated

    # -- staff ---------------------------------------------------------------

    def staff(self, role: Optional[StaffRole] = None) -> List[Staff]:
        return [s for s in self.repository.staff() if role is None or s.role == role]

    def add_staff(
        self,
        name: str,
        role: StaffRole = StaffRole.NURSE,
        phone: str = "",
        has_login: bool = False,
        permissions: Optional[List[str]] = None
    ) -> Staff:
        """
        Add a staff member.

        Raises:
            StaffValidationError: Blank name or unknown permission key
        """
        if not name.strip():
            raise StaffValidationError("Staff name is required")
        permissions = list(permissions or [])
        unknown = set(permissions) - set(ALL_PERMISSIONS)
        if unknown:
            raise StaffValidationError(f"Unknown permissions: {sorted(unknown)}")

        member = Staff(
            id=generate_id(),
            name=name.strip(),
            role=role,
            phone=phone,
            has_login=has_login,
            permissions=permissions,
        )
        self.repository.add(StorageKey.STAFF, member)
        logger.info("staff_added", staff_id=member.id, role=member.role.value, has_login=has_login)
        return member

    def set_permissions(self, staff_id: str, permissions: List[str]) -> Staff:
        unknown = set(permissions) - set(ALL_PERMISSIONS)
        if unknown:
            raise StaffValidationError(f"Unknown permissions: {sorted(unknown)}")
        member = self.repository.get(StorageKey.STAFF, staff_id)
        updated = member.model_copy(update={"permissions": list(permissions)})
        self.repository.update(StorageKey.STAFF, updated)
        return updated

    def toggle_staff_active(self, staff_id: str) -> Staff:
        member = self.repository.get(StorageKey.STAFF, staff_id)
        updated = member.model_copy(update={"is_active": not member.is_active})
        self.repository.update(StorageKey.STAFF, updated)
        logger.info("staff_active_changed", staff_id=staff_id, is_active=updated.is_active)
        return updated

    def login_candidates(self) -> List[Staff]:
        """Nurses who may sign in: active with login enabled."""
        return [
            s for s in self.repository.staff()
            if s.role == StaffRole.NURSE and s.has_login and s.is_active
        ]
