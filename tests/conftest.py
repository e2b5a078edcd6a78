"""Shared test fixtures."""
import pytest

from clinic.app import ClinicApp
from clinic.models import Appointment
from clinic.repository import ClinicRepository
from clinic.storage import MemoryStore


@pytest.fixture
def make_appointment():
    """Build appointments with sensible defaults."""
    counter = {"n": 0}

    def _create(time: str = "09:00", duration: int = 30, doctor_id: str = "D1",
                date: str = "2025-01-15", **fields) -> Appointment:
        counter["n"] += 1
        return Appointment(
            id=fields.pop("id", f"apt-{counter['n']}"),
            date=date,
            time=time,
            duration=duration,
            doctor_id=doctor_id,
            patient_id=fields.pop("patient_id", "p-1"),
            **fields
        )
    return _create


@pytest.fixture
def repository() -> ClinicRepository:
    """Seeded repository over an in-memory store."""
    return ClinicRepository(MemoryStore())


@pytest.fixture
def app() -> ClinicApp:
    """All services over a fresh in-memory store."""
    return ClinicApp(MemoryStore())


@pytest.fixture
def patient(app):
    """A registered patient."""
    return app.patients.register(
        full_name="أحمد الخطيب",
        phone="912345678",
        address="دمشق",
        birth_date="1990-05-20",
    )


@pytest.fixture
def doctor(app):
    """A second, non-owner doctor."""
    return app.staff.add_doctor("د. سارة", specialty="تقويم")
