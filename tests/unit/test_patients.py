"""Tests for patient files, search, prescriptions and share links."""
from datetime import date

import pytest

from clinic.models import Medication, Patient
from clinic.patients import (
    PatientInUseError,
    PatientValidationError,
    patient_age,
    search_patients,
)
from clinic.repository import RecordNotFoundError
from clinic.storage import StorageKey


@pytest.fixture
def patients(app):
    return app.patients


class TestRegister:

    def test_file_numbers_and_defaults(self, patients, patient):
        second = patients.register("ليلى حسن", "987654321", "حلب", "2001-01-01")

        assert (patient.file_no, second.file_no) == (1, 2)
        assert patient.birth_year == 1990
        assert patient.country_code == "+963"
        assert patient.medical_history == "لا يوجد"
        assert patient.created_by == "المالك"

    @pytest.mark.parametrize("field", ["full_name", "phone", "address", "birth_date"])
    def test_required_fields(self, patients, field):
        data = {
            "full_name": "سامر",
            "phone": "912345678",
            "address": "حمص",
            "birth_date": "1985-03-03",
            field: "",
        }

        with pytest.raises(PatientValidationError):
            patients.register(**data)

    @pytest.mark.parametrize("birth_date", ["1899-12-31", "2999-01-01", "1990-02-30"])
    def test_bad_birth_date(self, patients, birth_date):
        with pytest.raises(PatientValidationError):
            patients.register("سامر", "912345678", "حمص", birth_date)

    def test_phone_length_per_country(self, patients):
        with pytest.raises(PatientValidationError):
            patients.register("سامر", "91234567", "حمص", "1985-03-03")

        lebanese = patients.register("سامر", "71234567", "بيروت", "1985-03-03", country_code="+961")
        assert lebanese.phone == "71234567"

    def test_unknown_country_skips_length_check(self, patients):
        patient = patients.register("Sam", "123", "Berlin", "1985-03-03", country_code="+49")

        assert patient.country_code == "+49"


class TestUpdateAndDelete:

    def test_update_keeps_file_number(self, patients, patient):
        updated = patients.update(patient.id, address="اللاذقية", birth_date="1991-07-07")

        assert updated.file_no == patient.file_no
        assert updated.address == "اللاذقية"
        assert updated.birth_year == 1991

    def test_update_ignores_registration_fields(self, patients, patient):
        updated = patients.update(
            patient.id,
            id="other",
            file_no=99,
            created_at="2000-01-01T00:00:00+00:00",
            created_by="someone",
            address="حلب",
        )

        assert updated.id == patient.id
        assert updated.file_no == patient.file_no
        assert (updated.created_at, updated.created_by) == (patient.created_at, patient.created_by)
        assert patients.repository.get(StorageKey.PATIENTS, patient.id).address == "حلب"

    def test_update_validates(self, patients, patient):
        with pytest.raises(PatientValidationError):
            patients.update(patient.id, phone="12")

    def test_delete_unlinked(self, app, patients, patient):
        patients.delete(patient.id)

        assert app.repository.patients() == []

    def test_delete_blocked_by_appointment(self, app, patients, patient):
        app.appointments.book("2025-01-15", "10:00", "owner", patient_id=patient.id)

        with pytest.raises(PatientInUseError):
            patients.delete(patient.id)

    def test_delete_unknown(self, patients):
        with pytest.raises(RecordNotFoundError):
            patients.delete("ghost")


class TestAgeAndSearch:

    def test_age_from_birth_date(self):
        patient = Patient(id="p", file_no=1, full_name="x", birth_date="1990-05-20")

        assert patient_age(patient, date(2025, 5, 19)) == 34
        assert patient_age(patient, date(2025, 5, 20)) == 35

    def test_age_from_birth_year(self):
        patient = Patient(id="p", file_no=1, full_name="x", birth_year=1980)

        assert patient_age(patient, date(2025, 1, 1)) == 45
        assert patient_age(Patient(id="q", file_no=2, full_name="y")) is None

    def test_search(self):
        people = [
            Patient(id="1", file_no=1, full_name="أحمد علي", phone="911111111", tags=["VIP"]),
            Patient(id="2", file_no=2, full_name="محمد أحمد", phone="922222222"),
            Patient(id="3", file_no=3, full_name="سارة", phone="933333333", tags=["VIP"]),
        ]

        assert [p.id for p in search_patients(people, "أحمد")] == ["1", "2"]
        assert [p.id for p in search_patients(people, "9333")] == ["3"]
        assert [p.id for p in search_patients(people, tag="VIP")] == ["1", "3"]
        assert [p.id for p in search_patients(people, "", limit=2)] == ["1", "2"]
        assert len(search_patients(people, limit=None)) == 3


class TestPrescriptions:

    def test_same_day_medications_share_prescription(self, patients, patient):
        patients.add_medication(patient.id, Medication(name="أموكسيسيلين", dosage="500mg"), date="2025-01-15")
        rx = patients.add_medication(patient.id, Medication(name="إيبوبروفين"), date="2025-01-15")
        patients.add_medication(patient.id, Medication(name="باراسيتامول"), date="2025-01-16")

        assert [m.name for m in rx.medications] == ["أموكسيسيلين", "إيبوبروفين"]
        assert len(patients.prescriptions(patient.id)) == 2

    def test_unknown_patient(self, patients):
        with pytest.raises(RecordNotFoundError):
            patients.add_medication("ghost", Medication(name="x"))


class TestShareLinks:

    def test_token_is_stable(self, patients, patient):
        token = patients.share_token(patient.id)

        assert patients.share_token(patient.id) == token
        assert patients.patient_for_token(token).id == patient.id

    def test_unknown_token(self, patients, patient):
        patients.share_token(patient.id)

        assert patients.patient_for_token("nope") is None
        assert patients.patient_for_token("") is None
