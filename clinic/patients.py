"""Patient files, search, prescriptions and read-only share links."""
import uuid
from datetime import date as date_type
from typing import Iterable, List, Optional

from clinic import config
from clinic.logging_config import get_logger
from clinic.models import Gender, Medication, Patient, Prescription
from clinic.repository import ClinicRepository
from clinic.storage import StorageKey, generate_id, next_number
from clinic.timeutils import parse_iso_date, today_iso

logger = get_logger(__name__)

DAYS_PER_YEAR = 365.25

# Set at registration and never edited
FIXED_FIELDS = {"id", "file_no", "created_at", "created_by"}


class PatientValidationError(ValueError):
    """Raised when a patient form is incomplete or inconsistent."""
    pass


class PatientInUseError(ValueError):
    """Raised when deleting a patient that still has linked records."""
    pass


def patient_age(patient: Patient, today: Optional[date_type] = None) -> Optional[int]:
    """
    Age in whole years from the birth date, else from the birth year.

    Returns:
        Age, or None when neither is recorded
    """
    today = today or date_type.today()
    if patient.birth_date:
        days = (today - parse_iso_date(patient.birth_date)).days
        return int(days // DAYS_PER_YEAR)
    if patient.birth_year:
        return today.year - patient.birth_year
    return None


def search_patients(
    patients: Iterable[Patient],
    query: str = "",
    tag: Optional[str] = None,
    limit: Optional[int] = config.PATIENT_SEARCH_LIMIT
) -> List[Patient]:
    """
    Patients whose name or phone contains the query, optionally with a tag.

    Args:
        patients: Patients to search
        query: Substring of full name or phone (blank matches all)
        tag: Only patients carrying this tag
        limit: Maximum results (None = all)
    """
    query = query.strip()
    matches = [
        p for p in patients
        if (not query or query in p.full_name or query in p.phone)
        and (tag is None or tag in p.tags)
    ]
    return matches if limit is None else matches[:limit]


class PatientService:
    """Registers patients and manages their prescriptions."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    def _validate(
        self,
        full_name: str,
        phone: str,
        address: str,
        birth_date: str,
        country_code: str
    ) -> int:
        if not full_name.strip() or not phone or not address.strip() or not birth_date:
            raise PatientValidationError("Name, phone, address and birth date are required")

        try:
            year = parse_iso_date(birth_date).year
        except ValueError as e:
            raise PatientValidationError(f"Invalid birth date: {birth_date}") from e
        if year < 1900 or year > date_type.today().year:
            raise PatientValidationError(f"Invalid birth date: {birth_date}")

        digits = config.COUNTRY_PHONE_DIGITS.get(country_code)
        if digits is not None and len(phone) != digits:
            raise PatientValidationError(f"Phone number must have {digits} digits for {country_code}")

        return year

    def register(
        self,
        full_name: str,
        phone: str,
        address: str,
        birth_date: str,
        country_code: str = config.DEFAULT_COUNTRY_CODE,
        gender: Gender = Gender.MALE,
        medical_history: str = config.DEFAULT_MEDICAL_HISTORY,
        distinct_mark: str = "",
        tags: Optional[List[str]] = None,
        created_by: str = config.DEFAULT_CREATED_BY
    ) -> Patient:
        """
        Open a new patient file with the next file number.

        Raises:
            PatientValidationError: Missing fields, bad birth date or phone length
        """
        year = self._validate(full_name, phone, address, birth_date, country_code)

        patient = Patient(
            id=generate_id(),
            file_no=next_number(p.file_no for p in self.repository.patients()),
            full_name=full_name.strip(),
            phone=phone,
            country_code=country_code,
            gender=gender,
            birth_year=year,
            birth_date=birth_date,
            address=address.strip(),
            medical_history=medical_history,
            distinct_mark=distinct_mark,
            tags=list(tags or []),
            created_by=created_by,
        )
        self.repository.add(StorageKey.PATIENTS, patient)
        logger.info("patient_registered", patient_id=patient.id, file_no=patient.file_no)
        return patient

    def update(self, patient_id: str, **changes) -> Patient:
        """
        Edit a patient file; file number and creation data are kept.

        Raises:
            PatientValidationError: Resulting record fails the registration checks
        """
        patient = self.repository.get(StorageKey.PATIENTS, patient_id)
        changes = {k: v for k, v in changes.items() if k not in FIXED_FIELDS}
        merged = {**patient.model_dump(), **changes}
        merged.pop("birth_year", None)
        year = self._validate(
            merged["full_name"],
            merged["phone"],
            merged["address"],
            merged["birth_date"] or "",
            merged["country_code"],
        )
        updated = Patient.model_validate({**merged, "birth_year": year})
        self.repository.update(StorageKey.PATIENTS, updated)
        logger.info("patient_updated", patient_id=patient_id, fields=sorted(changes))
        return updated

    def delete(self, patient_id: str) -> None:
        """
        Delete a patient without invoices, appointments or treatments.

        Raises:
            PatientInUseError: Linked records exist
        """
        if (
            any(i.patient_id == patient_id for i in self.repository.invoices())
            or any(a.patient_id == patient_id for a in self.repository.appointments())
            or any(t.patient_id == patient_id for t in self.repository.patient_treatments())
        ):
            raise PatientInUseError(f"Patient {patient_id} has linked records")
        self.repository.delete(StorageKey.PATIENTS, patient_id)
        logger.info("patient_deleted", patient_id=patient_id)

    def search(self, query: str = "", tag: Optional[str] = None,
               limit: Optional[int] = config.PATIENT_SEARCH_LIMIT) -> List[Patient]:
        return search_patients(self.repository.patients(), query, tag, limit)

    # -- prescriptions -------------------------------------------------------

    def prescriptions(self, patient_id: str) -> List[Prescription]:
        return [p for p in self.repository.prescriptions() if p.patient_id == patient_id]

    def add_medication(
        self,
        patient_id: str,
        medication: Medication,
        date: Optional[str] = None
    ) -> Prescription:
        """Append to the patient's prescription for the day, or start one."""
        self.repository.get(StorageKey.PATIENTS, patient_id)
        day = date or today_iso()

        existing = next(
            (p for p in self.prescriptions(patient_id) if p.date == day),
            None
        )
        if existing is not None:
            updated = existing.model_copy(update={"medications": [*existing.medications, medication]})
            self.repository.update(StorageKey.PRESCRIPTIONS, updated)
        else:
            updated = Prescription(
                id=generate_id(),
                patient_id=patient_id,
                medications=[medication],
                date=day,
            )
            self.repository.add(StorageKey.PRESCRIPTIONS, updated)

        logger.info(
            "medication_prescribed",
            patient_id=patient_id,
            prescription_id=updated.id,
            medication=medication.name
        )
        return updated

    # -- share links ---------------------------------------------------------

    def share_token(self, patient_id: str) -> str:
        """Stable read-only share token for a patient, created on first use."""
        self.repository.get(StorageKey.PATIENTS, patient_id)
        tokens = self.repository.get_share_tokens()
        token = tokens.get(patient_id)
        if not token:
            token = str(uuid.uuid4())
            tokens[patient_id] = token
            self.repository.save_share_tokens(tokens)
        return token

    def patient_for_token(self, token: str) -> Optional[Patient]:
        """Patient behind a share token, or None for unknown tokens."""
        if not token:
            return None
        tokens = self.repository.get_share_tokens()
        patient_id = next((pid for pid, t in tokens.items() if t == token), None)
        if patient_id is None:
            return None
        return self.repository.find(StorageKey.PATIENTS, patient_id)
