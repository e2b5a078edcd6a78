"""Typed access to clinic collections over a key-value store.

Raw JSON from the store is validated into pydantic models here, so services
only ever see complete records with defaults resolved.
"""
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from clinic.models import (
    Appointment,
    AuthSession,
    ClinicSettings,
    Doctor,
    DoctorPayment,
    Expense,
    Invoice,
    Lab,
    LabOrder,
    LabPayment,
    LabWorkType,
    Patient,
    PatientTreatment,
    Payment,
    Prescription,
    Staff,
    TreatmentGroup,
)
from clinic.logging_config import get_logger
from clinic.storage import KeyValueStore, StorageKey, initialize_storage

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# Collections stored as lists of records with an "id" field
RECORD_MODELS: Dict[StorageKey, Type[BaseModel]] = {
    StorageKey.DOCTORS: Doctor,
    StorageKey.TREATMENT_GROUPS: TreatmentGroup,
    StorageKey.PATIENTS: Patient,
    StorageKey.APPOINTMENTS: Appointment,
    StorageKey.INVOICES: Invoice,
    StorageKey.PAYMENTS: Payment,
    StorageKey.EXPENSES: Expense,
    StorageKey.STAFF: Staff,
    StorageKey.PRESCRIPTIONS: Prescription,
    StorageKey.PATIENT_TREATMENTS: PatientTreatment,
    StorageKey.LABS: Lab,
    StorageKey.LAB_WORK_TYPES: LabWorkType,
    StorageKey.LAB_ORDERS: LabOrder,
    StorageKey.LAB_PAYMENTS: LabPayment,
    StorageKey.DOCTOR_PAYMENTS: DoctorPayment,
}

_ADAPTERS = {key: TypeAdapter(List[model]) for key, model in RECORD_MODELS.items()}


class RecordNotFoundError(Exception):
    """Raised when a record id is not in its collection."""

    def __init__(self, key: StorageKey, record_id: str):
        self.key = key
        self.record_id = record_id
        super().__init__(f"{key.value} record {record_id} not found")


class ClinicRepository:
    """
    Read and write clinic collections.

    Every call goes to the store (no caching), matching last-write-wins
    storage with one writer.
    """

    def __init__(self, store: KeyValueStore, seed: bool = True):
        """
        Args:
            store: Backing key-value store
            seed: Write default settings, treatment groups, etc. for missing keys
        """
        self.store = store
        if seed:
            initialize_storage(store)

    # -- generic record collections ------------------------------------------

    def load(self, key: StorageKey) -> List[BaseModel]:
        """All records of a collection (empty when missing or corrupt)."""
        try:
            return _ADAPTERS[key].validate_python(self.store.get(key, []))
        except ValidationError as e:
            logger.warning("corrupt_store_value", key=key.value, error_count=e.error_count())
            return []

    def save(self, key: StorageKey, records: List[BaseModel]) -> None:
        """Replace a whole collection."""
        self.store.set(key, _ADAPTERS[key].dump_python(records, mode="json"))

    def find(self, key: StorageKey, record_id: str) -> Optional[BaseModel]:
        return next((r for r in self.load(key) if r.id == record_id), None)

    def get(self, key: StorageKey, record_id: str) -> BaseModel:
        """
        Get one record by id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        record = self.find(key, record_id)
        if record is None:
            raise RecordNotFoundError(key, record_id)
        return record

    def add(self, key: StorageKey, record: RecordT) -> RecordT:
        """Append a record to its collection."""
        records = self.load(key)
        records.append(record)
        self.save(key, records)
        return record

    def update(self, key: StorageKey, record: RecordT) -> RecordT:
        """
        Replace the stored record with the same id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        records = self.load(key)
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                self.save(key, records)
                return record
        raise RecordNotFoundError(key, record.id)

    def delete(self, key: StorageKey, record_id: str) -> None:
        """
        Remove a record by id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        records = self.load(key)
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            raise RecordNotFoundError(key, record_id)
        self.save(key, remaining)

    # -- single documents ----------------------------------------------------

    def get_settings(self) -> ClinicSettings:
        return ClinicSettings.model_validate(self.store.get(StorageKey.CLINIC_SETTINGS, {}))

    def save_settings(self, settings: ClinicSettings) -> None:
        self.store.set(StorageKey.CLINIC_SETTINGS, settings.model_dump(mode="json"))

    def get_expense_types(self) -> List[str]:
        return list(self.store.get(StorageKey.EXPENSE_TYPES, []))

    def save_expense_types(self, types: List[str]) -> None:
        self.store.set(StorageKey.EXPENSE_TYPES, types)

    def get_share_tokens(self) -> Dict[str, str]:
        return dict(self.store.get(StorageKey.SHARE_TOKENS, {}))

    def save_share_tokens(self, tokens: Dict[str, str]) -> None:
        self.store.set(StorageKey.SHARE_TOKENS, tokens)

    def get_settled_treatments(self) -> List[str]:
        return list(self.store.get(StorageKey.SETTLED_TREATMENTS, []))

    def save_settled_treatments(self, invoice_ids: List[str]) -> None:
        self.store.set(StorageKey.SETTLED_TREATMENTS, invoice_ids)

    def get_auth_session(self) -> Optional[AuthSession]:
        data = self.store.get(StorageKey.AUTH_SESSION)
        if not data:
            return None
        return AuthSession.model_validate(data)

    def save_auth_session(self, session: Optional[AuthSession]) -> None:
        if session is None:
            self.store.remove(StorageKey.AUTH_SESSION)
        else:
            self.store.set(StorageKey.AUTH_SESSION, session.model_dump(mode="json"))

    # -- typed shortcuts -----------------------------------------------------

    def appointments(self) -> List[Appointment]:
        return self.load(StorageKey.APPOINTMENTS)

    def doctors(self) -> List[Doctor]:
        return self.load(StorageKey.DOCTORS)

    def patients(self) -> List[Patient]:
        return self.load(StorageKey.PATIENTS)

    def treatment_groups(self) -> List[TreatmentGroup]:
        return self.load(StorageKey.TREATMENT_GROUPS)

    def patient_treatments(self) -> List[PatientTreatment]:
        return self.load(StorageKey.PATIENT_TREATMENTS)

    def invoices(self) -> List[Invoice]:
        return self.load(StorageKey.INVOICES)

    def payments(self) -> List[Payment]:
        return self.load(StorageKey.PAYMENTS)

    def expenses(self) -> List[Expense]:
        return self.load(StorageKey.EXPENSES)

    def doctor_payments(self) -> List[DoctorPayment]:
        return self.load(StorageKey.DOCTOR_PAYMENTS)

    def staff(self) -> List[Staff]:
        return self.load(StorageKey.STAFF)

    def prescriptions(self) -> List[Prescription]:
        return self.load(StorageKey.PRESCRIPTIONS)

    def labs(self) -> List[Lab]:
        return self.load(StorageKey.LABS)

    def lab_work_types(self) -> List[LabWorkType]:
        return self.load(StorageKey.LAB_WORK_TYPES)

    def lab_orders(self) -> List[LabOrder]:
        return self.load(StorageKey.LAB_ORDERS)

    def lab_payments(self) -> List[LabPayment]:
        return self.load(StorageKey.LAB_PAYMENTS)
