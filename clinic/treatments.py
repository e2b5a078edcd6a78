"""Treatment catalog and patient treatments on the dental chart.

A treatment group's effect decides where a patient treatment attaches:
- tooth: a valid permanent FDI number is required
- jaw: upper, lower or both jaws is required
- both_jaws: always both jaws
- dynamic: the caller picks tooth or jaw per treatment
- none: attaches to neither

Planned treatments are started (an invoice is created from the catalog price),
can collect sessions, and are completed with optional notes. Treatments
entered from history ("old" treatments) are stored as already completed.
"""
from typing import List, Optional, Tuple

from clinic.billing import BillingService
from clinic.chart.teeth import is_valid_tooth_number, parse_tooth_number
from clinic.logging_config import get_logger
from clinic.models import (
    DiscountType,
    Invoice,
    Jaw,
    PatientTreatment,
    Treatment,
    TreatmentEffect,
    TreatmentGroup,
    TreatmentSession,
    TreatmentStatus,
)
from clinic.repository import ClinicRepository, RecordNotFoundError
from clinic.storage import StorageKey, generate_id
from clinic.timeutils import today_iso

logger = get_logger(__name__)


class TreatmentValidationError(ValueError):
    """Raised when a treatment cannot be added or moved to the requested state."""
    pass


def needs_tooth(effect: TreatmentEffect, effect_type: Optional[TreatmentEffect] = None) -> bool:
    """Whether a treatment of this group effect must name a tooth."""
    if effect == TreatmentEffect.TOOTH:
        return True
    return effect == TreatmentEffect.DYNAMIC and effect_type == TreatmentEffect.TOOTH


def needs_jaw(effect: TreatmentEffect, effect_type: Optional[TreatmentEffect] = None) -> bool:
    """Whether a treatment of this group effect attaches to a jaw."""
    if effect in (TreatmentEffect.JAW, TreatmentEffect.BOTH_JAWS):
        return True
    return effect == TreatmentEffect.DYNAMIC and effect_type == TreatmentEffect.JAW


class TreatmentCatalog:
    """Treatments offered under each group."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    def _save_group(self, group: TreatmentGroup) -> TreatmentGroup:
        return self.repository.update(StorageKey.TREATMENT_GROUPS, group)

    def add_treatment(self, group_id: str, name: str, price: float = 0.0) -> Treatment:
        """
        Add a treatment to a group, coded <group code><position> (e.g. RS3).

        Raises:
            TreatmentValidationError: Blank name
        """
        if not name.strip():
            raise TreatmentValidationError("Treatment name is required")
        group = self.repository.get(StorageKey.TREATMENT_GROUPS, group_id)

        treatment = Treatment(
            id=generate_id(),
            code=f"{group.code}{len(group.treatments) + 1}",
            name=name.strip(),
            price=price,
        )
        self._save_group(group.model_copy(update={"treatments": [*group.treatments, treatment]}))
        logger.info("catalog_treatment_added", group_id=group_id, code=treatment.code)
        return treatment

    def update_treatment(self, group_id: str, treatment_id: str, name: str, price: float) -> Treatment:
        group = self.repository.get(StorageKey.TREATMENT_GROUPS, group_id)
        existing = group.find_treatment(treatment_id)
        if existing is None:
            raise RecordNotFoundError(StorageKey.TREATMENT_GROUPS, treatment_id)

        updated = Treatment(id=existing.id, code=existing.code, name=name, price=price)
        treatments = [updated if t.id == treatment_id else t for t in group.treatments]
        self._save_group(group.model_copy(update={"treatments": treatments}))
        return updated

    def remove_treatment(self, group_id: str, treatment_id: str) -> None:
        group = self.repository.get(StorageKey.TREATMENT_GROUPS, group_id)
        treatments = [t for t in group.treatments if t.id != treatment_id]
        self._save_group(group.model_copy(update={"treatments": treatments}))


class TreatmentService:
    """Patient treatments: add, start, sessions, complete."""

    def __init__(self, repository: ClinicRepository, billing: Optional[BillingService] = None):
        self.repository = repository
        self.billing = billing or BillingService(repository)

    def add_treatment(
        self,
        patient_id: str,
        group_id: str,
        treatment_id: str,
        doctor_id: str,
        tooth_number=None,
        jaw: Optional[Jaw] = None,
        effect_type: Optional[TreatmentEffect] = None,
        is_old: bool = False
    ) -> PatientTreatment:
        """
        Add a treatment to a patient's chart.

        Args:
            patient_id: Patient file
            group_id: Catalog group
            treatment_id: Treatment within the group
            doctor_id: Responsible doctor
            tooth_number: FDI number (int or form text) for tooth treatments
            jaw: Jaw for jaw treatments
            effect_type: tooth or jaw, required for dynamic groups
            is_old: Historical treatment, stored as completed

        Raises:
            RecordNotFoundError: Unknown patient, group, treatment or doctor
            TreatmentValidationError: Missing or invalid tooth / jaw
        """
        self.repository.get(StorageKey.PATIENTS, patient_id)
        self.repository.get(StorageKey.DOCTORS, doctor_id)
        group = self.repository.get(StorageKey.TREATMENT_GROUPS, group_id)
        treatment = group.find_treatment(treatment_id)
        if treatment is None:
            raise RecordNotFoundError(StorageKey.TREATMENT_GROUPS, treatment_id)

        if effect_type is not None:
            effect_type = TreatmentEffect(effect_type)
        if group.effect == TreatmentEffect.DYNAMIC and effect_type not in (
            TreatmentEffect.TOOTH, TreatmentEffect.JAW
        ):
            raise TreatmentValidationError("Choose tooth or jaw for this treatment")

        tooth = None
        if needs_tooth(group.effect, effect_type):
            if tooth_number is None or str(tooth_number).strip() == "":
                raise TreatmentValidationError("Tooth number is required")
            if not is_valid_tooth_number(tooth_number):
                raise TreatmentValidationError(
                    f"Invalid tooth number {tooth_number}; allowed: 11-18, 21-28, 31-38, 41-48"
                )
            tooth = parse_tooth_number(tooth_number)

        chosen_jaw = None
        if needs_jaw(group.effect, effect_type):
            if group.effect == TreatmentEffect.BOTH_JAWS:
                chosen_jaw = Jaw.BOTH
            elif jaw is None:
                raise TreatmentValidationError("Jaw is required")
            else:
                chosen_jaw = Jaw(jaw)

        record = PatientTreatment(
            id=generate_id(),
            patient_id=patient_id,
            group_id=group_id,
            treatment_id=treatment_id,
            treatment_name=treatment.name,
            tooth_number=tooth,
            jaw=chosen_jaw,
            status=TreatmentStatus.COMPLETED if is_old else TreatmentStatus.PLANNED,
            doctor_id=doctor_id,
            is_old_treatment=is_old,
        )
        self.repository.add(StorageKey.PATIENT_TREATMENTS, record)
        logger.info(
            "treatment_added",
            treatment_id=record.id,
            patient_id=patient_id,
            tooth=tooth,
            jaw=chosen_jaw.value if chosen_jaw else None,
            is_old=is_old
        )
        return record

    def catalog_price(self, record: PatientTreatment) -> float:
        """Current catalog price of the treatment (0 when removed from the catalog)."""
        group = self.repository.find(StorageKey.TREATMENT_GROUPS, record.group_id)
        item = group.find_treatment(record.treatment_id) if group else None
        return item.price if item else 0.0

    def start_treatment(
        self,
        treatment_id: str,
        base_price: Optional[float] = None,
        diagnostic_fee: float = 0.0,
        discount: float = 0.0,
        discount_type: DiscountType = DiscountType.FIXED,
        date: Optional[str] = None
    ) -> Tuple[PatientTreatment, Invoice]:
        """
        Start a planned treatment: invoice it and move it to in progress.

        Args:
            base_price: Invoice base price; defaults to the catalog price

        Raises:
            TreatmentValidationError: Treatment is not planned
        """
        record = self.repository.get(StorageKey.PATIENT_TREATMENTS, treatment_id)
        if record.status != TreatmentStatus.PLANNED:
            raise TreatmentValidationError(
                f"Only planned treatments can be started (status {record.status.value})"
            )

        invoice = self.billing.create_invoice(
            patient_id=record.patient_id,
            doctor_id=record.doctor_id,
            treatment_id=record.id,
            treatment_name=record.treatment_name,
            base_price=self.catalog_price(record) if base_price is None else base_price,
            diagnostic_fee=diagnostic_fee,
            discount=discount,
            discount_type=discount_type,
            date=date,
        )
        updated = record.model_copy(update={
            "status": TreatmentStatus.IN_PROGRESS,
            "invoice_id": invoice.id,
        })
        self.repository.update(StorageKey.PATIENT_TREATMENTS, updated)
        logger.info("treatment_started", treatment_id=treatment_id, invoice_id=invoice.id)
        return updated, invoice

    def add_session(self, treatment_id: str, notes: str = "", date: Optional[str] = None) -> PatientTreatment:
        record = self.repository.get(StorageKey.PATIENT_TREATMENTS, treatment_id)
        session = TreatmentSession(id=generate_id(), date=date or today_iso(), notes=notes)
        updated = record.model_copy(update={"sessions": [*record.sessions, session]})
        self.repository.update(StorageKey.PATIENT_TREATMENTS, updated)
        logger.info("treatment_session_added", treatment_id=treatment_id, sessions=len(updated.sessions))
        return updated

    def complete_treatment(self, treatment_id: str, notes: Optional[str] = None) -> PatientTreatment:
        """
        Mark a treatment completed.

        Raises:
            TreatmentValidationError: Already completed
        """
        record = self.repository.get(StorageKey.PATIENT_TREATMENTS, treatment_id)
        if record.status == TreatmentStatus.COMPLETED:
            raise TreatmentValidationError("Treatment is already completed")

        notes = (notes or "").strip() or None
        updated = record.model_copy(update={
            "status": TreatmentStatus.COMPLETED,
            "completed_notes": notes,
        })
        self.repository.update(StorageKey.PATIENT_TREATMENTS, updated)
        logger.info("treatment_completed", treatment_id=treatment_id)
        return updated

    def for_patient(
        self,
        patient_id: str,
        status: Optional[TreatmentStatus] = None
    ) -> List[PatientTreatment]:
        return [
            t for t in self.repository.patient_treatments()
            if t.patient_id == patient_id and (status is None or t.status == status)
        ]
