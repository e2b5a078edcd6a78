"""
Record schemas for the dental clinic.

Every stored collection (settings, doctors, patients, appointments, treatments,
invoices, payments, expenses, staff, labs) is validated through these models at
the storage boundary, so defaults are resolved once and services work with
complete, typed records.

Dates are ISO "YYYY-MM-DD" strings and times are "HH:mm" strings, stored exactly
as entered.
"""
from datetime import datetime, UTC
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clinic import config
from clinic import timeutils

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def utc_now() -> str:
    """Get current UTC timestamp as ISO string."""
    return datetime.now(UTC).isoformat()


class AppointmentStatus(str, Enum):
    """Appointment lifecycle."""
    SCHEDULED = "scheduled"
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TreatmentEffect(str, Enum):
    """What part of the mouth a treatment group applies to."""
    TOOTH = "tooth"
    JAW = "jaw"
    BOTH_JAWS = "both_jaws"
    NONE = "none"
    DYNAMIC = "dynamic"  # caller picks tooth or jaw per treatment


class TreatmentStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Jaw(str, Enum):
    UPPER = "upper"
    LOWER = "lower"
    BOTH = "both"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class InvoiceStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    OTHER = "other"


class StaffRole(str, Enum):
    DOCTOR = "doctor"
    NURSE = "nurse"


class SessionRole(str, Enum):
    OWNER = "owner"
    NURSE = "nurse"


class LabOrderStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class WorkShift(BaseModel):
    """A contiguous working window within one day."""
    id: str = Field(default="default", description="Shift identifier")
    start_time: str = Field(..., pattern=TIME_PATTERN, description="Shift start (HH:mm)")
    end_time: str = Field(..., pattern=TIME_PATTERN, description="Shift end (HH:mm, exclusive)")


class ClinicSettings(BaseModel):
    """Clinic-wide scheduling and display settings."""
    work_days: List[int] = Field(
        default_factory=lambda: list(config.DEFAULT_WORK_DAYS),
        description="Weekday indices, 0 = Sunday ... 6 = Saturday"
    )
    start_time: str = Field(default=config.DEFAULT_START_TIME, pattern=TIME_PATTERN)
    end_time: str = Field(default=config.DEFAULT_END_TIME, pattern=TIME_PATTERN)
    shifts: List[WorkShift] = Field(default_factory=list, description="Ordered work shifts")
    holidays: List[str] = Field(default_factory=list, description="ISO dates the clinic is closed")
    logo: Optional[str] = Field(default=None, description="Logo as a data URL")
    tags: List[str] = Field(
        default_factory=lambda: list(config.DEFAULT_TAGS),
        max_length=config.MAX_PATIENT_TAGS,
        description="Patient tags offered in forms"
    )
    slot_duration: int = Field(
        default=config.DEFAULT_SLOT_DURATION,
        gt=0,
        le=480,
        description="Booking grid step in minutes"
    )

    @field_validator("work_days")
    @classmethod
    def validate_work_days(cls, v):
        """Weekday indices must be 0-6."""
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Work days must be weekday indices between 0 and 6")
        return sorted(set(v))

    @field_validator("holidays")
    @classmethod
    def validate_holidays(cls, v):
        for holiday in v:
            datetime.strptime(holiday, "%Y-%m-%d")
        return v

    def effective_shifts(self) -> List[WorkShift]:
        """Configured shifts, or one shift spanning start_time..end_time."""
        if self.shifts:
            return list(self.shifts)
        return [WorkShift(id="default", start_time=self.start_time, end_time=self.end_time)]


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

class Doctor(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    specialty: str = ""
    phone: str = ""
    is_owner: bool = Field(default=False, description="Clinic owner; listed first and always active")
    is_active: bool = Field(default=True, description="Inactive doctors are hidden from pickers")


class Patient(BaseModel):
    id: str
    file_no: int = Field(..., ge=1)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str = ""
    country_code: str = ""
    gender: Gender = Gender.MALE
    birth_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    birth_date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    address: str = ""
    medical_history: str = ""
    distinct_mark: str = ""
    tags: List[str] = Field(default_factory=list)
    created_by: str = ""
    created_at: str = Field(default_factory=utc_now)


class Staff(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    role: StaffRole
    phone: str = ""
    is_active: bool = True
    has_login: bool = False
    permissions: List[str] = Field(default_factory=list)
    doctor_id: Optional[str] = Field(default=None, description="Linked doctor record for doctor staff")


class AuthSession(BaseModel):
    """Client-side role flag; not a security boundary."""
    role: SessionRole
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------

class Appointment(BaseModel):
    id: str
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN, description="Start time (HH:mm)")
    duration: int = Field(default=config.DEFAULT_APPOINTMENT_DURATION, gt=0, le=24 * 60)
    doctor_id: str
    patient_id: Optional[str] = None
    temp_patient_name: Optional[str] = Field(
        default=None,
        description="Walk-in name for patients without a file yet"
    )
    treatment_type: str = config.DEFAULT_TREATMENT_TYPE
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "apt-001",
                "date": "2025-01-15",
                "time": "10:00",
                "duration": 30,
                "doctor_id": "owner",
                "patient_id": "p-001",
                "temp_patient_name": None,
                "treatment_type": "فحص",
                "status": "scheduled",
                "notes": ""
            }
        }
    )

    @property
    def start_minutes(self) -> int:
        return timeutils.to_minutes(self.time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def end_time(self) -> str:
        return timeutils.end_time(self.time, self.duration)

    @property
    def is_temporary_patient(self) -> bool:
        return bool(self.temp_patient_name)


# ---------------------------------------------------------------------------
# Treatments
# ---------------------------------------------------------------------------

class Treatment(BaseModel):
    id: str
    code: str = ""
    name: str = Field(..., min_length=1)
    price: float = Field(default=0.0, ge=0)


class TreatmentGroup(BaseModel):
    id: str
    code: str
    name_ar: str
    name_en: str
    effect: TreatmentEffect
    is_system: bool = False
    treatments: List[Treatment] = Field(default_factory=list)

    def find_treatment(self, treatment_id: str) -> Optional[Treatment]:
        return next((t for t in self.treatments if t.id == treatment_id), None)


class TreatmentSession(BaseModel):
    id: str
    date: str = Field(..., pattern=DATE_PATTERN)
    notes: str = ""


class PatientTreatment(BaseModel):
    id: str
    patient_id: str
    group_id: str
    treatment_id: str
    treatment_name: str
    tooth_number: Optional[int] = Field(default=None, description="FDI number for tooth treatments")
    jaw: Optional[Jaw] = Field(default=None, description="Jaw for jaw-only treatments")
    status: TreatmentStatus = TreatmentStatus.PLANNED
    doctor_id: str
    invoice_id: Optional[str] = None
    sessions: List[TreatmentSession] = Field(default_factory=list)
    is_old_treatment: bool = False
    created_at: str = Field(default_factory=utc_now)
    completed_notes: Optional[str] = None

    @property
    def is_jaw_only(self) -> bool:
        return self.tooth_number is None


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

class Invoice(BaseModel):
    id: str
    invoice_no: int = Field(..., ge=1)
    patient_id: str
    doctor_id: str
    treatment_id: str
    treatment_name: str
    base_price: float = Field(default=0.0, ge=0)
    diagnostic_fee: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0)
    discount_type: DiscountType = DiscountType.FIXED
    total: float = Field(default=0.0, ge=0)
    paid: float = 0.0
    status: InvoiceStatus = InvoiceStatus.UNPAID
    date: str = Field(..., pattern=DATE_PATTERN)
    created_at: str = Field(default_factory=utc_now)

    @property
    def balance(self) -> float:
        return self.total - self.paid


class Payment(BaseModel):
    id: str
    invoice_id: str
    patient_id: str
    amount: float = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    date: str = Field(..., pattern=DATE_PATTERN)
    notes: str = ""
    receipt_no: Optional[int] = Field(default=None, description="Sequential; shown as RCP-0001")
    created_at: str = Field(default_factory=utc_now)


class Expense(BaseModel):
    id: str
    type: str = Field(..., min_length=1)
    custom_type: str = ""
    amount: float = Field(..., gt=0)
    date: str = Field(..., pattern=DATE_PATTERN)
    notes: str = ""
    created_at: str = Field(default_factory=utc_now)


class DoctorPayment(BaseModel):
    id: str
    doctor_id: str
    amount: float = Field(..., gt=0)
    date: str = Field(..., pattern=DATE_PATTERN)
    notes: str = ""
    created_at: str = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Prescriptions
# ---------------------------------------------------------------------------

class Medication(BaseModel):
    name: str = Field(..., min_length=1)
    dosage: str = ""
    type: str = ""
    duration: int = Field(default=7, ge=0, description="Days")
    notes: str = ""


class Prescription(BaseModel):
    id: str
    patient_id: str
    medications: List[Medication] = Field(default_factory=list)
    date: str = Field(..., pattern=DATE_PATTERN)


# ---------------------------------------------------------------------------
# Labs
# ---------------------------------------------------------------------------

class Lab(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    phone: str = ""
    is_active: bool = True


class LabWorkType(BaseModel):
    id: str
    name: str = Field(..., min_length=1)


class LabOrder(BaseModel):
    id: str
    order_no: int = Field(..., ge=1)
    patient_id: str
    lab_id: str
    work_type_id: str
    quantity: int = Field(default=1, ge=1)
    sent_date: str = Field(..., pattern=DATE_PATTERN)
    due_date: str = Field(..., pattern=DATE_PATTERN)
    status: LabOrderStatus = LabOrderStatus.PENDING
    cost: Optional[float] = Field(default=None, description="Set when the work is received")
    notes: str = ""
    created_at: str = Field(default_factory=utc_now)


class LabPayment(BaseModel):
    id: str
    lab_id: str
    amount: float = Field(..., gt=0)
    date: str = Field(..., pattern=DATE_PATTERN)
    notes: str = ""
    created_at: str = Field(default_factory=utc_now)
