"""Front-page counters for a day."""
from typing import Optional

from pydantic import BaseModel

from clinic.models import LabOrderStatus
from clinic.repository import ClinicRepository
from clinic.timeutils import today_iso


class DashboardSummary(BaseModel):
    date: str
    appointments: int  # all statuses, cancelled included
    expenses: float
    pending_lab_orders: int
    patients: int


def dashboard_summary(repository: ClinicRepository, date: Optional[str] = None) -> DashboardSummary:
    day = date or today_iso()
    return DashboardSummary(
        date=day,
        appointments=sum(1 for a in repository.appointments() if a.date == day),
        expenses=sum(e.amount for e in repository.expenses() if e.date == day),
        pending_lab_orders=sum(
            1 for o in repository.lab_orders() if o.status == LabOrderStatus.PENDING
        ),
        patients=len(repository.patients()),
    )
