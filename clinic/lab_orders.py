"""Dental lab orders.

Workflow: pending -> received (cost recorded) or pending -> cancelled.
A lab's balance is the cost of its received orders minus what was paid to it.
"""
from typing import List, Optional

from pydantic import BaseModel

from clinic.billing import InvalidAmountError
from clinic.logging_config import get_logger
from clinic.models import Lab, LabOrder, LabOrderStatus, LabWorkType
from clinic.repository import ClinicRepository
from clinic.storage import StorageKey, generate_id, next_number
from clinic.timeutils import today_iso

logger = get_logger(__name__)


class LabOrderValidationError(ValueError):
    """Raised when a lab order is incomplete or not in a state allowing the action."""
    pass


class LabAccount(BaseModel):
    lab_id: str
    total_cost: float
    total_paid: float
    balance: float


class LabOrderService:
    """Labs, work types and orders."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    # -- labs and work types -------------------------------------------------

    def add_lab(self, name: str, phone: str) -> Lab:
        if not name.strip() or not phone.strip():
            raise LabOrderValidationError("Lab name and phone are required")
        lab = Lab(id=generate_id(), name=name.strip(), phone=phone.strip())
        self.repository.add(StorageKey.LABS, lab)
        logger.info("lab_added", lab_id=lab.id)
        return lab

    def toggle_lab_active(self, lab_id: str) -> Lab:
        lab = self.repository.get(StorageKey.LABS, lab_id)
        updated = lab.model_copy(update={"is_active": not lab.is_active})
        self.repository.update(StorageKey.LABS, updated)
        return updated

    def active_labs(self) -> List[Lab]:
        return [lab for lab in self.repository.labs() if lab.is_active]

    def add_work_type(self, name: str) -> LabWorkType:
        if not name.strip():
            raise LabOrderValidationError("Work type name is required")
        work_type = LabWorkType(id=generate_id(), name=name.strip())
        self.repository.add(StorageKey.LAB_WORK_TYPES, work_type)
        return work_type

    def remove_work_type(self, work_type_id: str) -> None:
        self.repository.delete(StorageKey.LAB_WORK_TYPES, work_type_id)

    # -- orders --------------------------------------------------------------

    def create_order(
        self,
        patient_id: str,
        lab_id: str,
        work_type_id: str,
        due_date: str,
        quantity: int = 1,
        sent_date: Optional[str] = None,
        notes: str = ""
    ) -> LabOrder:
        """
        Send work to a lab.

        Raises:
            LabOrderValidationError: Patient, lab, work type or due date missing
            RecordNotFoundError: Unknown patient, lab or work type
        """
        if not patient_id or not lab_id or not work_type_id or not due_date:
            raise LabOrderValidationError("Patient, lab, work type and due date are required")
        self.repository.get(StorageKey.PATIENTS, patient_id)
        self.repository.get(StorageKey.LABS, lab_id)
        self.repository.get(StorageKey.LAB_WORK_TYPES, work_type_id)

        order = LabOrder(
            id=generate_id(),
            order_no=next_number(o.order_no for o in self.repository.lab_orders()),
            patient_id=patient_id,
            lab_id=lab_id,
            work_type_id=work_type_id,
            quantity=quantity,
            sent_date=sent_date or today_iso(),
            due_date=due_date,
            status=LabOrderStatus.PENDING,
            cost=None,
            notes=notes,
        )
        self.repository.add(StorageKey.LAB_ORDERS, order)
        logger.info("lab_order_created", order_id=order.id, order_no=order.order_no, lab_id=lab_id)
        return order

    def _pending(self, order_id: str) -> LabOrder:
        order = self.repository.get(StorageKey.LAB_ORDERS, order_id)
        if order.status != LabOrderStatus.PENDING:
            raise LabOrderValidationError(
                f"Order {order.order_no} is {order.status.value}, not pending"
            )
        return order

    def receive_order(self, order_id: str, cost: float) -> LabOrder:
        """
        Confirm a pending order came back and record its cost.

        Raises:
            InvalidAmountError: Cost not positive
            LabOrderValidationError: Order not pending
        """
        if cost <= 0:
            raise InvalidAmountError(f"Lab cost must be positive, got {cost}")
        order = self._pending(order_id)

        updated = order.model_copy(update={"status": LabOrderStatus.RECEIVED, "cost": cost})
        self.repository.update(StorageKey.LAB_ORDERS, updated)
        logger.info("lab_order_received", order_id=order_id, cost=cost)
        return updated

    def cancel_order(self, order_id: str) -> LabOrder:
        order = self._pending(order_id)
        updated = order.model_copy(update={"status": LabOrderStatus.CANCELLED})
        self.repository.update(StorageKey.LAB_ORDERS, updated)
        logger.info("lab_order_cancelled", order_id=order_id)
        return updated

    def pending_count(self) -> int:
        return sum(1 for o in self.repository.lab_orders() if o.status == LabOrderStatus.PENDING)

    def lab_account(self, lab_id: str) -> LabAccount:
        """Cost of received orders minus payments made to the lab."""
        total_cost = sum(
            o.cost or 0.0 for o in self.repository.lab_orders()
            if o.lab_id == lab_id and o.status == LabOrderStatus.RECEIVED
        )
        total_paid = sum(p.amount for p in self.repository.lab_payments() if p.lab_id == lab_id)
        return LabAccount(
            lab_id=lab_id,
            total_cost=total_cost,
            total_paid=total_paid,
            balance=total_cost - total_paid,
        )
