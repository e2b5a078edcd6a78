"""
Invoices, payments, expenses and payouts.

Rules:
- Invoice total = max(0, base + diagnostic - discount); a percentage discount
  is taken from base + diagnostic
- Invoice status: paid when paid >= total, partial when paid > 0, else unpaid
- Every doctor or lab payout is also written as an expense, so the revenue
  report subtracts expenses only once
"""
import calendar
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel

from clinic import config
from clinic.logging_config import get_logger
from clinic.models import (
    DiscountType,
    DoctorPayment,
    Expense,
    Invoice,
    InvoiceStatus,
    LabPayment,
    Payment,
    PaymentMethod,
)
from clinic.repository import ClinicRepository
from clinic.storage import StorageKey, generate_id, next_number
from clinic.timeutils import parse_iso_date, today_iso

logger = get_logger(__name__)

OTHER_EXPENSE_TYPE = "مصاريف أخرى"  # needs a custom type name
MAX_EXPENSE_TYPES = 10


class InvalidAmountError(ValueError):
    """Raised when a money amount is zero or negative."""
    pass


class ExpenseValidationError(ValueError):
    """Raised when an expense has no usable type."""
    pass


class ReportPeriod(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RevenueReport(BaseModel):
    """Totals for one reporting window (dates inclusive)."""
    period: ReportPeriod
    date_from: str
    date_to: str
    revenue: float
    expenses: float
    doctor_payouts: float
    lab_payouts: float
    net_profit: float


class DoctorAccount(BaseModel):
    doctor_id: str
    revenue: float  # invoiced total
    paid: float  # paid out to the doctor
    balance: float
    treatment_count: int


class DoctorStatement(BaseModel):
    """One doctor's invoices for a month, with the all-time payout history."""
    doctor_id: str
    month: str  # YYYY-MM
    invoices: List[Invoice]
    month_total: float
    payments: List[DoctorPayment]
    settled_invoice_ids: List[str]


def invoice_total(
    base_price: float,
    diagnostic_fee: float = 0.0,
    discount: float = 0.0,
    discount_type: DiscountType = DiscountType.FIXED
) -> float:
    """
    Invoice total after discount, never negative.

    Example:
        >>> invoice_total(100, 20, 10, DiscountType.PERCENTAGE)
        108.0
    """
    total = base_price + diagnostic_fee
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        total -= total * (discount / 100)
    else:
        total -= discount
    return max(0.0, float(total))


def invoice_status(paid: float, total: float) -> InvoiceStatus:
    if paid >= total:
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def period_window(period: ReportPeriod, date: str) -> Tuple[str, str]:
    """
    First and last ISO date of the day, month or year containing `date`.

    Example:
        >>> period_window(ReportPeriod.MONTHLY, "2024-02-10")
        ('2024-02-01', '2024-02-29')
    """
    period = ReportPeriod(period)
    day = parse_iso_date(date)
    if period == ReportPeriod.DAILY:
        return date, date
    if period == ReportPeriod.MONTHLY:
        last = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1).isoformat(), day.replace(day=last).isoformat()
    return f"{day.year:04d}-01-01", f"{day.year:04d}-12-31"


def _in_window(date: str, date_from: str, date_to: str) -> bool:
    # ISO dates compare correctly as strings
    return date_from <= date <= date_to


def _require_positive(amount: float) -> None:
    if amount <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount}")


class BillingService:
    """Money flows of the clinic."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    # -- invoices ------------------------------------------------------------

    def create_invoice(
        self,
        patient_id: str,
        doctor_id: str,
        treatment_id: str,
        treatment_name: str,
        base_price: float,
        diagnostic_fee: float = 0.0,
        discount: float = 0.0,
        discount_type: DiscountType = DiscountType.FIXED,
        date: Optional[str] = None
    ) -> Invoice:
        """
        Create an unpaid invoice with the next invoice number.

        Args:
            treatment_id: Patient treatment the invoice bills
            base_price: Treatment price
            diagnostic_fee: Extra fee added before the discount
            discount: Amount, or percent when discount_type is percentage

        Returns:
            Stored invoice
        """
        invoice = Invoice(
            id=generate_id(),
            invoice_no=next_number(i.invoice_no for i in self.repository.invoices()),
            patient_id=patient_id,
            doctor_id=doctor_id,
            treatment_id=treatment_id,
            treatment_name=treatment_name,
            base_price=base_price,
            diagnostic_fee=diagnostic_fee,
            discount=discount,
            discount_type=discount_type,
            total=invoice_total(base_price, diagnostic_fee, discount, discount_type),
            paid=0.0,
            status=InvoiceStatus.UNPAID,
            date=date or today_iso(),
        )
        self.repository.add(StorageKey.INVOICES, invoice)
        logger.info(
            "invoice_created",
            invoice_id=invoice.id,
            invoice_no=invoice.invoice_no,
            patient_id=patient_id,
            total=invoice.total
        )
        return invoice

    def patient_invoices(self, patient_id: str) -> List[Invoice]:
        return [i for i in self.repository.invoices() if i.patient_id == patient_id]

    def patient_balance(self, patient_id: str) -> float:
        """Outstanding amount over all of a patient's invoices."""
        return sum(i.balance for i in self.patient_invoices(patient_id))

    def _apply_to_invoice(self, invoice_id: str, delta: float) -> Invoice:
        invoice = self.repository.get(StorageKey.INVOICES, invoice_id)
        paid = invoice.paid + delta
        updated = invoice.model_copy(update={"paid": paid, "status": invoice_status(paid, invoice.total)})
        self.repository.update(StorageKey.INVOICES, updated)
        return updated

    # -- payments ------------------------------------------------------------

    def add_payment(
        self,
        invoice_id: str,
        amount: float,
        method: PaymentMethod = PaymentMethod.CASH,
        date: Optional[str] = None,
        notes: str = ""
    ) -> Payment:
        """
        Record a patient payment against an invoice.

        Raises:
            InvalidAmountError: Amount not positive
            RecordNotFoundError: Unknown invoice
        """
        _require_positive(amount)
        invoice = self.repository.get(StorageKey.INVOICES, invoice_id)

        payment = Payment(
            id=generate_id(),
            invoice_id=invoice_id,
            patient_id=invoice.patient_id,
            amount=amount,
            method=method,
            date=date or today_iso(),
            notes=notes,
            receipt_no=next_number(p.receipt_no for p in self.repository.payments()),
        )
        self.repository.add(StorageKey.PAYMENTS, payment)
        updated = self._apply_to_invoice(invoice_id, amount)

        logger.info(
            "payment_recorded",
            payment_id=payment.id,
            receipt_no=payment.receipt_no,
            invoice_id=invoice_id,
            amount=amount,
            invoice_status=updated.status.value
        )
        return payment

    def edit_payment(self, payment_id: str, amount: float) -> Payment:
        """
        Change a payment amount and re-apply the difference to its invoice.

        Raises:
            InvalidAmountError: Amount not positive
        """
        _require_positive(amount)
        payment = self.repository.get(StorageKey.PAYMENTS, payment_id)
        diff = amount - payment.amount

        updated = payment.model_copy(update={"amount": amount})
        self.repository.update(StorageKey.PAYMENTS, updated)
        self._apply_to_invoice(payment.invoice_id, diff)

        logger.info("payment_edited", payment_id=payment_id, old_amount=payment.amount, amount=amount)
        return updated

    # -- expenses ------------------------------------------------------------

    def add_expense(
        self,
        type: str,
        amount: float,
        date: Optional[str] = None,
        custom_type: str = "",
        notes: str = ""
    ) -> Expense:
        """
        Record an expense.

        Raises:
            ExpenseValidationError: Missing type, or "other" without a custom type
            InvalidAmountError: Amount not positive
        """
        if not type:
            raise ExpenseValidationError("Expense type is required")
        _require_positive(amount)
        if type == OTHER_EXPENSE_TYPE and not custom_type.strip():
            raise ExpenseValidationError("Custom expense type is required")

        expense = Expense(
            id=generate_id(),
            type=type,
            custom_type=custom_type,
            amount=amount,
            date=date or today_iso(),
            notes=notes,
        )
        self.repository.add(StorageKey.EXPENSES, expense)
        logger.info("expense_recorded", expense_id=expense.id, type=type, amount=amount)
        return expense

    def add_expense_type(self, name: str) -> List[str]:
        """Add a selectable expense type (at most 10; blanks and duplicates ignored)."""
        types = self.repository.get_expense_types()
        name = name.strip()
        if name and name not in types and len(types) < MAX_EXPENSE_TYPES:
            types.append(name)
            self.repository.save_expense_types(types)
        return types

    def remove_expense_type(self, name: str) -> List[str]:
        types = [t for t in self.repository.get_expense_types() if t != name]
        self.repository.save_expense_types(types)
        return types

    # -- doctor payouts ------------------------------------------------------

    def pay_doctor(
        self,
        doctor_id: str,
        amount: float,
        date: Optional[str] = None,
        notes: str = ""
    ) -> DoctorPayment:
        """Pay a doctor; also recorded as a doctor-payments expense."""
        _require_positive(amount)
        doctor = self.repository.get(StorageKey.DOCTORS, doctor_id)
        date = date or today_iso()

        payment = DoctorPayment(id=generate_id(), doctor_id=doctor_id, amount=amount, date=date, notes=notes)
        self.repository.add(StorageKey.DOCTOR_PAYMENTS, payment)
        self.repository.add(StorageKey.EXPENSES, Expense(
            id=generate_id(),
            type=config.DOCTOR_PAYMENT_EXPENSE_TYPE,
            custom_type=f"دفعة للطبيب {doctor.name}",
            amount=amount,
            date=date,
            notes=notes,
        ))

        logger.info("doctor_paid", doctor_id=doctor_id, amount=amount)
        return payment

    def doctor_account(self, doctor_id: str) -> DoctorAccount:
        invoices = [i for i in self.repository.invoices() if i.doctor_id == doctor_id]
        revenue = sum(i.total for i in invoices)
        paid = sum(p.amount for p in self.repository.doctor_payments() if p.doctor_id == doctor_id)
        return DoctorAccount(
            doctor_id=doctor_id,
            revenue=revenue,
            paid=paid,
            balance=revenue - paid,
            treatment_count=len(invoices),
        )

    def doctor_statement(self, doctor_id: str, month: str) -> DoctorStatement:
        """
        Invoices of a doctor within a month.

        Args:
            month: YYYY-MM
        """
        date_from, date_to = period_window(ReportPeriod.MONTHLY, f"{month}-01")
        invoices = sorted(
            (
                i for i in self.repository.invoices()
                if i.doctor_id == doctor_id and _in_window(i.date, date_from, date_to)
            ),
            key=lambda i: i.date
        )
        settled = set(self.repository.get_settled_treatments())
        return DoctorStatement(
            doctor_id=doctor_id,
            month=month,
            invoices=invoices,
            month_total=sum(i.total for i in invoices),
            payments=[p for p in self.repository.doctor_payments() if p.doctor_id == doctor_id],
            settled_invoice_ids=[i.id for i in invoices if i.id in settled],
        )

    def toggle_settled(self, invoice_id: str) -> bool:
        """Flip the owner's settled check mark on an invoice; returns the new state."""
        settled = self.repository.get_settled_treatments()
        if invoice_id in settled:
            settled.remove(invoice_id)
            now_settled = False
        else:
            settled.append(invoice_id)
            now_settled = True
        self.repository.save_settled_treatments(settled)
        return now_settled

    # -- lab payouts ---------------------------------------------------------

    def pay_lab(
        self,
        lab_id: str,
        amount: float,
        date: Optional[str] = None,
        notes: str = ""
    ) -> LabPayment:
        """Pay a lab; also recorded as a lab-expenses expense."""
        _require_positive(amount)
        lab = self.repository.get(StorageKey.LABS, lab_id)
        date = date or today_iso()

        payment = LabPayment(id=generate_id(), lab_id=lab_id, amount=amount, date=date, notes=notes)
        self.repository.add(StorageKey.LAB_PAYMENTS, payment)
        self.repository.add(StorageKey.EXPENSES, Expense(
            id=generate_id(),
            type=config.LAB_PAYMENT_EXPENSE_TYPE,
            custom_type=f"دفعة للمخبر {lab.name}",
            amount=amount,
            date=date,
            notes=notes,
        ))

        logger.info("lab_paid", lab_id=lab_id, amount=amount)
        return payment

    # -- reports -------------------------------------------------------------

    def revenue_report(self, period: ReportPeriod, date: Optional[str] = None) -> RevenueReport:
        """
        Revenue and costs for the day, month or year containing `date`.

        Net profit is revenue minus expenses. Doctor and lab payouts are shown
        on their own but are already part of the expenses.
        """
        period = ReportPeriod(period)
        date_from, date_to = period_window(period, date or today_iso())

        def window_sum(records) -> float:
            return sum(r.amount for r in records if _in_window(r.date, date_from, date_to))

        revenue = window_sum(self.repository.payments())
        expenses = window_sum(self.repository.expenses())
        return RevenueReport(
            period=period,
            date_from=date_from,
            date_to=date_to,
            revenue=revenue,
            expenses=expenses,
            doctor_payouts=window_sum(self.repository.doctor_payments()),
            lab_payouts=window_sum(self.repository.lab_payments()),
            net_profit=revenue - expenses,
        )
