"""Tests for invoices, payments, expenses and reports."""
import pytest

from clinic import config
from clinic.billing import (
    ExpenseValidationError,
    InvalidAmountError,
    ReportPeriod,
    invoice_status,
    invoice_total,
    period_window,
)
from clinic.models import DiscountType, InvoiceStatus
from clinic.repository import RecordNotFoundError

DAY = "2025-01-15"


@pytest.fixture
def billing(app):
    return app.billing


@pytest.fixture
def invoice(billing, patient):
    return billing.create_invoice(
        patient_id=patient.id,
        doctor_id="owner",
        treatment_id="pt-1",
        treatment_name="حشوة",
        base_price=100,
        diagnostic_fee=20,
        discount=10,
        discount_type=DiscountType.PERCENTAGE,
        date=DAY,
    )


class TestInvoiceMath:

    def test_percentage_discount(self):
        assert invoice_total(100, 20, 10, DiscountType.PERCENTAGE) == 108.0

    def test_fixed_discount(self):
        assert invoice_total(100, 20, 30, DiscountType.FIXED) == 90.0

    def test_never_negative(self):
        assert invoice_total(30, 0, 50) == 0.0

    @pytest.mark.parametrize("paid,total,expected", [
        (0, 100, InvoiceStatus.UNPAID),
        (40, 100, InvoiceStatus.PARTIAL),
        (100, 100, InvoiceStatus.PAID),
        (120, 100, InvoiceStatus.PAID),
    ])
    def test_status(self, paid, total, expected):
        assert invoice_status(paid, total) == expected

    def test_period_windows(self):
        assert period_window(ReportPeriod.DAILY, "2024-02-10") == ("2024-02-10", "2024-02-10")
        assert period_window(ReportPeriod.MONTHLY, "2024-02-10") == ("2024-02-01", "2024-02-29")
        assert period_window("yearly", "2024-06-01") == ("2024-01-01", "2024-12-31")


class TestInvoicesAndPayments:

    def test_invoice_numbers_increase(self, billing, invoice, patient):
        second = billing.create_invoice(patient.id, "owner", "pt-2", "تنظيف", 50, date=DAY)

        assert invoice.invoice_no == 1
        assert second.invoice_no == 2
        assert invoice.total == 108.0
        assert invoice.status == InvoiceStatus.UNPAID

    def test_payments_update_invoice(self, billing, invoice, patient):
        """Should move the invoice from unpaid to partial to paid."""
        first = billing.add_payment(invoice.id, 50, date=DAY)
        assert billing.repository.invoices()[0].status == InvoiceStatus.PARTIAL
        assert billing.patient_balance(patient.id) == 58.0

        second = billing.add_payment(invoice.id, 58, date=DAY)
        stored = billing.repository.invoices()[0]

        assert (first.receipt_no, second.receipt_no) == (1, 2)
        assert stored.paid == 108.0
        assert stored.status == InvoiceStatus.PAID
        assert billing.patient_balance(patient.id) == 0

    def test_edit_payment_reapplies_difference(self, billing, invoice):
        payment = billing.add_payment(invoice.id, 108, date=DAY)

        billing.edit_payment(payment.id, 100)
        stored = billing.repository.invoices()[0]

        assert stored.paid == 100
        assert stored.status == InvoiceStatus.PARTIAL

    @pytest.mark.parametrize("amount", [0, -5])
    def test_payment_must_be_positive(self, billing, invoice, amount):
        with pytest.raises(InvalidAmountError):
            billing.add_payment(invoice.id, amount)

    def test_payment_for_unknown_invoice(self, billing):
        with pytest.raises(RecordNotFoundError):
            billing.add_payment("nope", 10)


class TestExpenses:

    def test_add_expense(self, billing):
        expense = billing.add_expense("إيجار", 500, date=DAY)

        assert billing.repository.expenses() == [expense]

    def test_other_type_needs_custom_name(self, billing):
        with pytest.raises(ExpenseValidationError):
            billing.add_expense("مصاريف أخرى", 20, date=DAY)

        expense = billing.add_expense("مصاريف أخرى", 20, date=DAY, custom_type="قرطاسية")
        assert expense.custom_type == "قرطاسية"

    def test_missing_type_and_bad_amount(self, billing):
        with pytest.raises(ExpenseValidationError):
            billing.add_expense("", 20)
        with pytest.raises(InvalidAmountError):
            billing.add_expense("إيجار", 0)

    def test_expense_types_capped_at_ten(self, billing):
        assert len(billing.repository.get_expense_types()) == 7

        billing.add_expense_type("إيجار")
        for name in ["إنترنت", "هاتف", "تنظيف", "تسويق"]:
            types = billing.add_expense_type(name)

        assert len(types) == 10
        assert "تسويق" not in types
        assert types.count("إيجار") == 1

    def test_remove_expense_type(self, billing):
        types = billing.remove_expense_type("ماء")

        assert "ماء" not in types
        assert "ماء" not in billing.repository.get_expense_types()


class TestPayouts:

    def test_pay_doctor_records_expense(self, billing, doctor):
        billing.pay_doctor(doctor.id, 300, date=DAY)

        [expense] = billing.repository.expenses()
        assert expense.type == config.DOCTOR_PAYMENT_EXPENSE_TYPE
        assert expense.custom_type == f"دفعة للطبيب {doctor.name}"
        assert expense.amount == 300

    def test_doctor_account(self, billing, doctor, patient):
        billing.create_invoice(patient.id, doctor.id, "pt-1", "تقويم", 1000, date=DAY)
        billing.create_invoice(patient.id, doctor.id, "pt-2", "تقويم", 500, date=DAY)
        billing.pay_doctor(doctor.id, 600, date=DAY)

        account = billing.doctor_account(doctor.id)

        assert account.revenue == 1500
        assert account.paid == 600
        assert account.balance == 900
        assert account.treatment_count == 2

    def test_doctor_statement_and_settled_marks(self, billing, doctor, patient):
        jan = billing.create_invoice(patient.id, doctor.id, "pt-1", "تقويم", 100, date="2025-01-20")
        billing.create_invoice(patient.id, doctor.id, "pt-2", "تقويم", 200, date="2025-02-01")

        assert billing.toggle_settled(jan.id) is True
        statement = billing.doctor_statement(doctor.id, "2025-01")

        assert [i.id for i in statement.invoices] == [jan.id]
        assert statement.month_total == 100
        assert statement.settled_invoice_ids == [jan.id]

        assert billing.toggle_settled(jan.id) is False
        assert billing.doctor_statement(doctor.id, "2025-01").settled_invoice_ids == []

    def test_pay_lab_records_expense(self, app, billing):
        lab = app.labs.add_lab("مخبر النور", "0112233")

        billing.pay_lab(lab.id, 150, date=DAY)

        [expense] = billing.repository.expenses()
        assert expense.type == config.LAB_PAYMENT_EXPENSE_TYPE
        assert expense.custom_type == "دفعة للمخبر مخبر النور"

    def test_pay_unknown_lab(self, billing):
        with pytest.raises(RecordNotFoundError):
            billing.pay_lab("ghost", 10)


class TestRevenueReport:

    def test_monthly_net_counts_payouts_once(self, app, billing, invoice, doctor):
        """Should subtract doctor and lab payouts only through expenses."""
        lab = app.labs.add_lab("مخبر", "011")
        billing.add_payment(invoice.id, 108, date=DAY)
        billing.add_expense("إيجار", 20, date="2025-01-02")
        billing.pay_doctor(doctor.id, 30, date="2025-01-20")
        billing.pay_lab(lab.id, 10, date="2025-01-31")
        billing.add_expense("إيجار", 999, date="2025-02-01")

        report = billing.revenue_report(ReportPeriod.MONTHLY, DAY)

        assert (report.date_from, report.date_to) == ("2025-01-01", "2025-01-31")
        assert report.revenue == 108
        assert report.expenses == 60
        assert report.doctor_payouts == 30
        assert report.lab_payouts == 10
        assert report.net_profit == 48

    def test_daily_report(self, billing, invoice):
        billing.add_payment(invoice.id, 50, date=DAY)
        billing.add_payment(invoice.id, 20, date="2025-01-16")

        report = billing.revenue_report("daily", DAY)

        assert report.revenue == 50
        assert report.net_profit == 50
