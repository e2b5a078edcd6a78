"""End-to-end clinic day over the persistent store backends."""
import pytest

from clinic.app import ClinicApp
from clinic.appointments import AppointmentConflictError
from clinic.billing import ReportPeriod
from clinic.dashboard import dashboard_summary
from clinic.models import AppointmentStatus, InvoiceStatus, LabOrderStatus, TreatmentStatus
from clinic.storage import JsonFileStore, SqlStore

DAY = "2025-01-15"


@pytest.fixture(params=["file", "sql"])
def store(request, tmp_path):
    if request.param == "file":
        return JsonFileStore(tmp_path / "clinic")
    return SqlStore(f"sqlite:///{tmp_path / 'clinic.db'}")


def test_full_visit(store):
    """Should carry a patient from booking through treatment, payment and lab work."""
    app = ClinicApp(store)
    app.auth.sign_in_owner()

    patient = app.patients.register("أحمد الخطيب", "912345678", "دمشق", "1990-05-20")
    apt = app.appointments.book(DAY, "10:00", "owner", patient_id=patient.id)
    with pytest.raises(AppointmentConflictError):
        app.appointments.book(DAY, "10:15", "owner", temp_patient_name="زائر")

    for _ in range(3):
        app.appointments.advance(apt.id)

    filling = app.catalog.add_treatment("g1", "حشوة", 100)
    record = app.treatments.add_treatment(patient.id, "g1", filling.id, "owner", tooth_number=16)
    started, invoice = app.treatments.start_treatment(record.id, diagnostic_fee=20, date=DAY)
    app.billing.add_payment(invoice.id, 120, date=DAY)
    app.treatments.complete_treatment(record.id, notes="تمت")

    lab = app.labs.add_lab("مخبر النور", "0112233")
    order = app.labs.create_order(patient.id, lab.id, "lw1", due_date="2025-01-25", sent_date=DAY)
    app.labs.receive_order(order.id, 40)
    app.billing.pay_lab(lab.id, 40, date=DAY)

    report = app.billing.revenue_report(ReportPeriod.DAILY, DAY)
    assert report.revenue == 120
    assert report.expenses == 40
    assert report.net_profit == 80

    assert app.appointments.agenda(DAY)[0].status == AppointmentStatus.COMPLETED
    assert app.repository.invoices()[0].status == InvoiceStatus.PAID
    assert app.treatments.for_patient(patient.id)[0].status == TreatmentStatus.COMPLETED
    assert app.repository.lab_orders()[0].status == LabOrderStatus.RECEIVED
    assert app.labs.lab_account(lab.id).balance == 0
    assert dashboard_summary(app.repository, DAY).patients == 1


def test_data_survives_reopen(store, tmp_path):
    """Should read back stored records and keep changed defaults on restart."""
    app = ClinicApp(store)
    patient = app.patients.register("ليلى", "987654321", "حلب", "2000-01-01")
    app.settings.set_slot_duration(15)
    app.billing.remove_expense_type("ماء")

    if isinstance(store, JsonFileStore):
        reopened = ClinicApp(JsonFileStore(store.directory))
    else:
        reopened = ClinicApp(SqlStore(f"sqlite:///{tmp_path / 'clinic.db'}"))

    assert [p.id for p in reopened.repository.patients()] == [patient.id]
    assert reopened.settings.get().slot_duration == 15
    assert "ماء" not in reopened.repository.get_expense_types()
    assert len(reopened.appointments.free_slots(DAY, "owner")) == 32


def test_from_url_memory():
    app = ClinicApp.from_url("memory://")

    assert app.auth.sign_in_owner().role.value == "owner"
    assert [d.id for d in app.staff.doctors()] == ["owner"]
