"""Service wiring for one clinic store."""
from typing import Optional

from clinic import config
from clinic.appointments import AppointmentBook
from clinic.auth import AuthManager
from clinic.billing import BillingService
from clinic.lab_orders import LabOrderService
from clinic.logging_config import get_logger, setup_structured_logging
from clinic.patients import PatientService
from clinic.repository import ClinicRepository
from clinic.settings import SettingsService
from clinic.staff import StaffDirectory
from clinic.storage import KeyValueStore, create_store
from clinic.treatments import TreatmentCatalog, TreatmentService

logger = get_logger(__name__)


class ClinicApp:
    """
    All clinic services sharing one repository.

    Example:
        >>> app = ClinicApp.from_url("memory://")
        >>> app.auth.sign_in_owner().role
        <SessionRole.OWNER: 'owner'>
    """

    def __init__(self, store: KeyValueStore):
        self.repository = ClinicRepository(store)
        self.settings = SettingsService(self.repository)
        self.staff = StaffDirectory(self.repository)
        self.auth = AuthManager(self.repository)
        self.patients = PatientService(self.repository)
        self.appointments = AppointmentBook(self.repository)
        self.billing = BillingService(self.repository)
        self.catalog = TreatmentCatalog(self.repository)
        self.treatments = TreatmentService(self.repository, self.billing)
        self.labs = LabOrderService(self.repository)

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "ClinicApp":
        """Open the store at url (default CLINIC_STORE_URL)."""
        return cls(create_store(url))

    @classmethod
    def from_config(cls) -> "ClinicApp":
        """Configure logging from the environment and open the configured store."""
        setup_structured_logging(config.CLINIC_LOG_LEVEL, json_logs=config.CLINIC_JSON_LOGS)
        app = cls.from_url(config.CLINIC_STORE_URL)
        logger.info("clinic_started", store=type(app.repository.store).__name__)
        return app
