"""
Key-value storage for clinic data.

Every collection (patients, appointments, invoices, ...) is one JSON document
under a fixed key, last write wins. Backends:
- MemoryStore: process-local dict (tests, scratch sessions)
- JsonFileStore: one <key>.json file per collection in a directory
- SqlStore: one row per collection in any SQLAlchemy database

A stored value that is not valid JSON reads as the caller's fallback.
"""
import json
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic import config
from clinic.database_models import Base, StoreEntry, utc_now
from clinic.logging_config import get_logger

logger = get_logger(__name__)


class StorageKey(str, Enum):
    """Keys of the stored collections."""
    CLINIC_SETTINGS = "clinic_settings"
    DOCTORS = "doctors"
    TREATMENT_GROUPS = "treatment_groups"
    PATIENTS = "patients"
    APPOINTMENTS = "appointments"
    INVOICES = "invoices"
    PAYMENTS = "payments"
    EXPENSES = "expenses"
    EXPENSE_TYPES = "expense_types"
    STAFF = "staff"
    PRESCRIPTIONS = "prescriptions"
    PATIENT_TREATMENTS = "patient_treatments"
    LABS = "labs"
    LAB_WORK_TYPES = "lab_work_types"
    LAB_ORDERS = "lab_orders"
    LAB_PAYMENTS = "lab_payments"
    DOCTOR_PAYMENTS = "doctor_payments"
    SHARE_TOKENS = "share_tokens"  # {patient_id: token} for read-only share links
    SETTLED_TREATMENTS = "settled_treatments"  # invoice ids the owner checked off
    AUTH_SESSION = "auth_session"


# Collections seeded as empty lists on first start
EMPTY_LIST_KEYS = [
    StorageKey.PATIENTS,
    StorageKey.APPOINTMENTS,
    StorageKey.INVOICES,
    StorageKey.PAYMENTS,
    StorageKey.EXPENSES,
    StorageKey.STAFF,
    StorageKey.PRESCRIPTIONS,
    StorageKey.PATIENT_TREATMENTS,
    StorageKey.LABS,
    StorageKey.LAB_ORDERS,
    StorageKey.LAB_PAYMENTS,
    StorageKey.DOCTOR_PAYMENTS,
]

KeyLike = Union[StorageKey, str]


def _key_name(key: KeyLike) -> str:
    return key.value if isinstance(key, StorageKey) else key


class KeyValueStore(ABC):
    """
    String-keyed JSON document store.

    Subclasses implement raw string access; JSON encoding and the corrupt-value
    fallback live here.
    """

    @abstractmethod
    def get_raw(self, key: str) -> Optional[str]:
        """Stored text for key, or None."""

    @abstractmethod
    def set_raw(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys, sorted."""

    def has(self, key: KeyLike) -> bool:
        return self.get_raw(_key_name(key)) is not None

    def get(self, key: KeyLike, fallback: Any = None) -> Any:
        """
        Decode the JSON document under key.

        Args:
            key: Storage key
            fallback: Returned when the key is missing, empty or not valid JSON

        Returns:
            Decoded value or fallback
        """
        name = _key_name(key)
        raw = self.get_raw(name)
        if not raw:
            return fallback
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("corrupt_store_value", key=name)
            return fallback

    def set(self, key: KeyLike, value: Any) -> None:
        """Encode value as JSON and store it under key."""
        self.set_raw(_key_name(key), json.dumps(value, ensure_ascii=False))

    def remove(self, key: KeyLike) -> None:
        self.delete(_key_name(key))


class MemoryStore(KeyValueStore):
    """Process-local store."""

    def __init__(self):
        self._data = {}

    def get_raw(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """One <key>.json file per collection."""

    def __init__(self, directory: Union[str, Path]):
        """
        Initialize file store.

        Args:
            directory: Directory for the JSON files (created if missing)
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get file path for key."""
        # Sanitize key to prevent path traversal
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def get_raw(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_raw(self, key: str, value: str) -> None:
        self._get_path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        return sorted(path.stem for path in self.directory.glob("*.json"))


class SqlStore(KeyValueStore):
    """
    Store backed by a single SQLAlchemy table.

    Pattern: Thin wrapper around SQLAlchemy, one row per key.
    """

    def __init__(self, database_url: str):
        """
        Initialize SQL store with database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.engine = create_engine(database_url, pool_pre_ping=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def get_raw(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            entry = db.get(StoreEntry, key)
            return entry.value if entry else None

    def set_raw(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            entry = db.get(StoreEntry, key)
            if entry is None:
                db.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value
                entry.updated_at = utc_now()
            db.commit()

    def delete(self, key: str) -> None:
        with self.SessionLocal() as db:
            db.query(StoreEntry).filter(StoreEntry.key == key).delete()
            db.commit()

    def keys(self) -> List[str]:
        with self.SessionLocal() as db:
            return sorted(key for (key,) in db.query(StoreEntry.key).all())


def create_store(url: Optional[str] = None) -> KeyValueStore:
    """
    Build a store from a URL.

    Args:
        url: "memory://", "file:///path/to/dir" or a SQLAlchemy URL.
             Defaults to CLINIC_STORE_URL.

    Returns:
        Matching KeyValueStore
    """
    url = url or config.CLINIC_STORE_URL

    if url == "memory://":
        return MemoryStore()
    if url.startswith("file://"):
        return JsonFileStore(url[len("file://"):])
    return SqlStore(url)


def initialize_storage(store: KeyValueStore) -> None:
    """Seed default data for every key that is not stored yet."""
    defaults = {
        StorageKey.CLINIC_SETTINGS: config.DEFAULT_SETTINGS,
        StorageKey.TREATMENT_GROUPS: [
            {**group, "is_system": True, "treatments": []}
            for group in config.DEFAULT_TREATMENT_GROUPS
        ],
        StorageKey.LAB_WORK_TYPES: config.DEFAULT_LAB_WORK_TYPES,
        StorageKey.EXPENSE_TYPES: config.DEFAULT_EXPENSE_TYPES,
        StorageKey.DOCTORS: config.DEFAULT_DOCTORS,
    }
    defaults.update({key: [] for key in EMPTY_LIST_KEYS})

    seeded = []
    for key, value in defaults.items():
        if not store.has(key):
            store.set(key, value)
            seeded.append(key.value)

    if seeded:
        logger.info("storage_initialized", seeded=seeded)


def generate_id() -> str:
    """Unique record id."""
    return uuid.uuid4().hex


def next_number(numbers: Iterable[Optional[int]]) -> int:
    """Next sequence number: max + 1, or 1 when nothing is numbered yet."""
    present = [n for n in numbers if n is not None]
    if not present:
        return 1
    return max(present) + 1


def format_invoice_no(number: int) -> str:
    return f"INV-{number:04d}"


def format_receipt_no(number: Optional[int]) -> str:
    if number is None:
        return "-"
    return f"RCP-{number:04d}"
