"""Client-side role session and path permissions.

This is a role flag for showing or hiding sections, not a security boundary:
there are no passwords and the session lives in the same store as the data.
"""
from typing import Optional

from clinic.logging_config import bind_actor, clear_actor, get_logger
from clinic.models import AuthSession, SessionRole, StaffRole
from clinic.repository import ClinicRepository
from clinic.staff import ALL_PERMISSIONS
from clinic.storage import StorageKey

logger = get_logger(__name__)

FULL_PERMISSIONS = list(ALL_PERMISSIONS)

# Finance pages that share the "expenses" permission
EXPENSE_PATHS = {"/finance/expenses", "/finance/doctor-accounting", "/finance/reports"}


class InvalidStaffLoginError(Exception):
    """Raised when a staff member may not sign in."""
    pass


def permission_for_path(path: str) -> Optional[str]:
    """
    Permission key guarding a path.

    Returns:
        Permission key, or None for the dashboard and unknown paths (open to all)
    """
    if path in ("/", ""):
        return None
    if path.startswith("/patients"):
        return "patients"
    if path.startswith("/appointments"):
        return "appointments"
    if path.startswith("/settings"):
        return "settings"
    if path == "/finance/invoices":
        return "invoices"
    if path == "/finance/payments":
        return "payments"
    if path in EXPENSE_PATHS:
        return "expenses"
    if path.startswith("/labs"):
        return "labs"
    return None


def has_permission(path: str, session: AuthSession) -> bool:
    """Owners see everything; others need the path's permission key."""
    if session.role == SessionRole.OWNER:
        return True
    permission = permission_for_path(path)
    if permission is None:
        return True
    return permission in session.permissions


class AuthManager:
    """Sign in, sign out and read the current role session."""

    def __init__(self, repository: ClinicRepository):
        self.repository = repository

    def current_session(self) -> Optional[AuthSession]:
        return self.repository.get_auth_session()

    def sign_in_owner(self) -> AuthSession:
        session = AuthSession(role=SessionRole.OWNER, permissions=list(FULL_PERMISSIONS))
        self.repository.save_auth_session(session)
        bind_actor(session.role.value)
        logger.info("signed_in", role=session.role.value)
        return session

    def sign_in_nurse(self, staff_id: str) -> AuthSession:
        """
        Sign in as a nurse.

        Raises:
            InvalidStaffLoginError: Unknown staff, not a nurse, inactive, or login disabled
        """
        member = self.repository.find(StorageKey.STAFF, staff_id)
        if (
            member is None
            or member.role != StaffRole.NURSE
            or not member.is_active
            or not member.has_login
        ):
            logger.warning("sign_in_rejected", staff_id=staff_id)
            raise InvalidStaffLoginError(f"Staff {staff_id} cannot sign in")

        session = AuthSession(
            role=SessionRole.NURSE,
            staff_id=member.id,
            staff_name=member.name,
            permissions=list(member.permissions),
        )
        self.repository.save_auth_session(session)
        bind_actor(session.role.value, member.id)
        logger.info("signed_in", role=session.role.value, staff_id=member.id)
        return session

    def sign_out(self) -> None:
        self.repository.save_auth_session(None)
        logger.info("signed_out")
        clear_actor()

    def can_access(self, path: str) -> bool:
        """False when nobody is signed in."""
        session = self.current_session()
        if session is None:
            return False
        return has_permission(path, session)
