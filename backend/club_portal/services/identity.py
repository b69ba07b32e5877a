"""
Identity & Session Manager.

Two principal kinds exist: students (email + PRN) and a single configured
administrator (email + password). At most one principal is active per client
session. The active principal is an explicit AuthContext value passed into
every call; between HTTP requests it travels as an itsdangerous-signed token.
"""

import hmac
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from itsdangerous import BadData, URLSafeSerializer
from sqlalchemy.orm import Session

from club_portal.config import Settings
from club_portal.constants import PrincipalKind, STUDENT_VIEWS
from club_portal.errors import AuthReason, AuthenticationError, NotFoundError, ValidationError
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import Student
from club_portal.services import gateway

logger = get_logger("auth")

TOKEN_SALT = "club-portal-auth"


@dataclass(frozen=True)
class AuthContext:
    """The principal acting in the current client session (or nobody)."""
    principal_kind: Optional[PrincipalKind] = None
    principal_id: Optional[str] = None

    @property
    def is_student(self) -> bool:
        return self.principal_kind is PrincipalKind.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.principal_kind is PrincipalKind.ADMIN

    @property
    def is_anonymous(self) -> bool:
        return self.principal_kind is None


ANONYMOUS = AuthContext()


@dataclass(frozen=True)
class LogoutResult:
    context: AuthContext = ANONYMOUS
    affected_views: List[str] = field(default_factory=list)


def _normalize(value: str) -> str:
    return (value or "").strip().lower()


def login_student(db: Session, ctx: AuthContext, email: str, prn_number: str) -> Tuple[Student, AuthContext]:
    """
    Authenticate a student by email and PRN number.

    Both values are required and compared trimmed and case-insensitively.
    Refused while an admin is logged in on the same client session.
    """
    if ctx.is_admin:
        log_with_context(logger, "WARNING", "Student login refused: admin session active")
        raise AuthenticationError("Log out of the admin account first",
                                  AuthReason.PRINCIPAL_CONFLICT)
    if not _normalize(email) or not _normalize(prn_number):
        raise ValidationError("Email and PRN number are required")

    student = gateway.find_student_by_email(db, email)
    if student is None or _normalize(student.prn_number) != _normalize(prn_number):
        log_with_context(logger, "INFO", "Student login failed",
                         extra_data={"email": _normalize(email)})
        raise AuthenticationError("Invalid email or PRN number")

    log_with_context(logger, "INFO", "Student logged in",
                     context={"student_id": student.id})
    return student, AuthContext(PrincipalKind.STUDENT, student.id)


def login_admin(ctx: AuthContext, email: str, password: str, settings: Settings) -> AuthContext:
    """Authenticate the configured administrator. Refused while a student is logged in."""
    if ctx.is_student:
        log_with_context(logger, "WARNING", "Admin login refused: student session active",
                         context={"student_id": ctx.principal_id})
        raise AuthenticationError("Log out of the student account first",
                                  AuthReason.PRINCIPAL_CONFLICT)

    email_ok = hmac.compare_digest(_normalize(email).encode(), _normalize(settings.admin_email).encode())
    password_ok = hmac.compare_digest((password or "").encode(), settings.admin_password.encode())
    if not (email_ok and password_ok):
        log_with_context(logger, "INFO", "Admin login failed")
        raise AuthenticationError("Invalid admin credentials")

    log_with_context(logger, "INFO", "Admin logged in")
    return AuthContext(PrincipalKind.ADMIN, settings.admin_email)


def logout(ctx: AuthContext) -> LogoutResult:
    """Clear whichever principal is active. Always succeeds."""
    if ctx.is_student:
        log_with_context(logger, "INFO", "Student logged out", context={"student_id": ctx.principal_id})
        return LogoutResult(ANONYMOUS, list(STUDENT_VIEWS))
    if ctx.is_admin:
        log_with_context(logger, "INFO", "Admin logged out")
    return LogoutResult(ANONYMOUS, [])


def refresh(db: Session, ctx: AuthContext) -> Student:
    """Re-read the logged-in student's record."""
    if not ctx.is_student:
        raise AuthenticationError("No student is logged in", AuthReason.NOT_AUTHENTICATED)
    student = gateway.get_student(db, ctx.principal_id)
    if student is None:
        raise NotFoundError("Student record no longer exists")
    return student


# ── Token transport ──────────────────────────────────────────

def _signer(settings: Settings) -> URLSafeSerializer:
    return URLSafeSerializer(settings.secret_key, salt=TOKEN_SALT)


def issue_token(ctx: AuthContext, settings: Settings) -> Optional[str]:
    if ctx.is_anonymous:
        return None
    return _signer(settings).dumps({"kind": ctx.principal_kind.value, "id": ctx.principal_id})


def read_token(token: Optional[str], settings: Settings) -> AuthContext:
    """Decode a bearer token; anything missing, tampered or malformed is anonymous."""
    if not token:
        return ANONYMOUS
    try:
        data = _signer(settings).loads(token)
    except BadData:
        log_with_context(logger, "WARNING", "Rejected token with bad signature")
        return ANONYMOUS
    if not isinstance(data, dict):
        return ANONYMOUS
    try:
        kind = PrincipalKind(data.get("kind"))
    except ValueError:
        return ANONYMOUS
    principal_id = data.get("id")
    if not principal_id:
        return ANONYMOUS
    return AuthContext(kind, str(principal_id))
