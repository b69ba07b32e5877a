"""
Exception taxonomy shared by services and routes.

Three families:
- validation errors: bad input, always recoverable by resubmitting
- state conflicts: already marked, session not active, principal clash
- storage errors: failures reported by the database, never retried
"""

from enum import Enum


class PortalError(Exception):
    """Base class for all domain errors."""
    status_code = 400
    reason = "error"

    def __init__(self, message: str, reason: str = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class ValidationError(PortalError):
    status_code = 422
    reason = "validation_error"


class NotFoundError(PortalError):
    status_code = 404
    reason = "not_found"


class ConflictError(PortalError):
    status_code = 409
    reason = "conflict"


class PermissionDenied(PortalError):
    status_code = 403
    reason = "forbidden"


class AuthReason(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    PRINCIPAL_CONFLICT = "principal_conflict"
    NOT_AUTHENTICATED = "not_authenticated"


class AuthenticationError(PortalError):
    status_code = 401

    def __init__(self, message: str, reason: AuthReason = AuthReason.INVALID_CREDENTIALS):
        super().__init__(message, reason.value)
        self.auth_reason = reason
        if reason is AuthReason.PRINCIPAL_CONFLICT:
            self.status_code = 409


class RejectionReason(str, Enum):
    SESSION_NOT_CONFIGURED = "session_not_configured"
    CODE_MISMATCH = "code_mismatch"
    ALREADY_MARKED = "already_marked"


class CheckInRejected(PortalError):
    """Attendance check-in refused for one of the RejectionReason values."""

    _statuses = {
        RejectionReason.SESSION_NOT_CONFIGURED: 400,
        RejectionReason.CODE_MISMATCH: 400,
        RejectionReason.ALREADY_MARKED: 409,
    }

    def __init__(self, rejection: RejectionReason, message: str):
        super().__init__(message, rejection.value)
        self.rejection = rejection
        self.status_code = self._statuses[rejection]


class TestUnavailable(PortalError):
    """The requested test cannot be taken for the given session right now."""
    __test__ = False  # keep pytest from collecting this class
    status_code = 404
    reason = "test_unavailable"


class StorageError(PortalError):
    """The database rejected or failed an operation."""
    status_code = 503
    reason = "storage_error"


class DuplicateRecordError(StorageError):
    """A unique constraint was violated."""
    status_code = 409
    reason = "duplicate_record"


class InvalidReferenceError(StorageError):
    """A foreign key pointed at a row that does not exist."""
    status_code = 404
    reason = "invalid_reference"
