"""
Attendance Check-in Service - self-service "I am here" marking.

A student submits the code announced at a session. The checks run in a
fixed order and each failure is terminal:
1. the session exists and has a code configured
2. the student is not already marked present
3. a code was submitted and matches (trimmed, case-insensitive)
Only then is a "present" row written.

The unique (student_id, session_id) constraint is what actually prevents a
double mark: the pre-read in step 2 gives a friendly answer in the common
case, and a constraint violation from a concurrent insert is reported the
same way.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy.orm import Session

from club_portal.constants import ATTENDANCE_VIEWS, AttendanceStatus
from club_portal.errors import (
    CheckInRejected, DuplicateRecordError, NotFoundError, RejectionReason, ValidationError,
)
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import Attendance
from club_portal.services import gateway

logger = get_logger("attendance")


@dataclass(frozen=True)
class CheckInResult:
    """Outcome of an accepted check-in."""
    student_id: str
    session_id: str
    session_name: str
    status: str = AttendanceStatus.PRESENT.value
    affected_views: List[str] = field(default_factory=lambda: list(ATTENDANCE_VIEWS))


def normalize_code(code: str) -> str:
    return (code or "").strip().lower()


def _reject(reason: RejectionReason, message: str, student_id: str, session_id: str):
    log_with_context(logger, "INFO", "Check-in rejected: {}".format(reason.value),
                     context={"student_id": student_id, "session_id": session_id})
    raise CheckInRejected(reason, message)


def mark_attendance(db: Session, student_id: str, session_id: str, submitted_code: str) -> CheckInResult:
    """Validate the session code and record the student as present."""
    start_time = time.time()

    if gateway.get_student(db, student_id) is None:
        raise NotFoundError("Student not found")

    club_session = gateway.get_session(db, session_id)
    if club_session is None or not club_session.has_code:
        _reject(RejectionReason.SESSION_NOT_CONFIGURED,
                "Session code not set for this session. Please contact admin.",
                student_id, session_id)

    # Already-present wins over a wrong code: a repeat check-in always reads as already marked
    existing = gateway.get_attendance(db, student_id, session_id)
    if existing is not None and existing.status == AttendanceStatus.PRESENT.value:
        _reject(RejectionReason.ALREADY_MARKED,
                "You have already marked attendance for this session.",
                student_id, session_id)

    if not normalize_code(submitted_code):
        raise ValidationError("Please enter the session code.")

    if normalize_code(submitted_code) != normalize_code(club_session.session_code):
        _reject(RejectionReason.CODE_MISMATCH,
                "The session code you entered is incorrect.",
                student_id, session_id)

    if existing is not None:
        # An admin wrote absent/not-attempted earlier; only flip it if still not present
        if not gateway.mark_present_if_not_present(db, student_id, session_id):
            _reject(RejectionReason.ALREADY_MARKED,
                    "You have already marked attendance for this session.",
                    student_id, session_id)
    else:
        try:
            gateway.insert_attendance(db, student_id, session_id, AttendanceStatus.PRESENT.value)
        except DuplicateRecordError:
            _reject(RejectionReason.ALREADY_MARKED,
                    "You have already marked attendance for this session.",
                    student_id, session_id)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Attendance marked present for {}".format(club_session.name),
                     context={"student_id": student_id, "session_id": session_id},
                     extra_data={"duration_ms": round(duration_ms, 2)})

    return CheckInResult(student_id=student_id, session_id=session_id, session_name=club_session.name)


def set_attendance_status(db: Session, student_id: str, session_id: str, status: str) -> Attendance:
    """Admin override: write any status for a pair, creating the row if needed."""
    try:
        status = AttendanceStatus(status).value
    except ValueError:
        raise ValidationError("Unknown attendance status: {}".format(status))

    if gateway.get_student(db, student_id) is None:
        raise NotFoundError("Student not found")
    if gateway.get_session(db, session_id) is None:
        raise NotFoundError("Session not found")

    record = gateway.set_attendance(db, student_id, session_id, status)
    log_with_context(logger, "INFO", "Attendance set to {} by admin".format(status),
                     context={"student_id": student_id, "session_id": session_id})
    return record


def attendance_by_student(db: Session, student_id: str) -> Dict[str, str]:
    """Map every session id to this student's status; no row reads as not-attempted."""
    recorded = {rec.session_id: rec.status for rec in gateway.list_attendance_for_student(db, student_id)}
    return {
        session_id: recorded.get(session_id, AttendanceStatus.NOT_ATTEMPTED.value)
        for session_id in gateway.list_session_ids(db)
    }
