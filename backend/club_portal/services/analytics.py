"""
Admin analytics - per-student and per-session aggregates.

All figures are computed from freshly fetched rows; nothing is cached.
"""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from club_portal.constants import AttendanceStatus
from club_portal.errors import NotFoundError
from club_portal.services import gateway


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _gender(student) -> str:
    return (student.gender or "").strip().lower()


def _attendance_matrix(db: Session) -> Dict[str, Dict[str, str]]:
    matrix: Dict[str, Dict[str, str]] = {}
    for rec in gateway.list_all_attendance(db):
        matrix.setdefault(rec.student_id, {})[rec.session_id] = rec.status
    return matrix


def student_overview(db: Session, mentor: Optional[str] = None) -> dict:
    """Students with attendance map and average score, plus headline totals."""
    students = gateway.list_students(db, mentor=mentor)
    session_ids = gateway.list_session_ids(db)
    matrix = _attendance_matrix(db)

    scores: Dict[str, list] = {}
    for rec in gateway.list_all_scores(db):
        scores.setdefault(rec.student_id, []).append(rec.score)

    rows = []
    for student in students:
        recorded = matrix.get(student.id, {})
        own_scores = [s for s in scores.get(student.id, []) if s > 0]
        rows.append({
            "id": student.id,
            "name": student.full_name,
            "email": student.email,
            "prn_number": student.prn_number,
            "roll_number": student.roll_number,
            "branch": student.branch,
            "division": student.division,
            "gender": student.gender,
            "mentor": student.mentor,
            "is_paid": bool(student.is_paid),
            "average_score": round(sum(own_scores) / len(own_scores), 1) if own_scores else 0,
            "attendance": {
                sid: recorded.get(sid, AttendanceStatus.NOT_ATTEMPTED.value) for sid in session_ids
            },
        })

    return {
        "mentor": mentor,
        "totals": {
            "total": len(students),
            "male": sum(1 for s in students if _gender(s) == "male"),
            "female": sum(1 for s in students if _gender(s) == "female"),
            "paid": sum(1 for s in students if s.is_paid),
            "pending": sum(1 for s in students if not s.is_paid),
        },
        "students": rows,
    }


def session_stats(db: Session, session_id: str) -> dict:
    """Attendance counts and rates for one session, overall and by gender."""
    if gateway.get_session(db, session_id) is None:
        raise NotFoundError("Session not found")

    students = gateway.list_students(db)
    statuses = {rec.student_id: rec.status for rec in gateway.list_attendance_for_session(db, session_id)}

    def status_of(student):
        return statuses.get(student.id, AttendanceStatus.NOT_ATTEMPTED.value)

    present = sum(1 for s in students if status_of(s) == AttendanceStatus.PRESENT.value)
    absent = sum(1 for s in students if status_of(s) == AttendanceStatus.ABSENT.value)
    not_attempted = sum(1 for s in students if status_of(s) == AttendanceStatus.NOT_ATTEMPTED.value)

    by_gender = {}
    for gender in ("male", "female"):
        group = [s for s in students if _gender(s) == gender]
        group_present = sum(1 for s in group if status_of(s) == AttendanceStatus.PRESENT.value)
        by_gender[gender] = {
            "total": len(group),
            "present": group_present,
            "absent": len(group) - group_present,
            "rate": _rate(group_present, len(group)),
        }

    return {
        "session_id": session_id,
        "total": len(students),
        "present": present,
        "absent": absent,
        "not_attempted": not_attempted,
        "attendance_rate": _rate(present, len(students)),
        "by_gender": by_gender,
    }
