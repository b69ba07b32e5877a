"""Attendance API routes - student self check-in and admin overrides."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from club_portal.constants import AttendanceStatus
from club_portal.database import get_db
from club_portal.logging_config import get_logger, log_with_context
from club_portal.routes.deps import require_admin, require_student
from club_portal.services import attendance
from club_portal.services.identity import AuthContext

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class MarkAttendanceRequest(BaseModel):
    session_id: str
    session_code: str


class SetAttendanceRequest(BaseModel):
    status: AttendanceStatus


@router.post("/api/attendance/mark")
def mark_attendance(request: MarkAttendanceRequest,
                    ctx: AuthContext = Depends(require_student),
                    db: Session = Depends(get_db)):
    """Self check-in with the code announced at the session."""
    result = attendance.mark_attendance(db, ctx.principal_id, request.session_id, request.session_code)
    return {
        "message": "Attendance for {} has been marked as present.".format(result.session_name),
        "session_id": result.session_id,
        "status": result.status,
        "affected_views": result.affected_views,
    }


@router.get("/api/attendance/me")
def my_attendance(ctx: AuthContext = Depends(require_student), db: Session = Depends(get_db)):
    return {"data": attendance.attendance_by_student(db, ctx.principal_id)}


@router.put("/api/attendance/{student_id}/{session_id}")
def set_attendance(student_id: str, session_id: str, request: SetAttendanceRequest,
                   ctx: AuthContext = Depends(require_admin),
                   db: Session = Depends(get_db)):
    record = attendance.set_attendance_status(db, student_id, session_id, request.status.value)
    log_with_context(logger, "INFO", "Admin attendance override",
                     context={"student_id": student_id, "session_id": session_id})
    return {
        "student_id": record.student_id,
        "session_id": record.session_id,
        "status": record.status,
        "affected_views": ["attendance", "scoreboard"],
    }
