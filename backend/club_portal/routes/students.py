"""Student registration, profile and admin student management routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from club_portal.config import Settings, get_settings
from club_portal.database import get_db
from club_portal.routes.deps import require_admin, require_student
from club_portal.routes.serializers import serialize_student
from club_portal.services import gateway, students
from club_portal.services.identity import AuthContext

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class RegistrationRequest(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    email: str
    roll_number: str
    prn_number: str
    date_of_birth: date
    branch: str
    division: str
    gender: str
    address: str
    sgpa_sem1: Optional[str] = None
    sgpa_sem2: Optional[str] = None
    profile_photo: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    roll_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    branch: Optional[str] = None
    division: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    sgpa_sem1: Optional[str] = None
    sgpa_sem2: Optional[str] = None
    profile_photo: Optional[str] = None


class PaymentRequest(BaseModel):
    is_paid: bool


class MentorRequest(BaseModel):
    mentor: str = Field(..., description="One of the configured mentor names")


@router.post("/api/students", status_code=201)
def register(request: RegistrationRequest,
             settings: Settings = Depends(get_settings),
             db: Session = Depends(get_db)):
    """Register a new student."""
    student = students.register_student(db, request.model_dump(), settings.mentors)
    return serialize_student(student)


@router.patch("/api/students/me")
def update_my_profile(request: ProfileUpdateRequest,
                      ctx: AuthContext = Depends(require_student),
                      db: Session = Depends(get_db)):
    student = students.update_profile(db, ctx.principal_id, request.model_dump(exclude_unset=True))
    return serialize_student(student)


@router.get("/api/students")
def list_students(mentor: Optional[str] = Query(None, description="Filter by mentor"),
                  ctx: AuthContext = Depends(require_admin),
                  db: Session = Depends(get_db)):
    return {"data": [serialize_student(s) for s in gateway.list_students(db, mentor=mentor)]}


@router.patch("/api/students/{student_id}/payment")
def set_payment(student_id: str, request: PaymentRequest,
                ctx: AuthContext = Depends(require_admin),
                db: Session = Depends(get_db)):
    return serialize_student(students.set_payment_status(db, student_id, request.is_paid))


@router.patch("/api/students/{student_id}/mentor")
def set_mentor(student_id: str, request: MentorRequest,
               ctx: AuthContext = Depends(require_admin),
               settings: Settings = Depends(get_settings),
               db: Session = Depends(get_db)):
    return serialize_student(students.assign_mentor(db, student_id, request.mentor, settings.mentors))


@router.delete("/api/students/{student_id}", status_code=204)
def delete_student(student_id: str,
                   ctx: AuthContext = Depends(require_admin),
                   db: Session = Depends(get_db)):
    students.delete_student(db, student_id)
