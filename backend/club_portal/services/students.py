"""
Student registration and profile management.

Registration refuses a duplicate email or PRN number (case-insensitive) and
assigns a mentor at random from the configured list.
"""

import random
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from club_portal.errors import ConflictError, DuplicateRecordError, NotFoundError, ValidationError
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import Student
from club_portal.services import gateway

logger = get_logger("auth")

REQUIRED_FIELDS = (
    "first_name", "last_name", "email", "roll_number", "prn_number",
    "date_of_birth", "branch", "division", "gender", "address",
)
# Fields a student may change on their own profile
EDITABLE_FIELDS = (
    "first_name", "middle_name", "last_name", "roll_number", "date_of_birth",
    "branch", "division", "gender", "address", "sgpa_sem1", "sgpa_sem2", "profile_photo",
)


def _strip_strings(data: dict) -> dict:
    return {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()}


def register_student(db: Session, data: dict, mentors: List[str],
                     rng: Optional[random.Random] = None) -> Student:
    """Create a student record from registration form data."""
    data = _strip_strings(data)
    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ValidationError("Please fill all required fields: {}".format(", ".join(missing)))

    if gateway.find_student_by_email(db, data["email"]) is not None:
        raise ConflictError("Email already registered", "email_taken")
    if gateway.find_student_by_prn(db, data["prn_number"]) is not None:
        raise ConflictError("PRN already registered", "prn_taken")

    rng = rng or random.Random()
    record = {k: data.get(k) for k in REQUIRED_FIELDS + ("middle_name", "sgpa_sem1", "sgpa_sem2", "profile_photo")}
    record.update({
        "registration_date": datetime.now(timezone.utc),
        "is_paid": False,
        "mentor": rng.choice(mentors) if mentors else None,
    })

    try:
        student = gateway.create_or_update_student(db, record)
    except DuplicateRecordError as e:
        # Lost a race with a concurrent registration for the same email/PRN
        raise ConflictError("Email or PRN already registered", "duplicate_student") from e

    log_with_context(logger, "INFO", "Student registered: {}".format(student.full_name),
                     context={"student_id": student.id},
                     extra_data={"mentor": student.mentor})
    return student


def update_profile(db: Session, student_id: str, changes: dict) -> Student:
    student = gateway.get_student(db, student_id)
    if student is None:
        raise NotFoundError("Student not found")

    changes = _strip_strings(changes)
    rejected = sorted(set(changes) - set(EDITABLE_FIELDS))
    if rejected:
        raise ValidationError("These fields cannot be changed: {}".format(", ".join(rejected)))
    blank = [f for f in changes if f in REQUIRED_FIELDS and not changes[f]]
    if blank:
        raise ValidationError("Required fields cannot be blank: {}".format(", ".join(blank)))

    student = gateway.create_or_update_student(db, {"id": student_id, **changes})
    log_with_context(logger, "INFO", "Profile updated",
                     context={"student_id": student_id}, extra_data={"fields": sorted(changes)})
    return student


def set_payment_status(db: Session, student_id: str, is_paid: bool) -> Student:
    if gateway.get_student(db, student_id) is None:
        raise NotFoundError("Student not found")
    student = gateway.create_or_update_student(db, {"id": student_id, "is_paid": bool(is_paid)})
    log_with_context(logger, "INFO", "Payment status set to {}".format("paid" if is_paid else "pending"),
                     context={"student_id": student_id})
    return student


def assign_mentor(db: Session, student_id: str, mentor: str, mentors: List[str]) -> Student:
    if mentor not in mentors:
        raise ValidationError("Unknown mentor: {}".format(mentor))
    if gateway.get_student(db, student_id) is None:
        raise NotFoundError("Student not found")
    return gateway.create_or_update_student(db, {"id": student_id, "mentor": mentor})


def delete_student(db: Session, student_id: str):
    if not gateway.delete_student(db, student_id):
        raise NotFoundError("Student not found")
    log_with_context(logger, "INFO", "Student deleted", context={"student_id": student_id})
