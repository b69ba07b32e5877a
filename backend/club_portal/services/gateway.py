"""
Persistence Gateway - typed CRUD functions over the six collections.

Every function here is a plain translation between keyword arguments / dicts
and ORM rows. No business rules live in this module: the engines decide what
is allowed, the gateway only reads and writes. Each mutating call commits its
own transaction; `replace_questions` and `write_test` stage a whole question
set and commit it at once.

Database failures are never swallowed: the session is rolled back and the
error is re-raised as DuplicateRecordError (unique violations),
InvalidReferenceError (foreign key violations) or StorageError (everything
else) with the driver message attached.
"""

import functools
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from club_portal.constants import AttendanceStatus
from club_portal.errors import DuplicateRecordError, InvalidReferenceError, StorageError
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import Attendance, ClubSession, Question, Student, Test, TestScore

logger = get_logger("db")

STUDENT_FIELDS = (
    "first_name", "middle_name", "last_name", "email", "roll_number", "prn_number",
    "date_of_birth", "branch", "division", "gender", "address", "sgpa_sem1",
    "sgpa_sem2", "profile_photo", "registration_date", "is_paid", "mentor",
)
SESSION_FIELDS = (
    "name", "description", "date", "time", "venue", "status", "type",
    "duration", "test_link", "session_code",
)


# SQLSTATE codes from PostgreSQL; SQLite only reports them in the message
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


def _integrity_kind(e: IntegrityError) -> str:
    code = getattr(e.orig, "pgcode", None)
    message = str(e.orig).upper()
    if code == PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY" in message:
        return "foreign_key"
    if code == PG_UNIQUE_VIOLATION or "UNIQUE" in message:
        return "unique"
    return "other"


def _integrity_error(e: IntegrityError) -> StorageError:
    kind = _integrity_kind(e)
    if kind == "unique":
        return DuplicateRecordError(str(e.orig))
    if kind == "foreign_key":
        return InvalidReferenceError(str(e.orig))
    return StorageError(str(e.orig), "constraint_violation")


def _translate_errors(fn):
    """Roll back and convert SQLAlchemy failures into portal storage errors."""
    @functools.wraps(fn)
    def wrapper(db: Session, *args, **kwargs):
        start_time = time.time()
        try:
            return fn(db, *args, **kwargs)
        except IntegrityError as e:
            db.rollback()
            log_with_context(logger, "WARNING", "Constraint violation in {}".format(fn.__name__),
                             extra_data={"error": str(e.orig)})
            raise _integrity_error(e) from e
        except SQLAlchemyError as e:
            db.rollback()
            log_with_context(logger, "ERROR", "Storage failure in {}: {}".format(fn.__name__, e),
                             extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2)})
            raise StorageError(str(e)) from e
    return wrapper


def _assign(row, data: dict, fields: Iterable[str]):
    for key in fields:
        if key in data:
            setattr(row, key, data[key])


# ── Students ─────────────────────────────────────────────────

@_translate_errors
def list_students(db: Session, mentor: Optional[str] = None) -> List[Student]:
    query = db.query(Student)
    if mentor:
        query = query.filter(Student.mentor == mentor)
    return query.order_by(Student.registration_date, Student.id).all()


@_translate_errors
def get_student(db: Session, student_id: str) -> Optional[Student]:
    return db.get(Student, student_id)


@_translate_errors
def find_student_by_email(db: Session, email: str) -> Optional[Student]:
    """Case-insensitive, whitespace-insensitive email lookup."""
    return db.query(Student).filter(
        func.lower(func.trim(Student.email)) == email.strip().lower()
    ).first()


@_translate_errors
def find_student_by_prn(db: Session, prn_number: str) -> Optional[Student]:
    return db.query(Student).filter(
        func.lower(func.trim(Student.prn_number)) == prn_number.strip().lower()
    ).first()


@_translate_errors
def create_or_update_student(db: Session, data: dict) -> Student:
    """Upsert a student by id; a missing id creates a new row."""
    student = db.get(Student, data["id"]) if data.get("id") else None
    if student is None:
        student = Student(id=data["id"]) if data.get("id") else Student()
        db.add(student)
    _assign(student, data, STUDENT_FIELDS)
    db.commit()
    db.refresh(student)
    return student


@_translate_errors
def delete_student(db: Session, student_id: str) -> bool:
    db.query(Attendance).filter(Attendance.student_id == student_id).delete(synchronize_session=False)
    db.query(TestScore).filter(TestScore.student_id == student_id).delete(synchronize_session=False)
    deleted = db.query(Student).filter(Student.id == student_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


# ── Sessions ─────────────────────────────────────────────────

@_translate_errors
def list_sessions(db: Session) -> List[ClubSession]:
    return db.query(ClubSession).order_by(ClubSession.date, ClubSession.id).all()


@_translate_errors
def list_session_ids(db: Session) -> List[str]:
    return [row[0] for row in db.query(ClubSession.id).all()]


@_translate_errors
def get_session(db: Session, session_id: str) -> Optional[ClubSession]:
    return db.get(ClubSession, session_id)


@_translate_errors
def add_session(db: Session, data: dict) -> ClubSession:
    """Insert a new session; an existing id raises DuplicateRecordError."""
    club_session = ClubSession(id=data["id"])
    _assign(club_session, data, SESSION_FIELDS)
    db.add(club_session)
    db.commit()
    db.refresh(club_session)
    return club_session


@_translate_errors
def update_session(db: Session, session_id: str, changes: dict) -> Optional[ClubSession]:
    club_session = db.get(ClubSession, session_id)
    if club_session is None:
        return None
    _assign(club_session, changes, SESSION_FIELDS)
    db.commit()
    db.refresh(club_session)
    return club_session


@_translate_errors
def delete_session(db: Session, session_id: str) -> bool:
    """Delete a session together with its attendance, scores, test and questions."""
    test_ids = [row[0] for row in db.query(Test.id).filter(Test.session_id == session_id).all()]
    db.query(Attendance).filter(Attendance.session_id == session_id).delete(synchronize_session=False)
    db.query(TestScore).filter(TestScore.session_id == session_id).delete(synchronize_session=False)
    if test_ids:
        db.query(Question).filter(Question.test_id.in_(test_ids)).delete(synchronize_session=False)
        db.query(Test).filter(Test.id.in_(test_ids)).delete(synchronize_session=False)
    deleted = db.query(ClubSession).filter(ClubSession.id == session_id).delete(synchronize_session=False)
    db.commit()
    db.expire_all()
    return deleted > 0


# ── Tests & questions ────────────────────────────────────────

@_translate_errors
def list_tests(db: Session) -> List[Test]:
    return db.query(Test).all()


@_translate_errors
def get_test(db: Session, test_id: str) -> Optional[Test]:
    return db.get(Test, test_id)


@_translate_errors
def get_test_by_session(db: Session, session_id: str) -> Optional[Test]:
    return db.query(Test).filter(Test.session_id == session_id).first()


@_translate_errors
def create_test(db: Session, session_id: str, title: str) -> Test:
    test = Test(session_id=session_id, title=title)
    db.add(test)
    db.commit()
    db.refresh(test)
    return test


@_translate_errors
def delete_test(db: Session, test_id: str) -> bool:
    db.query(TestScore).filter(TestScore.test_id == test_id).delete(synchronize_session=False)
    db.query(Question).filter(Question.test_id == test_id).delete(synchronize_session=False)
    deleted = db.query(Test).filter(Test.id == test_id).delete(synchronize_session=False)
    db.commit()
    db.expire_all()
    return deleted > 0


@_translate_errors
def list_questions(db: Session, test_id: str) -> List[Question]:
    return db.query(Question).filter(Question.test_id == test_id).order_by(Question.position).all()


@_translate_errors
def create_question(db: Session, test_id: str, data: dict) -> Question:
    question = Question(
        test_id=test_id,
        position=data.get("position", 0),
        question=data["question"],
        options=list(data["options"]),
        correct_answer=data["correct_answer"],
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


@_translate_errors
def delete_question(db: Session, question_id: str) -> bool:
    deleted = db.query(Question).filter(Question.id == question_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def _stage_questions(db: Session, test_id: str, questions: List[dict]) -> List[Question]:
    db.query(Question).filter(Question.test_id == test_id).delete(synchronize_session=False)
    rows = [
        Question(
            test_id=test_id,
            position=position,
            question=data["question"],
            options=list(data["options"]),
            correct_answer=data["correct_answer"],
        )
        for position, data in enumerate(questions)
    ]
    db.add_all(rows)
    return rows


@_translate_errors
def replace_questions(db: Session, test_id: str, questions: List[dict]) -> List[Question]:
    """
    Delete every question of a test and insert the new set in one transaction.

    Either the whole new set is stored or the old set is left untouched.
    """
    rows = _stage_questions(db, test_id, questions)
    db.commit()
    db.expire_all()
    log_with_context(logger, "DEBUG", "Replaced question set",
                     context={"test_id": test_id}, extra_data={"count": len(rows)})
    return list_questions(db, test_id)


@_translate_errors
def write_test(db: Session, session_id: str, title: str, questions: List[dict]) -> Test:
    """
    Create or retitle a session's test and replace its questions in one commit.

    A failure leaves neither a new empty test nor a partial question set.
    """
    test = db.query(Test).filter(Test.session_id == session_id).first()
    if test is None:
        test = Test(session_id=session_id, title=title)
        db.add(test)
        db.flush()
    else:
        test.title = title
    test_id = test.id
    rows = _stage_questions(db, test_id, questions)
    db.commit()
    db.expire_all()
    log_with_context(logger, "DEBUG", "Wrote test with question set",
                     context={"session_id": session_id, "test_id": test_id},
                     extra_data={"count": len(rows)})
    return db.get(Test, test_id)


# ── Attendance ───────────────────────────────────────────────

@_translate_errors
def list_attendance_for_student(db: Session, student_id: str) -> List[Attendance]:
    return db.query(Attendance).filter(Attendance.student_id == student_id).all()


@_translate_errors
def list_attendance_for_session(db: Session, session_id: str) -> List[Attendance]:
    return db.query(Attendance).filter(Attendance.session_id == session_id).all()


@_translate_errors
def list_all_attendance(db: Session) -> List[Attendance]:
    return db.query(Attendance).all()


@_translate_errors
def get_attendance(db: Session, student_id: str, session_id: str) -> Optional[Attendance]:
    return db.query(Attendance).filter(
        Attendance.student_id == student_id,
        Attendance.session_id == session_id,
    ).first()


@_translate_errors
def insert_attendance(db: Session, student_id: str, session_id: str, status: str) -> Attendance:
    """Plain insert; a second row for the same pair violates the unique constraint."""
    record = Attendance(
        student_id=student_id,
        session_id=session_id,
        status=status,
        marked_at=datetime.now(timezone.utc),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@_translate_errors
def mark_present_if_not_present(db: Session, student_id: str, session_id: str) -> bool:
    """
    Flip an existing non-present row to present.

    Returns False when no row changed, i.e. the row is already present or
    does not exist.
    """
    result = db.execute(
        update(Attendance)
        .where(
            Attendance.student_id == student_id,
            Attendance.session_id == session_id,
            Attendance.status != AttendanceStatus.PRESENT.value,
        )
        .values(status=AttendanceStatus.PRESENT.value, marked_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.expire_all()
    return result.rowcount > 0


@_translate_errors
def set_attendance(db: Session, student_id: str, session_id: str, status: str) -> Attendance:
    """Upsert the status of a (student, session) pair."""
    record = db.query(Attendance).filter(
        Attendance.student_id == student_id,
        Attendance.session_id == session_id,
    ).first()
    if record is None:
        record = Attendance(student_id=student_id, session_id=session_id)
        db.add(record)
    record.status = status
    record.marked_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    return record


# ── Test scores ──────────────────────────────────────────────

@_translate_errors
def list_scores_for_student(db: Session, student_id: str) -> List[TestScore]:
    return db.query(TestScore).filter(TestScore.student_id == student_id).all()


@_translate_errors
def list_scores_for_session(db: Session, session_id: str) -> List[TestScore]:
    return db.query(TestScore).filter(TestScore.session_id == session_id).all()


@_translate_errors
def list_all_scores(db: Session) -> List[TestScore]:
    return db.query(TestScore).all()


@_translate_errors
def get_score(db: Session, student_id: str, session_id: str, test_id: str) -> Optional[TestScore]:
    return db.query(TestScore).filter(
        TestScore.student_id == student_id,
        TestScore.session_id == session_id,
        TestScore.test_id == test_id,
    ).first()


def _write_score(db: Session, key: dict, values: dict) -> TestScore:
    record = db.query(TestScore).filter_by(**key).first()
    if record is None:
        record = TestScore(**key)
        db.add(record)
    for name, value in values.items():
        setattr(record, name, value)
    db.commit()
    db.refresh(record)
    return record


@_translate_errors
def upsert_score(db: Session, student_id: str, session_id: str, test_id: str,
                 score: int, correct: int, total: int, answers: List[int]) -> TestScore:
    """
    Insert or overwrite the score row for (student, session, test).

    If a concurrent writer inserted the row between our read and our insert,
    the unique constraint fires and the write is repeated as an update, so
    the last writer wins.
    """
    key = {"student_id": student_id, "session_id": session_id, "test_id": test_id}
    values = {
        "score": score,
        "correct": correct,
        "total": total,
        "answers": list(answers),
        "submitted_at": datetime.now(timezone.utc),
    }
    try:
        return _write_score(db, key, values)
    except IntegrityError as e:
        if _integrity_kind(e) != "unique":
            raise
        db.rollback()
        log_with_context(logger, "INFO", "Concurrent score insert, retrying as update",
                         context=dict(key))
        return _write_score(db, key, values)
