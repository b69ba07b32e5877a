"""
Admin authoring of sessions, session codes and quizzes.

Session ids are human readable (DYS1, DYS2, ...); the first free number is
used for a new session. Editing a quiz replaces its whole question set.
"""

import secrets
import string
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from club_portal.constants import SESSION_CODE_LENGTH, SESSION_ID_PREFIX, SessionStatus, SessionType
from club_portal.errors import NotFoundError, ValidationError
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import ClubSession, Test
from club_portal.services import gateway

logger = get_logger("authoring")

REQUIRED_SESSION_FIELDS = ("name", "date", "time", "venue")
CODE_ALPHABET = string.ascii_uppercase + string.digits


def next_session_id(existing_ids: List[str]) -> str:
    taken = set(existing_ids)
    counter = 1
    while "{}{}".format(SESSION_ID_PREFIX, counter) in taken:
        counter += 1
    return "{}{}".format(SESSION_ID_PREFIX, counter)


def _clean_session_fields(data: dict, partial: bool) -> dict:
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = value

    if not partial:
        missing = [f for f in REQUIRED_SESSION_FIELDS if not cleaned.get(f)]
        if missing:
            raise ValidationError("Please fill in all required fields: {}".format(", ".join(missing)))
    else:
        blank = [f for f in REQUIRED_SESSION_FIELDS if f in cleaned and not cleaned[f]]
        if blank:
            raise ValidationError("Required fields cannot be blank: {}".format(", ".join(blank)))

    if cleaned.get("status") is not None:
        try:
            cleaned["status"] = SessionStatus(cleaned["status"]).value
        except ValueError:
            raise ValidationError("Unknown session status: {}".format(cleaned["status"]))
    if cleaned.get("type") is not None:
        try:
            cleaned["type"] = SessionType(cleaned["type"]).value
        except ValueError:
            raise ValidationError("Unknown session type: {}".format(cleaned["type"]))
    if isinstance(cleaned.get("date"), str):
        try:
            cleaned["date"] = date.fromisoformat(cleaned["date"])
        except ValueError:
            raise ValidationError("Session date must be YYYY-MM-DD")
    if "session_code" in cleaned and cleaned["session_code"] is not None:
        cleaned["session_code"] = cleaned["session_code"].upper() or None
    return cleaned


def create_session(db: Session, data: dict) -> ClubSession:
    cleaned = _clean_session_fields(data, partial=False)
    cleaned["status"] = cleaned.get("status") or SessionStatus.UPCOMING.value
    cleaned["type"] = cleaned.get("type") or SessionType.ASSESSMENT.value
    cleaned["id"] = next_session_id(gateway.list_session_ids(db))

    club_session = gateway.add_session(db, cleaned)
    log_with_context(logger, "INFO", "Session created: {}".format(club_session.name),
                     context={"session_id": club_session.id})
    return club_session


def update_session(db: Session, session_id: str, changes: dict) -> ClubSession:
    cleaned = _clean_session_fields(changes, partial=True)
    cleaned.pop("id", None)
    club_session = gateway.update_session(db, session_id, cleaned)
    if club_session is None:
        raise NotFoundError("Session not found")
    log_with_context(logger, "INFO", "Session updated",
                     context={"session_id": session_id},
                     extra_data={"fields": sorted(cleaned)})
    return club_session


def delete_session(db: Session, session_id: str):
    if not gateway.delete_session(db, session_id):
        raise NotFoundError("Session not found")
    log_with_context(logger, "INFO", "Session deleted with its attendance, scores and test",
                     context={"session_id": session_id})


def set_session_code(db: Session, session_id: str, code: Optional[str]) -> ClubSession:
    """Store a check-in code; an empty code clears it."""
    value = (code or "").strip().upper() or None
    club_session = gateway.update_session(db, session_id, {"session_code": value})
    if club_session is None:
        raise NotFoundError("Session not found")
    log_with_context(logger, "INFO", "Session code {}".format("updated" if value else "cleared"),
                     context={"session_id": session_id})
    return club_session


def generate_session_code(db: Session, session_id: str) -> ClubSession:
    code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(SESSION_CODE_LENGTH))
    return set_session_code(db, session_id, code)


def _clean_questions(questions: List[dict]) -> List[dict]:
    if not questions:
        raise ValidationError("A test needs at least one question")
    cleaned = []
    for number, raw in enumerate(questions, 1):
        prompt = (raw.get("question") or "").strip()
        options = [str(o).strip() for o in (raw.get("options") or [])]
        correct = raw.get("correct_answer")
        if not prompt:
            raise ValidationError("Question {} has no text".format(number))
        if len(options) < 2 or any(not o for o in options):
            raise ValidationError("Question {} needs at least two non-empty options".format(number))
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
            raise ValidationError("Question {} has an invalid correct answer".format(number))
        cleaned.append({"question": prompt, "options": options, "correct_answer": correct})
    return cleaned


def save_test(db: Session, session_id: str, title: str, questions: List[dict]) -> Test:
    """Create or retitle the session's test and replace all of its questions."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Test title is required")
    cleaned = _clean_questions(questions)

    if gateway.get_session(db, session_id) is None:
        raise NotFoundError("Session not found")

    test = gateway.write_test(db, session_id, title, cleaned)
    log_with_context(logger, "INFO", "Test saved with {} questions".format(len(cleaned)),
                     context={"session_id": session_id, "test_id": test.id})
    return test


def delete_test(db: Session, session_id: str):
    test = gateway.get_test_by_session(db, session_id)
    if test is None:
        raise NotFoundError("No test configured for this session")
    test_id = test.id
    gateway.delete_test(db, test_id)
    log_with_context(logger, "INFO", "Test deleted",
                     context={"session_id": session_id, "test_id": test_id})
