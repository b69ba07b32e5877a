"""
Scoring Service - serves a session's quiz and scores submissions.

Implements the scoring formula:
1. correct = number of positions where answers[i] == questions[i].correct_answer
2. score = round(correct / total * 100)

The score is always stored and reported as an integer percentage; `correct`
and `total` are kept next to it for display as "correct / total".
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from club_portal.constants import SCORE_VIEWS, SessionStatus
from club_portal.errors import NotFoundError, TestUnavailable, ValidationError
from club_portal.logging_config import get_logger, log_with_context
from club_portal.models import Question, Test, TestScore
from club_portal.services import gateway

# Channel logger for scoring operations
logger = get_logger("scoring")

UNANSWERED = -1


@dataclass(frozen=True)
class ScoreResult:
    test_id: str
    session_id: str
    score: int
    correct: int
    total: int
    answers: List[int]
    affected_views: List[str] = field(default_factory=lambda: list(SCORE_VIEWS))


def percentage(correct: int, total: int) -> int:
    """Integer percentage, 0 for an empty test."""
    if total <= 0:
        return 0
    return int(round(correct / total * 100))


def score_answers(questions: Sequence[Question], answers: Sequence[int]) -> int:
    """Count answers matching the question at the same position."""
    return sum(
        1 for question, answer in zip(questions, answers)
        if answer == question.correct_answer
    )


def grade_for(score: float) -> str:
    if score >= 90:
        return "A+"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    if score > 0:
        return "D"
    return "-"


def load_test(db: Session, test_id: str, session_id: str) -> Test:
    """
    Return the test only if it may be taken now.

    Requires: the test exists, the session exists with the requested id,
    the session is active, and the session's own test is this test.
    """
    test = gateway.get_test(db, test_id)
    club_session = gateway.get_session(db, session_id) if session_id else None

    if test is None or club_session is None or club_session.id != session_id:
        raise TestUnavailable("Test is not available for this session.")
    if club_session.status != SessionStatus.ACTIVE.value:
        raise TestUnavailable("Test is not available for this session.")
    session_test = club_session.test
    if session_test is None or session_test.id != test.id:
        raise TestUnavailable("Test is not available for this session.")
    return test


def validate_answers(questions: Sequence[Question], answers: Sequence[int]):
    if len(answers) != len(questions):
        raise ValidationError("Expected {} answers, got {}".format(len(questions), len(answers)))
    for position, (question, answer) in enumerate(zip(questions, answers)):
        if isinstance(answer, bool) or not isinstance(answer, int):
            raise ValidationError("Answer {} is not an option index".format(position + 1))
        if answer == UNANSWERED:
            raise ValidationError("Question {} is unanswered".format(position + 1))
        if not 0 <= answer < len(question.options):
            raise ValidationError("Answer {} is out of range".format(position + 1))


def submit_answers(db: Session, student_id: str, test_id: str, session_id: str,
                   answers: List[int]) -> ScoreResult:
    """
    Score a complete answer sheet and upsert it.

    Resubmitting overwrites the previous score and answers for the same
    (student, session, test).
    """
    start_time = time.time()

    if gateway.get_student(db, student_id) is None:
        raise NotFoundError("Student not found")

    test = load_test(db, test_id, session_id)
    questions = gateway.list_questions(db, test.id)
    validate_answers(questions, answers)

    correct = score_answers(questions, answers)
    total = len(questions)
    score = percentage(correct, total)

    gateway.upsert_score(db, student_id, session_id, test.id,
                         score=score, correct=correct, total=total, answers=answers)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Score computed: {}% ({}/{} correct)".format(score, correct, total),
        context={"student_id": student_id, "session_id": session_id, "test_id": test.id},
        extra_data={"duration_ms": round(duration_ms, 2), "score": score})

    return ScoreResult(test_id=test.id, session_id=session_id, score=score,
                       correct=correct, total=total, answers=list(answers))


def get_result(db: Session, student_id: str, test_id: str) -> dict:
    """Stored result for a test with per-question correctness."""
    test = gateway.get_test(db, test_id)
    if test is None:
        raise NotFoundError("Test not found")
    record: Optional[TestScore] = gateway.get_score(db, student_id, test.session_id, test.id)
    if record is None:
        raise NotFoundError("No submission found for this test")

    questions = gateway.list_questions(db, test.id)
    answers = list(record.answers or [])
    breakdown = []
    for position, question in enumerate(questions):
        selected = answers[position] if position < len(answers) else UNANSWERED
        breakdown.append({
            "question_id": question.id,
            "question": question.question,
            "options": list(question.options),
            "selected": selected,
            "correct_answer": question.correct_answer,
            "is_correct": selected == question.correct_answer,
        })

    return {
        "test_id": test.id,
        "session_id": test.session_id,
        "title": test.title,
        "score": record.score,
        "correct": record.correct,
        "total": record.total,
        "grade": grade_for(record.score),
        "submitted_at": record.submitted_at.isoformat() if record.submitted_at else None,
        "questions": breakdown,
    }


def score_summary(db: Session, student_id: str) -> dict:
    """Average, best and worst percentage over a student's submitted tests."""
    records = gateway.list_scores_for_student(db, student_id)
    total_sessions = len(gateway.list_session_ids(db))
    scores = [r.score for r in records]

    if not scores:
        return {
            "average_score": 0,
            "highest_score": 0,
            "lowest_score": 0,
            "completed_tests": 0,
            "total_tests": total_sessions,
            "grade": grade_for(0),
            "scores": {},
        }

    average = round(sum(scores) / len(scores), 1)
    return {
        "average_score": average,
        "highest_score": max(scores),
        "lowest_score": min(scores),
        "completed_tests": len(scores),
        "total_tests": total_sessions,
        "grade": grade_for(average),
        "scores": {r.session_id: r.score for r in records},
    }
