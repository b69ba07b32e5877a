"""
Quiz API routes - take a session's test, submit answers, view results.

`GET /api/tests/{id}` only serves the quiz while its session is active and
never includes the correct answers.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from club_portal.database import get_db
from club_portal.routes.deps import require_student
from club_portal.routes.serializers import serialize_test
from club_portal.services import scoring
from club_portal.services.identity import AuthContext

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class SubmitAnswersRequest(BaseModel):
    session_id: str
    answers: List[int] = Field(..., description="Selected option index per question, -1 if unanswered")


@router.get("/api/tests/{test_id}")
def take_test(test_id: str,
              session_id: str = Query(..., description="Session the test is taken for"),
              ctx: AuthContext = Depends(require_student),
              db: Session = Depends(get_db)):
    test = scoring.load_test(db, test_id, session_id)
    return serialize_test(test)


@router.post("/api/tests/{test_id}/submit")
def submit_test(test_id: str, request: SubmitAnswersRequest,
                ctx: AuthContext = Depends(require_student),
                db: Session = Depends(get_db)):
    result = scoring.submit_answers(db, ctx.principal_id, test_id, request.session_id, request.answers)
    return {
        "message": "Test submitted! Your score: {} / {}".format(result.correct, result.total),
        "test_id": result.test_id,
        "session_id": result.session_id,
        "score": result.score,
        "correct": result.correct,
        "total": result.total,
        "affected_views": result.affected_views,
    }


@router.get("/api/tests/{test_id}/result")
def test_result(test_id: str,
                ctx: AuthContext = Depends(require_student),
                db: Session = Depends(get_db)):
    return scoring.get_result(db, ctx.principal_id, test_id)


@router.get("/api/scores/me")
def my_scores(ctx: AuthContext = Depends(require_student), db: Session = Depends(get_db)):
    return scoring.score_summary(db, ctx.principal_id)
