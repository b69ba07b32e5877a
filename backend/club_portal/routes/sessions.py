"""
Session API routes - listing for everyone, authoring for the admin.

Covers session CRUD, check-in codes and the session's quiz.
"""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from club_portal.constants import SessionStatus, SessionType
from club_portal.database import get_db
from club_portal.errors import NotFoundError
from club_portal.routes.deps import get_auth_context, require_admin
from club_portal.routes.serializers import serialize_session, serialize_test
from club_portal.services import authoring, gateway
from club_portal.services.identity import AuthContext

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class SessionCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    date: dt.date
    time: str
    venue: str
    status: SessionStatus = SessionStatus.UPCOMING
    type: SessionType = SessionType.ASSESSMENT
    duration: Optional[str] = None
    test_link: Optional[str] = None
    session_code: Optional[str] = None


class SessionUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    venue: Optional[str] = None
    status: Optional[SessionStatus] = None
    type: Optional[SessionType] = None
    duration: Optional[str] = None
    test_link: Optional[str] = None
    session_code: Optional[str] = None


class SessionCodeRequest(BaseModel):
    session_code: Optional[str] = Field(None, description="Empty or null clears the code")


class QuestionPayload(BaseModel):
    question: str
    options: List[str]
    correct_answer: int


class TestPayload(BaseModel):
    title: str
    questions: List[QuestionPayload]


def _enum_values(data: dict) -> dict:
    return {k: (v.value if isinstance(v, (SessionStatus, SessionType)) else v) for k, v in data.items()}


@router.get("/api/sessions")
def list_sessions(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    return {"data": [serialize_session(s, include_code=ctx.is_admin) for s in gateway.list_sessions(db)]}


@router.get("/api/sessions/{session_id}")
def get_session(session_id: str, ctx: AuthContext = Depends(get_auth_context),
                db: Session = Depends(get_db)):
    club_session = gateway.get_session(db, session_id)
    if club_session is None:
        raise NotFoundError("Session not found")
    return serialize_session(club_session, include_code=ctx.is_admin)


@router.post("/api/sessions", status_code=201)
def create_session(request: SessionCreateRequest,
                   ctx: AuthContext = Depends(require_admin),
                   db: Session = Depends(get_db)):
    club_session = authoring.create_session(db, _enum_values(request.model_dump()))
    return serialize_session(club_session, include_code=True)


@router.patch("/api/sessions/{session_id}")
def update_session(session_id: str, request: SessionUpdateRequest,
                   ctx: AuthContext = Depends(require_admin),
                   db: Session = Depends(get_db)):
    changes = _enum_values(request.model_dump(exclude_unset=True))
    club_session = authoring.update_session(db, session_id, changes)
    return serialize_session(club_session, include_code=True)


@router.delete("/api/sessions/{session_id}", status_code=204)
def delete_session(session_id: str,
                   ctx: AuthContext = Depends(require_admin),
                   db: Session = Depends(get_db)):
    authoring.delete_session(db, session_id)


@router.put("/api/sessions/{session_id}/code")
def set_code(session_id: str, request: SessionCodeRequest,
             ctx: AuthContext = Depends(require_admin),
             db: Session = Depends(get_db)):
    club_session = authoring.set_session_code(db, session_id, request.session_code)
    return serialize_session(club_session, include_code=True)


@router.post("/api/sessions/{session_id}/code/generate")
def generate_code(session_id: str,
                  ctx: AuthContext = Depends(require_admin),
                  db: Session = Depends(get_db)):
    club_session = authoring.generate_session_code(db, session_id)
    return serialize_session(club_session, include_code=True)


@router.get("/api/sessions/{session_id}/test")
def get_session_test(session_id: str,
                     ctx: AuthContext = Depends(require_admin),
                     db: Session = Depends(get_db)):
    test = gateway.get_test_by_session(db, session_id)
    if test is None:
        raise NotFoundError("No test configured for this session")
    return serialize_test(test, include_answers=True)


@router.put("/api/sessions/{session_id}/test")
def save_session_test(session_id: str, request: TestPayload,
                      ctx: AuthContext = Depends(require_admin),
                      db: Session = Depends(get_db)):
    """Create or replace the session's quiz (all questions are replaced)."""
    questions = [q.model_dump() for q in request.questions]
    test = authoring.save_test(db, session_id, request.title, questions)
    return serialize_test(test, include_answers=True)


@router.delete("/api/sessions/{session_id}/test", status_code=204)
def delete_session_test(session_id: str,
                        ctx: AuthContext = Depends(require_admin),
                        db: Session = Depends(get_db)):
    authoring.delete_test(db, session_id)
