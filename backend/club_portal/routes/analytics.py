"""Admin dashboard analytics routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from club_portal.database import get_db
from club_portal.routes.deps import require_admin
from club_portal.services import analytics
from club_portal.services.identity import AuthContext

router = APIRouter()


@router.get("/api/analytics/students")
def students_overview(mentor: Optional[str] = Query(None, description="Filter by mentor"),
                      ctx: AuthContext = Depends(require_admin),
                      db: Session = Depends(get_db)):
    return analytics.student_overview(db, mentor=mentor)


@router.get("/api/analytics/sessions/{session_id}")
def session_analytics(session_id: str,
                      ctx: AuthContext = Depends(require_admin),
                      db: Session = Depends(get_db)):
    return analytics.session_stats(db, session_id)
