"""
Authentication API routes.

Login endpoints return a signed bearer token. A client that is already
logged in sends its current token, which is how the student/admin mutual
exclusion is enforced.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from club_portal.config import Settings, get_settings
from club_portal.database import get_db
from club_portal.routes.deps import get_auth_context
from club_portal.routes.serializers import serialize_student
from club_portal.services import identity
from club_portal.services.identity import AuthContext

router = APIRouter()


# ── Pydantic schemas ─────────────────────────────────────────

class StudentLoginRequest(BaseModel):
    email: str
    prn_number: str


class AdminLoginRequest(BaseModel):
    email: str
    password: str


@router.post("/api/auth/student/login")
def student_login(request: StudentLoginRequest,
                  ctx: AuthContext = Depends(get_auth_context),
                  settings: Settings = Depends(get_settings),
                  db: Session = Depends(get_db)):
    """Log a student in with email and PRN number."""
    student, new_ctx = identity.login_student(db, ctx, request.email, request.prn_number)
    return {
        "token": identity.issue_token(new_ctx, settings),
        "principal": new_ctx.principal_kind.value,
        "student": serialize_student(student),
    }


@router.post("/api/auth/admin/login")
def admin_login(request: AdminLoginRequest,
                ctx: AuthContext = Depends(get_auth_context),
                settings: Settings = Depends(get_settings)):
    """Log the configured administrator in."""
    new_ctx = identity.login_admin(ctx, request.email, request.password, settings)
    return {
        "token": identity.issue_token(new_ctx, settings),
        "principal": new_ctx.principal_kind.value,
    }


@router.post("/api/auth/logout")
def logout(ctx: AuthContext = Depends(get_auth_context)):
    """Always succeeds; tells the client which cached views to drop."""
    result = identity.logout(ctx)
    return {"token": None, "affected_views": result.affected_views}


@router.get("/api/auth/me")
def me(ctx: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """Current principal; for students the record is re-read from the database."""
    if ctx.is_admin:
        return {"principal": ctx.principal_kind.value, "student": None}
    student = identity.refresh(db, ctx)
    return {"principal": ctx.principal_kind.value, "student": serialize_student(student)}
