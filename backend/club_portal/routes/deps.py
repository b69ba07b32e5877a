"""
Shared FastAPI dependencies: settings, database session and the caller's
AuthContext decoded from the `Authorization: Bearer <token>` header.
"""

from typing import Optional

from fastapi import Depends, Header

from club_portal.config import Settings, get_settings
from club_portal.errors import AuthReason, AuthenticationError, PermissionDenied
from club_portal.services.identity import AuthContext, read_token


def get_auth_context(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    token = None
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer":
            token = value.strip()
    return read_token(token, settings)


def require_student(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if ctx.is_admin:
        raise PermissionDenied("Students only")
    if not ctx.is_student:
        raise AuthenticationError("Please log in as a student", AuthReason.NOT_AUTHENTICATED)
    return ctx


def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if ctx.is_student:
        raise PermissionDenied("Admins only")
    if not ctx.is_admin:
        raise AuthenticationError("Please log in as admin", AuthReason.NOT_AUTHENTICATED)
    return ctx
