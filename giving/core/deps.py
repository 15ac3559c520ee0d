"""FastAPI dependencies for authentication, authorization, and database access."""

import logging
from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from giving.core.errors import Forbidden, Unauthorized
from giving.core.security import decode_access_token
from giving.db.enums import Role
from giving.db.session import SessionLocal
from giving.schemas.auth import RequestContext

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"
BEARER_PREFIX = "bearer "


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get(AUTH_HEADER)
    if not header or not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_context(token: str, db: Session) -> RequestContext:
    """
    Resolve a bearer token to the acting user and tenant.

    Validates:
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (logout / password change revoke tokens)
    - The user's company (if any) is active

    Raises:
        Unauthorized: Authentication failed
    """
    # Import here to avoid circular imports
    from giving.db.models import Company, User

    try:
        payload = decode_access_token(token)
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid or expired token")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise Unauthorized("Invalid or expired token")

    user = db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("Account disabled")
    if user.token_version != payload.get("token_version"):
        raise Unauthorized("Session revoked")

    company = None
    if user.company_id:
        company = db.get(Company, user.company_id)
        if not company or not company.is_active:
            raise Unauthorized("Company account is inactive")

    return RequestContext(user=user, company=company)


def get_current_context(
    request: Request,
    db: Session = Depends(get_db),
) -> RequestContext:
    """
    PRIMARY auth dependency: the current user and company for this request.

    Raises:
        Unauthorized: Missing or invalid bearer token
    """
    token = _bearer_token(request)
    if not token:
        raise Unauthorized("Access token required")
    return resolve_context(token, db)


def get_optional_context(
    request: Request,
    db: Session = Depends(get_db),
) -> RequestContext | None:
    """Like get_current_context, but anonymous callers (or bad tokens) yield None."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return resolve_context(token, db)
    except Unauthorized as exc:
        logger.debug("Ignoring invalid optional token: %s", exc.message)
        return None


def require_roles(allowed_roles: list[Role]):
    """
    Dependency factory for role-based authorization.

    Usage:
        @router.post("/admin", dependencies=[Depends(require_roles([Role.SUPER_ADMIN]))])
    """
    def dependency(ctx: RequestContext = Depends(get_current_context)) -> RequestContext:
        if ctx.role not in allowed_roles:
            raise Forbidden(f"Role '{ctx.role.value}' not authorized for this action")
        return ctx
    return dependency


# =============================================================================
# Ownership guards
# =============================================================================

def check_company_access(ctx: RequestContext, company_id: UUID) -> None:
    """Super-admins see every tenant; everyone else only their own."""
    if ctx.is_super_admin:
        return
    if ctx.company_id != company_id:
        raise Forbidden("Access denied to this company")


def check_user_access(ctx: RequestContext, user) -> None:
    """
    Guard access to another user's records.

    Super-admin: anyone. HR admin: users of the same tenant. Employee: only self.
    """
    if ctx.is_super_admin:
        return
    if ctx.role == Role.HR_ADMIN and user.company_id == ctx.company_id:
        return
    if ctx.user_id == user.id:
        return
    raise Forbidden("Access denied to this user")
