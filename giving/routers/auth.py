"""Authentication endpoints: register, login, logout, profile and password."""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from giving.core.deps import get_current_context, get_db
from giving.core.rate_limit import AUTH_LIMIT, limiter
from giving.schemas.auth import (
    AuthData,
    LoginRequest,
    MeData,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    RequestContext,
)
from giving.schemas.common import ApiResponse
from giving.schemas.company import CompanyBrief
from giving.schemas.user import UserRead
from giving.services import auth_service

router = APIRouter()


def _auth_data(user, company, token: str) -> AuthData:
    return AuthData(
        token=token,
        user=UserRead.model_validate(user),
        company=CompanyBrief.model_validate(company) if company else None,
    )


@router.post("/register", response_model=ApiResponse[AuthData], status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
def register(
    request: Request,
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Register an employee under an existing company domain."""
    user, company, token = auth_service.register(db, data)
    return ApiResponse(data=_auth_data(user, company, token), message="User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthData])
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    user, company, token = auth_service.login(db, data.identifier, data.password)
    return ApiResponse(data=_auth_data(user, company, token), message="Login successful")


@router.post("/logout", response_model=ApiResponse[dict])
def logout(
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    """Revoke the caller's tokens."""
    auth_service.logout(db, ctx.user)
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[MeData])
def me(ctx: RequestContext = Depends(get_current_context)):
    return ApiResponse(
        data=MeData(
            user=UserRead.model_validate(ctx.user),
            company=CompanyBrief.model_validate(ctx.company) if ctx.company else None,
        )
    )


@router.put("/profile", response_model=ApiResponse[UserRead])
def update_profile(
    data: ProfileUpdate,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    user = auth_service.update_profile(db, ctx.user, data)
    return ApiResponse(data=UserRead.model_validate(user), message="Profile updated successfully")


@router.put("/password", response_model=ApiResponse[AuthData])
def change_password(
    data: PasswordChange,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    """Change password; other sessions are revoked and a fresh token returned."""
    token = auth_service.change_password(db, ctx.user, data)
    return ApiResponse(
        data=_auth_data(ctx.user, ctx.company, token),
        message="Password updated successfully",
    )
