"""User management, preferences and leaderboard endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from giving.core.deps import get_current_context, get_db, get_optional_context, require_roles
from giving.core.errors import ValidationFailed
from giving.db.enums import ADMIN_ROLES, DonationStatus, Role
from giving.schemas.auth import RequestContext
from giving.schemas.common import ApiResponse
from giving.schemas.donation import DonationRead, UserDonationsData
from giving.schemas.user import (
    LeaderboardEntry,
    PreferencesUpdate,
    UserCreate,
    UserRead,
    UserUpdate,
)
from giving.services import donation_service, user_service
from giving.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=ApiResponse[list[UserRead]])
def list_users(
    search: str | None = None,
    department: str | None = None,
    role: Role | None = None,
    company_id: UUID | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    users, total = user_service.list_users(
        db, ctx, pagination, search=search, department=department, role=role, company_id=company_id
    )
    return ApiResponse(
        data=[UserRead.model_validate(u) for u in users],
        pagination=pagination.page_info(total),
    )


# Declared before /{user_id} so "leaderboard" is not parsed as an id
@router.get("/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
def leaderboard(
    company_id: UUID | None = None,
    limit: int = Query(user_service.DEFAULT_LEADERBOARD_LIMIT, ge=1, le=100),
    ctx: RequestContext | None = Depends(get_optional_context),
    db: Session = Depends(get_db),
):
    """Public with company_id; authenticated callers default to their own company."""
    target = company_id or (ctx.company_id if ctx else None)
    if not target:
        raise ValidationFailed("Company ID is required")
    return ApiResponse(data=user_service.leaderboard(db, target, limit))


@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    user = user_service.create_user(db, ctx, data)
    return ApiResponse(data=UserRead.model_validate(user), message="User created successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserRead])
def get_user(
    user_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=UserRead.model_validate(user_service.get_user(db, ctx, user_id)))


@router.put("/{user_id}", response_model=ApiResponse[UserRead])
def update_user(
    user_id: UUID,
    data: UserUpdate,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    user = user_service.update_user(db, ctx, user_id, data)
    return ApiResponse(data=UserRead.model_validate(user), message="User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[UserRead])
def delete_user(
    user_id: UUID,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    """Soft delete (deactivate)."""
    user = user_service.deactivate_user(db, ctx, user_id)
    return ApiResponse(data=UserRead.model_validate(user), message="User deactivated successfully")


@router.get("/{user_id}/donations", response_model=ApiResponse[UserDonationsData])
def user_donations(
    user_id: UUID,
    status_filter: DonationStatus | None = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    user = user_service.get_user(db, ctx, user_id)
    donations, total, totals = donation_service.list_user_donations(db, user, pagination, status_filter)
    return ApiResponse(
        data=UserDonationsData(
            donations=[DonationRead.model_validate(d) for d in donations],
            totals=totals,
        ),
        pagination=pagination.page_info(total),
    )


@router.put("/{user_id}/preferences", response_model=ApiResponse[UserRead])
def update_preferences(
    user_id: UUID,
    data: PreferencesUpdate,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    user = user_service.update_preferences(db, ctx, user_id, data)
    return ApiResponse(data=UserRead.model_validate(user), message="Preferences updated successfully")
