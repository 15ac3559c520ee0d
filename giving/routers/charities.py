"""Charity catalog endpoints. Reads are public; writes are super-admin only."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from giving.core.config import settings
from giving.core.deps import get_db, get_optional_context, require_roles
from giving.db.enums import CharityCategory, Role
from giving.schemas.auth import RequestContext
from giving.schemas.charity import (
    CategoryCount,
    CharityCreate,
    CharityRead,
    CharityStats,
    CharityUpdate,
    CharityVerifyRequest,
)
from giving.schemas.common import ApiResponse
from giving.services import charity_service, report_service
from giving.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


def _page(charities, total, pagination):
    return ApiResponse(
        data=[CharityRead.model_validate(c) for c in charities],
        pagination=pagination.page_info(total),
    )


@router.get("", response_model=ApiResponse[list[CharityRead]])
def list_charities(
    search: str | None = None,
    category: CharityCategory | None = None,
    verified: bool | None = None,
    featured: bool | None = None,
    sort: str = Query("name", pattern="^(name|total_donations|total_donors|created_at)$"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext | None = Depends(get_optional_context),
    db: Session = Depends(get_db),
):
    charities, total = charity_service.list_charities(
        db,
        pagination,
        search=search,
        category=category,
        verified=verified,
        featured=featured,
        sort=sort,
        order=order,
        include_inactive=bool(ctx and ctx.is_super_admin),
    )
    return _page(charities, total, pagination)


@router.get("/featured", response_model=ApiResponse[list[CharityRead]])
def featured(
    limit: int = Query(charity_service.DEFAULT_FEATURED_LIMIT, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=[CharityRead.model_validate(c) for c in charity_service.featured(db, limit)])


@router.get("/categories", response_model=ApiResponse[list[CategoryCount]])
def categories(db: Session = Depends(get_db)):
    return ApiResponse(data=charity_service.categories(db))


@router.get("/category/{category}", response_model=ApiResponse[list[CharityRead]])
def by_category(
    category: CharityCategory,
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    charities, total = charity_service.list_charities(db, pagination, category=category)
    return _page(charities, total, pagination)


@router.get("/search", response_model=ApiResponse[list[CharityRead]])
def search(
    q: str = Query(..., min_length=2),
    limit: int = Query(charity_service.DEFAULT_SEARCH_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=[CharityRead.model_validate(c) for c in charity_service.search(db, q, limit)])


@router.get("/{charity_id}", response_model=ApiResponse[CharityRead])
def get_charity(
    charity_id: UUID,
    ctx: RequestContext | None = Depends(get_optional_context),
    db: Session = Depends(get_db),
):
    charity = charity_service.get_charity(db, charity_id, include_inactive=bool(ctx and ctx.is_super_admin))
    return ApiResponse(data=CharityRead.model_validate(charity))


@router.get("/{charity_id}/stats", response_model=ApiResponse[CharityStats])
def stats(
    charity_id: UUID,
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=charity_service.stats(db, charity_id, year or report_service.current_year()))


@router.post("", response_model=ApiResponse[CharityRead], status_code=status.HTTP_201_CREATED)
def create_charity(
    data: CharityCreate,
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    charity = charity_service.create_charity(db, data)
    return ApiResponse(data=CharityRead.model_validate(charity), message="Charity created successfully")


@router.put("/{charity_id}", response_model=ApiResponse[CharityRead])
def update_charity(
    charity_id: UUID,
    data: CharityUpdate,
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    charity = charity_service.update_charity(db, charity_id, data)
    return ApiResponse(data=CharityRead.model_validate(charity), message="Charity updated successfully")


@router.put("/{charity_id}/verify", response_model=ApiResponse[CharityRead])
def verify_charity(
    charity_id: UUID,
    data: CharityVerifyRequest,
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    charity = charity_service.verify_charity(db, charity_id, data)
    return ApiResponse(data=CharityRead.model_validate(charity), message="Charity verification updated")
