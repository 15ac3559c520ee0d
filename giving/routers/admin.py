"""Platform administration endpoints (super-admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from giving.core.config import settings
from giving.core.deps import get_db, require_roles
from giving.db.enums import CharityCategory, ReportFormat, Role, SubscriptionStatus
from giving.schemas.auth import RequestContext
from giving.schemas.charity import CharityRead
from giving.schemas.common import ApiResponse
from giving.schemas.company import CompanyRead, CompanyWithStats, SubscriptionUpdate
from giving.schemas.report import AdminDashboard, SystemReport
from giving.schemas.user import UserRead
from giving.services import charity_service, company_service, report_service, user_service
from giving.utils.downloads import csv_attachment
from giving.utils.pagination import PaginationParams, get_pagination

router = APIRouter(dependencies=[Depends(require_roles([Role.SUPER_ADMIN]))])


@router.get("/dashboard", response_model=ApiResponse[AdminDashboard])
def dashboard(
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=report_service.admin_dashboard(db, year or report_service.current_year()))


@router.get("/companies", response_model=ApiResponse[list[CompanyWithStats]])
def companies(
    search: str | None = None,
    subscription_status: SubscriptionStatus | None = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """Companies with their current-year donation figures."""
    items, total = company_service.list_companies(
        db, pagination, search=search, subscription_status=subscription_status
    )
    year = report_service.current_year()
    return ApiResponse(
        data=[company_service.with_stats(db, c, year) for c in items],
        pagination=pagination.page_info(total),
    )


@router.put("/companies/{company_id}/subscription", response_model=ApiResponse[CompanyRead])
def update_subscription(
    company_id: UUID,
    data: SubscriptionUpdate,
    db: Session = Depends(get_db),
):
    company = company_service.update_subscription(db, company_id, data)
    return ApiResponse(data=CompanyRead.model_validate(company), message="Subscription updated successfully")


@router.get("/users", response_model=ApiResponse[list[UserRead]])
def users(
    search: str | None = None,
    role: Role | None = None,
    company_id: UUID | None = None,
    include_inactive: bool = False,
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    items, total = user_service.list_users(
        db,
        ctx,
        pagination,
        search=search,
        role=role,
        company_id=company_id,
        include_inactive=include_inactive,
    )
    return ApiResponse(
        data=[UserRead.model_validate(u) for u in items],
        pagination=pagination.page_info(total),
    )


@router.get("/charities", response_model=ApiResponse[list[CharityRead]])
def charities(
    search: str | None = None,
    category: CharityCategory | None = None,
    verified: bool | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """All charities, inactive included."""
    items, total = charity_service.list_charities(
        db,
        pagination,
        search=search,
        category=category,
        verified=verified,
        include_inactive=True,
    )
    return ApiResponse(
        data=[CharityRead.model_validate(c) for c in items],
        pagination=pagination.page_info(total),
    )


@router.get("/reports", response_model=ApiResponse[SystemReport])
def reports(
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    report_format: ReportFormat = Query(ReportFormat.JSON, alias="format"),
    db: Session = Depends(get_db),
):
    year = year or report_service.current_year()
    if report_format == ReportFormat.CSV:
        return csv_attachment(report_service.system_report_csv(db, year), f"system-report-{year}.csv")
    return ApiResponse(data=report_service.system_report(db, year))
