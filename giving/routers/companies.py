"""Company (tenant) endpoints: directory, matching program, dashboard and reports."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from giving.core.config import settings
from giving.core.deps import get_current_context, get_db, require_roles
from giving.db.enums import ADMIN_ROLES, ReportFormat, Role, SubscriptionStatus
from giving.schemas.auth import RequestContext
from giving.schemas.common import ApiResponse
from giving.schemas.company import (
    CompanyCreate,
    CompanyRead,
    CompanyUpdate,
    MatchingProgramUpdate,
)
from giving.schemas.report import CompanyDashboard, CompanyReport
from giving.schemas.user import UserRead
from giving.services import company_service, report_service
from giving.utils.downloads import csv_attachment
from giving.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=ApiResponse[list[CompanyRead]])
def list_companies(
    search: str | None = None,
    subscription_status: SubscriptionStatus | None = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    companies, total = company_service.list_companies(
        db, pagination, search=search, subscription_status=subscription_status
    )
    return ApiResponse(
        data=[CompanyRead.model_validate(c) for c in companies],
        pagination=pagination.page_info(total),
    )


@router.get("/{company_id}", response_model=ApiResponse[CompanyRead])
def get_company(
    company_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=CompanyRead.model_validate(company_service.get_company(db, ctx, company_id)))


@router.post("", response_model=ApiResponse[CompanyRead], status_code=status.HTTP_201_CREATED)
def create_company(
    data: CompanyCreate,
    ctx: RequestContext = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    company = company_service.create_company(db, data)
    return ApiResponse(data=CompanyRead.model_validate(company), message="Company created successfully")


@router.put("/{company_id}", response_model=ApiResponse[CompanyRead])
def update_company(
    company_id: UUID,
    data: CompanyUpdate,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    company = company_service.update_company(db, ctx, company_id, data)
    return ApiResponse(data=CompanyRead.model_validate(company), message="Company updated successfully")


@router.put("/{company_id}/matching", response_model=ApiResponse[CompanyRead])
def update_matching(
    company_id: UUID,
    data: MatchingProgramUpdate,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    company = company_service.update_matching(db, ctx, company_id, data)
    return ApiResponse(
        data=CompanyRead.model_validate(company),
        message="Matching program updated successfully",
    )


@router.get("/{company_id}/dashboard", response_model=ApiResponse[CompanyDashboard])
def dashboard(
    company_id: UUID,
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    company = company_service.get_company(db, ctx, company_id)
    return ApiResponse(
        data=report_service.company_dashboard(db, company, year or report_service.current_year())
    )


@router.get("/{company_id}/employees", response_model=ApiResponse[list[UserRead]])
def employees(
    company_id: UUID,
    department: str | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    users, total = company_service.list_employees(db, ctx, company_id, pagination, department=department)
    return ApiResponse(
        data=[UserRead.model_validate(u) for u in users],
        pagination=pagination.page_info(total),
    )


@router.get("/{company_id}/reports", response_model=ApiResponse[CompanyReport])
def reports(
    company_id: UUID,
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    report_format: ReportFormat = Query(ReportFormat.JSON, alias="format"),
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    """Department breakdown as JSON, or every completed donation as CSV."""
    company = company_service.get_company(db, ctx, company_id)
    year = year or report_service.current_year()
    if report_format == ReportFormat.CSV:
        return csv_attachment(
            report_service.company_report_csv(db, company, year),
            f"donation-report-{year}.csv",
        )
    return ApiResponse(data=report_service.company_report(db, company, year))
