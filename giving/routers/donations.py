"""Donation ledger endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from giving.core.config import settings
from giving.core.deps import get_current_context, get_db, require_roles
from giving.db.enums import ADMIN_ROLES, DonationStatus, DonationType
from giving.schemas.auth import RequestContext
from giving.schemas.common import ApiResponse
from giving.schemas.donation import (
    CompanyDonationSummary,
    DonationCreate,
    DonationRead,
    DonationStatusUpdate,
    UserDonationSummary,
)
from giving.services import donation_service, report_service
from giving.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=ApiResponse[list[DonationRead]])
def list_donations(
    status_filter: DonationStatus | None = Query(None, alias="status"),
    donation_type: DonationType | None = Query(None, alias="type"),
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    charity_id: UUID | None = None,
    user_id: UUID | None = None,
    company_id: UUID | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    """Employees see their own donations, HR admins their company's, super-admins all."""
    donations, total = donation_service.list_donations(
        db,
        ctx,
        pagination,
        status=status_filter,
        donation_type=donation_type,
        year=year,
        charity_id=charity_id,
        user_id=user_id,
        company_id=company_id,
    )
    return ApiResponse(
        data=[DonationRead.model_validate(d) for d in donations],
        pagination=pagination.page_info(total),
    )


@router.get("/summary/user", response_model=ApiResponse[UserDonationSummary])
def user_summary(
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=donation_service.user_summary(db, ctx, year or report_service.current_year()))


@router.get("/summary/company", response_model=ApiResponse[CompanyDonationSummary])
def company_summary(
    year: int | None = Query(None, ge=settings.REPORT_MIN_YEAR, le=settings.REPORT_MAX_YEAR),
    company_id: UUID | None = None,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    return ApiResponse(
        data=donation_service.company_summary(
            db, ctx, year or report_service.current_year(), company_id
        )
    )


@router.get("/{donation_id}", response_model=ApiResponse[DonationRead])
def get_donation(
    donation_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=DonationRead.model_validate(donation_service.get_donation(db, ctx, donation_id)))


@router.post("", response_model=ApiResponse[DonationRead], status_code=status.HTTP_201_CREATED)
def create_donation(
    data: DonationCreate,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    donation = donation_service.create_donation(db, ctx, data)
    return ApiResponse(data=DonationRead.model_validate(donation), message="Donation created successfully")


@router.put("/{donation_id}/status", response_model=ApiResponse[DonationRead])
def update_status(
    donation_id: UUID,
    data: DonationStatusUpdate,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    donation = donation_service.update_status(db, ctx, donation_id, data.status, data.reason)
    return ApiResponse(data=DonationRead.model_validate(donation), message="Donation status updated")


@router.put("/{donation_id}/cancel", response_model=ApiResponse[DonationRead])
def cancel_donation(
    donation_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    donation = donation_service.cancel_donation(db, ctx, donation_id)
    return ApiResponse(data=DonationRead.model_validate(donation), message="Donation cancelled successfully")
