"""
Donation ledger: creation with employer matching, status changes, summaries.

Creation, matching reservation and counter updates for a donation commit in a
single transaction. The company row is locked while its matching budget is
read and reserved.
"""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import extract, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from giving.core.deps import check_company_access
from giving.core.errors import (
    Forbidden,
    InvalidStateTransition,
    NotFound,
    ServerError,
    ValidationFailed,
)
from giving.core.structured_logging import build_log_context
from giving.db.enums import (
    DONATION_TRANSITIONS,
    DonationStatus,
    DonationType,
    MatchingType,
    PaymentMethod,
    Role,
)
from giving.db.models import Charity, Company, Donation, User
from giving.schemas.auth import RequestContext
from giving.schemas.donation import (
    CompanyDonationSummary,
    DonationCreate,
    DonationTotals,
    UserDonationSummary,
)
from giving.schemas.values import MatchingProgram, PayrollInfo, ProcessingInfo, TaxInfo
from giving.services import gamification_service, report_service
from giving.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
TOP_USER_CHARITIES = 5

# Reaching one of these for the first time credits charity and donor counters
COUNTED_STATUSES = {DonationStatus.APPROVED, DonationStatus.PROCESSING, DonationStatus.COMPLETED}
# Moving into one of these gives the matching reservation back to the company
RELEASING_STATUSES = {DonationStatus.CANCELLED, DonationStatus.FAILED}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# Matching
# =============================================================================

def compute_match(program: MatchingProgram, amount: Decimal) -> Decimal:
    """
    Employer match for one donation before the annual budget is applied.

    percentage: amount * percentage / 100; fixed: fixed_amount.
    Capped by max_match_per_employee when that is set (0 means no cap).
    """
    if not program.enabled or program.type == MatchingType.NONE:
        return Decimal("0.00")
    if program.type == MatchingType.PERCENTAGE:
        raw = Decimal(amount) * Decimal(str(program.percentage)) / Decimal("100")
    else:
        raw = Decimal(str(program.fixed_amount))
    if program.max_match_per_employee:
        raw = min(raw, Decimal(str(program.max_match_per_employee)))
    return _money(max(raw, Decimal("0")))


def remaining_budget(program: MatchingProgram) -> Decimal | None:
    """Unreserved annual matching budget, or None when there is no annual cap."""
    if not program.annual_limit:
        return None
    remaining = Decimal(str(program.annual_limit)) - Decimal(str(program.used_amount))
    return _money(max(remaining, Decimal("0")))


def apply_annual_cap(program: MatchingProgram, match: Decimal) -> Decimal:
    remaining = remaining_budget(program)
    if remaining is None:
        return match
    return min(match, remaining)


def _with_used_amount(program: MatchingProgram, delta: Decimal) -> MatchingProgram:
    used = Decimal(str(program.used_amount)) + delta
    return program.model_copy(update={"used_amount": float(_money(max(used, Decimal("0"))))})


def _lock_company(db: Session, company_id: UUID) -> Company:
    """Load the company row FOR UPDATE (a no-op on SQLite) with fresh values."""
    return db.execute(
        select(Company)
        .where(Company.id == company_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one()


# =============================================================================
# Side effects
# =============================================================================

def apply_counters(db: Session, donation: Donation) -> None:
    """Credit charity totals and donor gamification once per donation."""
    if donation.processing_info.counters_applied:
        return
    charity = db.get(Charity, donation.charity_id)
    charity.total_donations = (charity.total_donations or Decimal("0")) + donation.total_amount
    charity.total_donors = (charity.total_donors or 0) + 1

    donor = db.get(User, donation.user_id)
    donor.gamification = gamification_service.credit_donation(
        donor.gamification, donation.amount, _utcnow().date()
    )
    donation.processing_info = donation.processing_info.model_copy(update={"counters_applied": True})


def _release_match(db: Session, donation: Donation) -> None:
    if not donation.matching_amount:
        return
    company = _lock_company(db, donation.company_id)
    company.matching_program = _with_used_amount(company.matching_program, -donation.matching_amount)


# =============================================================================
# Create
# =============================================================================

def _validate_create(data: DonationCreate, charity: Charity | None) -> None:
    if not charity or not charity.is_active:
        raise ValidationFailed("Charity not found or inactive")
    if data.donation_type == DonationType.RECURRING and not data.frequency:
        raise ValidationFailed(
            "Frequency is required for recurring donations",
            errors=[{"field": "frequency", "message": "required for recurring donations"}],
        )
    if data.payment_method == PaymentMethod.PAYROLL_DEDUCTION:
        payroll = data.payroll_info or PayrollInfo()
        if not payroll.deduction_type or not payroll.deduction_value:
            raise ValidationFailed(
                "Deduction type and value are required for payroll deductions",
                errors=[{"field": "payroll_info", "message": "deduction_type and deduction_value required"}],
            )
    limits = charity.donation_info
    if limits.minimum_amount and data.amount < _money(limits.minimum_amount):
        raise ValidationFailed(f"Minimum donation for this charity is {limits.minimum_amount:.2f}")
    if limits.maximum_amount and data.amount > _money(limits.maximum_amount):
        raise ValidationFailed(f"Maximum donation for this charity is {limits.maximum_amount:.2f}")


def create_donation(db: Session, ctx: RequestContext, data: DonationCreate) -> Donation:
    """
    Create a donation for the current user.

    Starts APPROVED unless the company requires approval (then PENDING).
    Matching is computed, trimmed to the remaining annual budget and reserved.
    Counters are credited immediately for non-pending donations.
    """
    if ctx.company_id is None:
        raise Forbidden("Donations require a company account")

    charity = db.get(Charity, data.charity_id)
    _validate_create(data, charity)

    amount = _money(data.amount)
    try:
        company = _lock_company(db, ctx.company_id)
        program = company.matching_program
        matching_amount = apply_annual_cap(program, compute_match(program, amount))

        status = (
            DonationStatus.PENDING
            if company.settings.require_approval_for_donations
            else DonationStatus.APPROVED
        )
        now = _utcnow()
        tax_info = (data.tax_info or TaxInfo()).model_copy(update={"tax_year": now.year})

        donation = Donation(
            user_id=ctx.user_id,
            company_id=company.id,
            charity_id=charity.id,
            amount=amount,
            matching_amount=matching_amount,
            total_amount=amount + matching_amount,
            donation_type=data.donation_type,
            frequency=data.frequency if data.donation_type == DonationType.RECURRING else None,
            payment_method=data.payment_method,
            payroll_info=data.payroll_info or PayrollInfo(),
            status=status,
            processing_info=ProcessingInfo(last_status_update=now),
            tax_info=tax_info,
            is_anonymous=data.is_anonymous,
            notes=data.notes,
            created_at=now,
            updated_at=now,
        )
        db.add(donation)

        if matching_amount > 0:
            company.matching_program = _with_used_amount(program, matching_amount)
        if status in COUNTED_STATUSES:
            apply_counters(db, donation)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Donation create failed",
            extra=build_log_context(user_id=str(ctx.user_id), company_id=str(ctx.company_id)),
        )
        raise ServerError("Failed to create donation")

    db.refresh(donation)
    logger.info(
        "Donation created status=%s matching=%s",
        donation.status.value,
        donation.matching_amount,
        extra=build_log_context(user_id=str(ctx.user_id), company_id=str(ctx.company_id)),
    )
    return donation


# =============================================================================
# Read
# =============================================================================

def _load(db: Session, donation_id: UUID) -> Donation:
    donation = db.execute(
        select(Donation)
        .options(joinedload(Donation.charity), joinedload(Donation.user))
        .where(Donation.id == donation_id)
    ).scalar_one_or_none()
    if not donation:
        raise NotFound("Donation not found")
    return donation


def _check_read_access(ctx: RequestContext, donation: Donation) -> None:
    if ctx.is_super_admin:
        return
    if ctx.is_hr_admin and donation.company_id == ctx.company_id:
        return
    if donation.user_id == ctx.user_id:
        return
    raise Forbidden("Access denied to this donation")


def get_donation(db: Session, ctx: RequestContext, donation_id: UUID) -> Donation:
    donation = _load(db, donation_id)
    _check_read_access(ctx, donation)
    return donation


def list_donations(
    db: Session,
    ctx: RequestContext,
    pagination: PaginationParams,
    *,
    status: DonationStatus | None = None,
    donation_type: DonationType | None = None,
    year: int | None = None,
    charity_id: UUID | None = None,
    user_id: UUID | None = None,
    company_id: UUID | None = None,
) -> tuple[list[Donation], int]:
    """
    Role-scoped donation listing, newest first.

    Employees see their own; HR admins their tenant; super-admins everything.
    """
    query = db.query(Donation).options(joinedload(Donation.charity), joinedload(Donation.user))

    if ctx.role == Role.EMPLOYEE:
        if user_id and user_id != ctx.user_id:
            raise Forbidden("Access denied to other users' donations")
        query = query.filter(Donation.user_id == ctx.user_id)
    elif ctx.is_hr_admin:
        if company_id and company_id != ctx.company_id:
            raise Forbidden("Access denied to this company")
        query = query.filter(Donation.company_id == ctx.company_id)
    elif company_id:
        query = query.filter(Donation.company_id == company_id)

    if user_id:
        query = query.filter(Donation.user_id == user_id)
    if status:
        query = query.filter(Donation.status == status)
    if donation_type:
        query = query.filter(Donation.donation_type == donation_type)
    if charity_id:
        query = query.filter(Donation.charity_id == charity_id)
    if year:
        start, end = report_service.year_bounds(year)
        query = query.filter(Donation.created_at >= start, Donation.created_at < end)

    return paginate_query(query.order_by(Donation.created_at.desc()), pagination)


def list_user_donations(
    db: Session,
    user: User,
    pagination: PaginationParams,
    status: DonationStatus | None = None,
) -> tuple[list[Donation], int, DonationTotals]:
    """Paginated donations of one user plus totals over all of them."""
    query = db.query(Donation).options(joinedload(Donation.charity)).filter(Donation.user_id == user.id)
    if status:
        query = query.filter(Donation.status == status)
    totals = report_service.summarize(query.all())
    items, total = paginate_query(query.order_by(Donation.created_at.desc()), pagination)
    return items, total, totals


# =============================================================================
# Status changes
# =============================================================================

def _transition(
    db: Session,
    donation: Donation,
    new_status: DonationStatus,
    reason: str | None = None,
) -> None:
    now = _utcnow()
    update: dict = {"last_status_update": now}
    if new_status == DonationStatus.COMPLETED:
        update["processed_at"] = now
    elif new_status == DonationStatus.CANCELLED:
        update["cancelled_at"] = now
    elif new_status == DonationStatus.FAILED:
        update["failure_reason"] = reason

    if new_status in RELEASING_STATUSES:
        _release_match(db, donation)
    donation.status = new_status
    donation.processing_info = donation.processing_info.model_copy(update=update)
    if new_status in COUNTED_STATUSES:
        apply_counters(db, donation)


def _commit_transition(db: Session, donation: Donation, ctx: RequestContext) -> Donation:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Donation status change failed",
            extra=build_log_context(user_id=str(ctx.user_id), company_id=str(donation.company_id)),
        )
        raise ServerError("Failed to update donation")
    db.refresh(donation)
    logger.info(
        "Donation status now %s",
        donation.status.value,
        extra=build_log_context(user_id=str(ctx.user_id), company_id=str(donation.company_id)),
    )
    return donation


def update_status(
    db: Session,
    ctx: RequestContext,
    donation_id: UUID,
    new_status: DonationStatus,
    reason: str | None = None,
) -> Donation:
    """
    Admin status change following DONATION_TRANSITIONS.

    Raises:
        InvalidStateTransition: Edge not in the table (including same-status updates)
    """
    donation = _load(db, donation_id)
    check_company_access(ctx, donation.company_id)

    current = DonationStatus(donation.status)
    if new_status not in DONATION_TRANSITIONS[current]:
        raise InvalidStateTransition(
            f"Cannot change donation status from {current.value} to {new_status.value}"
        )
    _transition(db, donation, new_status, reason)
    return _commit_transition(db, donation, ctx)


def cancel_donation(db: Session, ctx: RequestContext, donation_id: UUID) -> Donation:
    """Cancel a PENDING or APPROVED donation (owner, tenant HR admin, or super-admin)."""
    donation = _load(db, donation_id)
    is_owner = donation.user_id == ctx.user_id
    is_tenant_admin = ctx.is_hr_admin and donation.company_id == ctx.company_id
    if not (is_owner or is_tenant_admin or ctx.is_super_admin):
        raise Forbidden("Access denied to this donation")

    if donation.status not in DonationStatus.cancellable():
        raise InvalidStateTransition("Cannot cancel donation with current status")
    _transition(db, donation, DonationStatus.CANCELLED)
    return _commit_transition(db, donation, ctx)


# =============================================================================
# Summaries
# =============================================================================

def user_summary(db: Session, ctx: RequestContext, year: int) -> UserDonationSummary:
    donations = report_service.completed_donations(db, year, user_id=ctx.user_id)
    return UserDonationSummary(
        year=year,
        totals=report_service.summarize(donations),
        monthly=report_service.monthly_breakdown(donations),
        top_charities=report_service.top_charities(donations, limit=TOP_USER_CHARITIES),
    )


def company_summary(
    db: Session,
    ctx: RequestContext,
    year: int,
    company_id: UUID | None = None,
) -> CompanyDonationSummary:
    target = company_id if ctx.is_super_admin else ctx.company_id
    if not target:
        raise ValidationFailed("Company ID is required")
    check_company_access(ctx, target)
    donations = report_service.completed_donations(db, year, company_id=target)
    return CompanyDonationSummary(
        year=year,
        company_id=target,
        totals=report_service.summarize(donations),
        monthly=report_service.monthly_breakdown(donations),
        top_charities=report_service.top_charities(donations),
    )


# =============================================================================
# Matching reconciliation (seed / CLI)
# =============================================================================

def reconcile_matching(db: Session, company: Company, year: int | None = None) -> Decimal:
    """
    Recompute matching for a company's donations in program order.

    Each donation (oldest first, cancelled/failed skipped) gets the per-donation
    match trimmed to what is left of the annual budget; totals are rewritten and
    the program's used_amount becomes the sum. Charities already credited
    with a donation get the change in its total. Does not commit.
    """
    program = company.matching_program.model_copy(update={"used_amount": 0})
    query = select(Donation).where(
        Donation.company_id == company.id,
        Donation.status.not_in(list(RELEASING_STATUSES)),
    )
    if year:
        query = query.where(extract("year", Donation.created_at) == year)
    donations = db.execute(query.order_by(Donation.created_at)).scalars().all()

    used = Decimal("0")
    for donation in donations:
        match = apply_annual_cap(program, compute_match(program, donation.amount))
        total = donation.amount + match
        if donation.processing_info.counters_applied and total != donation.total_amount:
            charity = db.get(Charity, donation.charity_id)
            charity.total_donations = charity.total_donations + total - donation.total_amount
        donation.matching_amount = match
        donation.total_amount = total
        used += match
        program = _with_used_amount(program, match)

    company.matching_program = program
    logger.info(
        "Reconciled matching for %d donations, used=%s",
        len(donations),
        used,
        extra=build_log_context(company_id=str(company.id)),
    )
    return used
