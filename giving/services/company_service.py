"""Company (tenant) directory and matching program management."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giving.core.deps import check_company_access
from giving.core.errors import Conflict, Forbidden, NotFound
from giving.core.structured_logging import build_log_context
from giving.db.enums import DonationStatus, SubscriptionStatus
from giving.db.models import Company, Donation, User
from giving.schemas.auth import RequestContext
from giving.schemas.company import (
    CompanyCreate,
    CompanyUpdate,
    CompanyWithStats,
    MatchingProgramUpdate,
    SubscriptionUpdate,
)
from giving.schemas.values import overlay
from giving.services import report_service
from giving.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

# Nested documents a tenant admin may edit; the rest is super-admin only
TENANT_DOCUMENTS = ("address", "contact_info", "settings")
PLATFORM_DOCUMENTS = ("subscription", "matching_program")


def normalize_domain(domain: str) -> str:
    return domain.strip().lower()


def list_companies(
    db: Session,
    pagination: PaginationParams,
    *,
    search: str | None = None,
    subscription_status: SubscriptionStatus | None = None,
) -> tuple[list[Company], int]:
    query = db.query(Company)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Company.name.ilike(pattern), Company.domain.ilike(pattern)))
    query = query.order_by(Company.name)

    if subscription_status:
        # Subscription lives in a JSON document, filtered after loading
        matches = [c for c in query.all() if c.subscription.status == subscription_status]
        start = pagination.offset
        return matches[start:start + pagination.limit], len(matches)
    return paginate_query(query, pagination)


def get_company(db: Session, ctx: RequestContext, company_id: UUID) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")
    check_company_access(ctx, company_id)
    return company


def get_company_by_domain(db: Session, domain: str) -> Company | None:
    return db.execute(
        select(Company).where(func.lower(Company.domain) == normalize_domain(domain))
    ).scalar_one_or_none()


def create_company(db: Session, data: CompanyCreate) -> Company:
    domain = normalize_domain(data.domain)
    if get_company_by_domain(db, domain):
        raise Conflict("Company already exists with this domain")

    company = Company(
        name=data.name.strip(),
        domain=domain,
        ein=data.ein,
        industry=data.industry,
        address=data.address,
        contact_info=data.contact_info,
        subscription=data.subscription,
        matching_program=data.matching_program,
        settings=data.settings,
    )
    db.add(company)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Company already exists with this domain")
    db.refresh(company)
    logger.info("Company created", extra=build_log_context(company_id=str(company.id)))
    return company


def update_company(db: Session, ctx: RequestContext, company_id: UUID, data: CompanyUpdate) -> Company:
    """
    Partial update; nested documents are overlaid field by field.

    Subscription, matching program and activation are super-admin only.
    """
    company = get_company(db, ctx, company_id)
    sent = data.model_fields_set

    restricted = sent & {*PLATFORM_DOCUMENTS, "is_active"}
    if restricted and not ctx.is_super_admin:
        raise Forbidden(f"Only super admins can change: {', '.join(sorted(restricted))}")

    for field in ("name", "ein", "industry", "is_active"):
        if field in sent and getattr(data, field) is not None:
            setattr(company, field, getattr(data, field))
    for field in (*TENANT_DOCUMENTS, *PLATFORM_DOCUMENTS):
        patch = getattr(data, field)
        if field in sent and patch is not None:
            setattr(company, field, overlay(getattr(company, field), patch))

    db.commit()
    db.refresh(company)
    return company


def update_matching(
    db: Session,
    ctx: RequestContext,
    company_id: UUID,
    patch: MatchingProgramUpdate,
) -> Company:
    company = get_company(db, ctx, company_id)
    company.matching_program = overlay(company.matching_program, patch)
    db.commit()
    db.refresh(company)
    logger.info(
        "Matching program updated",
        extra=build_log_context(user_id=str(ctx.user_id), company_id=str(company_id)),
    )
    return company


def update_subscription(db: Session, company_id: UUID, patch: SubscriptionUpdate) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")
    company.subscription = overlay(company.subscription, patch)
    db.commit()
    db.refresh(company)
    return company


def list_employees(
    db: Session,
    ctx: RequestContext,
    company_id: UUID,
    pagination: PaginationParams,
    *,
    department: str | None = None,
) -> tuple[list[User], int]:
    get_company(db, ctx, company_id)
    query = db.query(User).filter(User.company_id == company_id, User.is_active.is_(True))
    if department:
        query = query.filter(User.department == department)
    return paginate_query(query.order_by(User.last_name, User.first_name), pagination)


def with_stats(db: Session, company: Company, year: int) -> CompanyWithStats:
    """Company plus its current-year completed donation figures."""
    start, end = report_service.year_bounds(year)
    employees = db.execute(
        select(func.count(User.id)).where(User.company_id == company.id, User.is_active.is_(True))
    ).scalar_one()
    count, total = db.execute(
        select(func.count(Donation.id), func.coalesce(func.sum(Donation.total_amount), 0)).where(
            Donation.company_id == company.id,
            Donation.status == DonationStatus.COMPLETED,
            Donation.created_at >= start,
            Donation.created_at < end,
        )
    ).one()
    base = CompanyWithStats.model_validate(company, from_attributes=True)
    return base.model_copy(
        update={"employee_count": employees, "donation_count": count, "total_donated": float(total)}
    )


def reset_matching_usage(db: Session, company: Company) -> None:
    """Start a new program year: zero the reserved matching amount. Does not commit."""
    company.matching_program = company.matching_program.model_copy(update={"used_amount": 0})
