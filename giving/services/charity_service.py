"""Charity catalog: search, featured list, categories, stats and verification."""

import logging
from collections import Counter
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giving.core.errors import Conflict, NotFound
from giving.db.enums import CharityCategory
from giving.db.models import Charity
from giving.schemas.charity import (
    CategoryCount,
    CharityCreate,
    CharityStats,
    CharityUpdate,
    CharityVerifyRequest,
)
from giving.schemas.values import overlay
from giving.services import report_service
from giving.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "name": Charity.name,
    "total_donations": Charity.total_donations,
    "total_donors": Charity.total_donors,
    "created_at": Charity.created_at,
}
DEFAULT_FEATURED_LIMIT = 6
DEFAULT_SEARCH_LIMIT = 20
NESTED_DOCUMENTS = ("address", "contact_info", "impact", "donation_info", "images")


def list_charities(
    db: Session,
    pagination: PaginationParams,
    *,
    search: str | None = None,
    category: CharityCategory | None = None,
    verified: bool | None = None,
    featured: bool | None = None,
    sort: str = "name",
    order: str = "asc",
    include_inactive: bool = False,
) -> tuple[list[Charity], int]:
    query = db.query(Charity)
    if not include_inactive:
        query = query.filter(Charity.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(Charity.name.ilike(pattern), Charity.description.ilike(pattern), Charity.ein.ilike(pattern))
        )
    if category:
        query = query.filter(Charity.category == category)
    if featured is not None:
        query = query.filter(Charity.is_featured.is_(featured))

    column = SORT_FIELDS.get(sort, Charity.name)
    query = query.order_by(column.desc() if order == "desc" else column.asc(), Charity.name)

    if verified is not None:
        # Verification lives in a JSON document, filtered after loading
        matches = [c for c in query.all() if c.verification.is_verified is verified]
        start = pagination.offset
        return matches[start:start + pagination.limit], len(matches)
    return paginate_query(query, pagination)


def featured(db: Session, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Charity]:
    return list(
        db.execute(
            select(Charity)
            .where(Charity.is_active.is_(True), Charity.is_featured.is_(True))
            .order_by(Charity.total_donations.desc(), Charity.name)
            .limit(limit)
        ).scalars()
    )


def search(db: Session, q: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Charity]:
    pattern = f"%{q.strip()}%"
    return list(
        db.execute(
            select(Charity)
            .where(
                Charity.is_active.is_(True),
                or_(Charity.name.ilike(pattern), Charity.description.ilike(pattern), Charity.mission.ilike(pattern)),
            )
            .order_by(Charity.name)
            .limit(limit)
        ).scalars()
    )


def categories(db: Session) -> list[CategoryCount]:
    """Every category with its count of active charities (zero included)."""
    counts = Counter(
        db.execute(select(Charity.category).where(Charity.is_active.is_(True))).scalars()
    )
    return [
        CategoryCount(value=category, label=category.label, count=counts.get(category, 0))
        for category in CharityCategory
    ]


def get_charity(db: Session, charity_id: UUID, include_inactive: bool = False) -> Charity:
    charity = db.get(Charity, charity_id)
    if not charity or (not charity.is_active and not include_inactive):
        raise NotFound("Charity not found")
    return charity


def stats(db: Session, charity_id: UUID, year: int) -> CharityStats:
    charity = get_charity(db, charity_id)
    donations = report_service.completed_donations(db, year, charity_id=charity.id)
    totals = report_service.summarize(donations)
    return CharityStats(
        charity_id=charity.id,
        year=year,
        total_amount=totals.total_combined,
        total_matching=totals.total_matching,
        donation_count=totals.donation_count,
        unique_donors=totals.unique_donors,
        monthly=report_service.monthly_breakdown(donations),
    )


def create_charity(db: Session, data: CharityCreate) -> Charity:
    if db.execute(select(Charity.id).where(Charity.ein == data.ein.strip())).first():
        raise Conflict("Charity already exists with this EIN")
    charity = Charity(**data.model_dump(exclude={"ein"}), ein=data.ein.strip())
    # Nested documents go in as models, not dicts
    for field in (*NESTED_DOCUMENTS, "verification"):
        setattr(charity, field, getattr(data, field))
    db.add(charity)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Charity already exists with this EIN")
    db.refresh(charity)
    logger.info("Charity created id=%s", charity.id)
    return charity


def update_charity(db: Session, charity_id: UUID, data: CharityUpdate) -> Charity:
    charity = get_charity(db, charity_id, include_inactive=True)
    sent = data.model_fields_set
    for field in ("name", "description", "mission", "category", "tags", "is_featured", "is_active"):
        if field in sent and getattr(data, field) is not None:
            setattr(charity, field, getattr(data, field))
    for field in NESTED_DOCUMENTS:
        patch = getattr(data, field)
        if field in sent and patch is not None:
            setattr(charity, field, overlay(getattr(charity, field), patch))
    db.commit()
    db.refresh(charity)
    return charity


def verify_charity(db: Session, charity_id: UUID, data: CharityVerifyRequest) -> Charity:
    """Set verification; verifying stamps verified_at, un-verifying clears it."""
    charity = get_charity(db, charity_id, include_inactive=True)
    update = data.model_dump(exclude_unset=True)
    update["is_verified"] = data.is_verified
    update["verified_by"] = data.verified_by if data.is_verified else None
    update["verified_at"] = datetime.now(timezone.utc) if data.is_verified else None
    charity.verification = charity.verification.model_copy(update=update)
    db.commit()
    db.refresh(charity)
    logger.info("Charity verification set to %s id=%s", data.is_verified, charity.id)
    return charity
