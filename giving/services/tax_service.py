"""
Tax record generation.

A tax record is the yearly rollup of one user's COMPLETED donations. It is
upserted per (user, tax_year) and its PDFs are rendered on demand from the
stored line items, never cached.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from giving.core.errors import AppError, Forbidden, NoDonationsFound, NotFound, ValidationFailed
from giving.core.structured_logging import build_log_context
from giving.db.enums import DonationStatus, Role, TaxDocumentType, TaxRecordStatus
from giving.db.models import Donation, TaxRecord, User
from giving.schemas.auth import RequestContext
from giving.schemas.tax import BatchFailure, BatchResult, DocumentInfo, TaxYearSummary
from giving.schemas.values import TaxDocuments, TaxLineItem, TaxSummary
from giving.services import pdf_service, report_service

logger = logging.getLogger(__name__)


def build_line_items(donations: list[Donation]) -> list[TaxLineItem]:
    return [
        TaxLineItem(
            donation_id=d.id,
            charity_name=d.charity.name,
            charity_ein=d.charity.ein,
            amount=float(d.amount),
            date=d.created_at,
            # Deductible unless explicitly marked otherwise
            is_tax_deductible=d.tax_info.tax_deductible is not False,
        )
        for d in donations
    ]


def summarize(items: list[TaxLineItem]) -> TaxSummary:
    total = sum((Decimal(str(i.amount)) for i in items), Decimal("0"))
    deductible = sum((Decimal(str(i.amount)) for i in items if i.is_tax_deductible), Decimal("0"))
    return TaxSummary(
        total_donations=float(total),
        total_tax_deductible=float(deductible),
        donation_count=len(items),
        unique_charities=len({i.charity_ein for i in items}),
    )


def generate(db: Session, user: User, tax_year: int) -> TaxRecord:
    """
    Create or fully replace the user's record for tax_year.

    Raises:
        NoDonationsFound: No COMPLETED donations in the year
    """
    if not user.company_id:
        raise ValidationFailed("Tax records require a company account")

    donations = report_service.completed_donations(db, tax_year, user_id=user.id)
    if not donations:
        raise NoDonationsFound()

    items = build_line_items(donations)
    now = datetime.now(timezone.utc)

    record = db.execute(
        select(TaxRecord).where(TaxRecord.user_id == user.id, TaxRecord.tax_year == tax_year)
    ).scalar_one_or_none()
    if record is None:
        record = TaxRecord(user_id=user.id, tax_year=tax_year, created_at=now)
        db.add(record)

    record.company_id = user.company_id
    record.donations = items
    record.summary = summarize(items)
    record.documents = TaxDocuments.all_generated(now)
    record.status = TaxRecordStatus.GENERATED
    record.updated_at = now
    db.commit()
    db.refresh(record)

    logger.info(
        "Tax record generated year=%s donations=%d",
        tax_year,
        len(items),
        extra=build_log_context(user_id=str(user.id), company_id=str(user.company_id)),
    )
    return record


def generate_for_company(db: Session, company_id: UUID, tax_year: int) -> BatchResult:
    """
    Generate records for every active employee of a company.

    Users without donations that year are skipped; other failures are
    recorded and the batch continues.
    """
    users = db.execute(
        select(User)
        .where(User.company_id == company_id, User.is_active.is_(True), User.role == Role.EMPLOYEE)
        .order_by(User.last_name, User.first_name)
    ).scalars().all()

    result = BatchResult(tax_year=tax_year)
    for user in users:
        try:
            generate(db, user, tax_year)
            result.generated += 1
        except NoDonationsFound:
            result.skipped += 1
        except (AppError, SQLAlchemyError) as exc:
            db.rollback()
            logger.warning(
                "Tax record generation failed: %s",
                type(exc).__name__,
                extra=build_log_context(user_id=str(user.id), company_id=str(company_id)),
            )
            result.failed.append(BatchFailure(user_id=user.id, error=str(exc) or type(exc).__name__))
    logger.info(
        "Company tax batch year=%s generated=%d skipped=%d failed=%d",
        tax_year,
        result.generated,
        result.skipped,
        len(result.failed),
        extra=build_log_context(company_id=str(company_id)),
    )
    return result


def resolve_batch_company(ctx: RequestContext, company_id: UUID | None) -> UUID:
    if ctx.is_super_admin:
        if not company_id:
            raise ValidationFailed("Company ID is required")
        return company_id
    if company_id and company_id != ctx.company_id:
        raise Forbidden("Access denied to this company")
    return ctx.company_id


# =============================================================================
# Reads (owner only)
# =============================================================================

def list_records(db: Session, user_id: UUID) -> list[TaxRecord]:
    return list(
        db.execute(
            select(TaxRecord).where(TaxRecord.user_id == user_id).order_by(TaxRecord.tax_year.desc())
        ).scalars()
    )


def get_record(db: Session, user_id: UUID, record_id: UUID) -> TaxRecord:
    """Records of other users are reported as missing."""
    record = db.get(TaxRecord, record_id)
    if not record or record.user_id != user_id:
        raise NotFound("Tax record not found")
    return record


def document_info(db: Session, user_id: UUID, record_id: UUID, document_type: TaxDocumentType) -> DocumentInfo:
    record = get_record(db, user_id, record_id)
    meta = record.documents.get(document_type)
    if not meta.generated:
        raise NotFound("Document not generated yet")
    return DocumentInfo(
        record_id=record.id,
        document_type=document_type,
        tax_year=record.tax_year,
        generated_at=meta.generated_at,
        download_url=f"/api/tax/records/{record.id}/download/{document_type.value}/file",
    )


def render_document(
    db: Session,
    user_id: UUID,
    record_id: UUID,
    document_type: TaxDocumentType,
) -> tuple[bytes, str]:
    record = get_record(db, user_id, record_id)
    content = pdf_service.render_tax_document(record, document_type)
    return content, f"{document_type.value}-{record.tax_year}.pdf"


def mark_downloaded(db: Session, user_id: UUID, record_id: UUID) -> TaxRecord:
    record = get_record(db, user_id, record_id)
    record.status = TaxRecordStatus.DOWNLOADED
    db.commit()
    db.refresh(record)
    return record


def donation_receipt(db: Session, user_id: UUID, donation_id: UUID) -> tuple[bytes, str]:
    """Receipt PDF for one of the user's own COMPLETED donations."""
    donation = db.execute(
        select(Donation).options(joinedload(Donation.charity)).where(Donation.id == donation_id)
    ).scalar_one_or_none()
    if not donation:
        raise NotFound("Donation not found")
    if donation.user_id != user_id:
        raise Forbidden("Not authorized to access this donation")
    if donation.status != DonationStatus.COMPLETED:
        raise ValidationFailed("Receipt available only for completed donations")
    return pdf_service.render_donation_receipt(donation), f"donation-receipt-{donation.id}.pdf"


def available_years(db: Session, user_id: UUID) -> list[int]:
    """Years with at least one COMPLETED donation, newest first."""
    dates = db.execute(
        select(Donation.created_at).where(
            Donation.user_id == user_id, Donation.status == DonationStatus.COMPLETED
        )
    ).scalars()
    return sorted({d.year for d in dates}, reverse=True)


def year_summary(db: Session, user_id: UUID, tax_year: int) -> TaxYearSummary:
    """Stored summary for the year, or zeros when no record exists."""
    record = db.execute(
        select(TaxRecord).where(TaxRecord.user_id == user_id, TaxRecord.tax_year == tax_year)
    ).scalar_one_or_none()
    if record is None:
        return TaxYearSummary(tax_year=tax_year, summary=TaxSummary())
    return TaxYearSummary(
        tax_year=tax_year,
        record_id=record.id,
        status=record.status,
        summary=record.summary,
    )
