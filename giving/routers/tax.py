"""Tax record endpoints. Records and receipts are visible only to their owner."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from giving.core.config import settings
from giving.core.deps import get_current_context, get_db, require_roles
from giving.db.enums import ADMIN_ROLES, TaxDocumentType
from giving.schemas.auth import RequestContext
from giving.schemas.common import ApiResponse
from giving.schemas.tax import (
    BatchResult,
    CompanyGenerateRequest,
    DocumentInfo,
    GenerateRequest,
    TaxRecordListItem,
    TaxRecordRead,
    TaxYearSummary,
)
from giving.services import report_service, tax_service
from giving.utils.downloads import pdf_attachment

router = APIRouter()


@router.get("/records", response_model=ApiResponse[list[TaxRecordListItem]])
def list_records(
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    records = tax_service.list_records(db, ctx.user_id)
    return ApiResponse(data=[TaxRecordListItem.model_validate(r) for r in records])


@router.post("/records/generate", response_model=ApiResponse[TaxRecordRead])
def generate(
    data: GenerateRequest,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    record = tax_service.generate(db, ctx.user, data.tax_year)
    return ApiResponse(data=TaxRecordRead.model_validate(record), message="Tax record generated successfully")


@router.post("/records/generate-company", response_model=ApiResponse[BatchResult])
def generate_company(
    data: CompanyGenerateRequest,
    ctx: RequestContext = Depends(require_roles(list(ADMIN_ROLES))),
    db: Session = Depends(get_db),
):
    company_id = tax_service.resolve_batch_company(ctx, data.company_id)
    result = tax_service.generate_for_company(db, company_id, data.tax_year)
    return ApiResponse(
        data=result,
        message=f"Generated {result.generated} tax records, skipped {result.skipped}",
    )


@router.get("/records/{record_id}", response_model=ApiResponse[TaxRecordRead])
def get_record(
    record_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=TaxRecordRead.model_validate(tax_service.get_record(db, ctx.user_id, record_id)))


@router.get("/records/{record_id}/download/{document_type}", response_model=ApiResponse[DocumentInfo])
def document_info(
    record_id: UUID,
    document_type: TaxDocumentType,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=tax_service.document_info(db, ctx.user_id, record_id, document_type))


@router.get("/records/{record_id}/download/{document_type}/file")
def document_file(
    record_id: UUID,
    document_type: TaxDocumentType,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    """Render the PDF on demand from the stored record."""
    content, filename = tax_service.render_document(db, ctx.user_id, record_id, document_type)
    return pdf_attachment(content, filename)


@router.put("/records/{record_id}/downloaded", response_model=ApiResponse[TaxRecordRead])
def mark_downloaded(
    record_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    record = tax_service.mark_downloaded(db, ctx.user_id, record_id)
    return ApiResponse(data=TaxRecordRead.model_validate(record), message="Tax record marked as downloaded")


@router.get("/donations/{donation_id}/receipt")
def donation_receipt(
    donation_id: UUID,
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    content, filename = tax_service.donation_receipt(db, ctx.user_id, donation_id)
    return pdf_attachment(content, filename)


@router.get("/years", response_model=ApiResponse[list[int]])
def years(
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=tax_service.available_years(db, ctx.user_id))


@router.get("/summary", response_model=ApiResponse[TaxYearSummary])
def summary(
    year: int | None = Query(None, ge=settings.MIN_TAX_YEAR, le=settings.MAX_TAX_YEAR),
    ctx: RequestContext = Depends(get_current_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=tax_service.year_summary(db, ctx.user_id, year or report_service.current_year()))
