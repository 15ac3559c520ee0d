"""Tax record schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from giving.core.config import settings
from giving.db.enums import TaxDocumentType, TaxRecordStatus
from giving.schemas.values import TaxDocuments, TaxLineItem, TaxSummary


class TaxRecordRead(BaseModel):
    id: UUID
    user_id: UUID
    company_id: UUID
    tax_year: int
    donations: list[TaxLineItem]
    summary: TaxSummary
    documents: TaxDocuments
    status: TaxRecordStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaxRecordListItem(BaseModel):
    id: UUID
    tax_year: int
    summary: TaxSummary
    status: TaxRecordStatus
    updated_at: datetime

    model_config = {"from_attributes": True}


class GenerateRequest(BaseModel):
    tax_year: int = Field(..., ge=settings.MIN_TAX_YEAR, le=settings.MAX_TAX_YEAR)


class CompanyGenerateRequest(BaseModel):
    tax_year: int = Field(..., ge=settings.MIN_TAX_YEAR, le=settings.MAX_TAX_YEAR)
    company_id: UUID | None = None


class BatchFailure(BaseModel):
    user_id: UUID
    error: str


class BatchResult(BaseModel):
    tax_year: int
    generated: int = 0
    skipped: int = 0
    failed: list[BatchFailure] = Field(default_factory=list)


class DocumentInfo(BaseModel):
    record_id: UUID
    document_type: TaxDocumentType
    tax_year: int
    generated_at: datetime | None
    download_url: str


class TaxYearSummary(BaseModel):
    tax_year: int
    record_id: UUID | None = None
    status: TaxRecordStatus | None = None
    summary: TaxSummary
