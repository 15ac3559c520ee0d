"""Donation ledger schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from giving.db.enums import DonationFrequency, DonationStatus, DonationType, PaymentMethod
from giving.schemas.charity import CharityBrief, MonthlyAmount
from giving.schemas.user import UserBrief
from giving.schemas.values import PayrollInfo, ProcessingInfo, TaxInfo


class DonationCreate(BaseModel):
    charity_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    donation_type: DonationType = DonationType.ONE_TIME
    frequency: DonationFrequency | None = None
    payment_method: PaymentMethod = PaymentMethod.DIRECT_PAYMENT
    payroll_info: PayrollInfo | None = None
    tax_info: TaxInfo | None = None
    is_anonymous: bool = False
    notes: str | None = Field(None, max_length=1000)


class DonationRead(BaseModel):
    id: UUID
    user_id: UUID
    company_id: UUID
    charity_id: UUID
    amount: float
    matching_amount: float
    total_amount: float
    currency: str
    donation_type: DonationType
    frequency: DonationFrequency | None
    payment_method: PaymentMethod
    payroll_info: PayrollInfo
    status: DonationStatus
    processing_info: ProcessingInfo
    tax_info: TaxInfo
    is_anonymous: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime
    charity: CharityBrief | None = None
    user: UserBrief | None = None

    model_config = {"from_attributes": True}


class DonationStatusUpdate(BaseModel):
    status: DonationStatus
    reason: str | None = Field(None, max_length=500)


class DonationTotals(BaseModel):
    total_amount: float = 0
    total_matching: float = 0
    total_combined: float = 0
    donation_count: int = 0
    unique_charities: int = 0
    unique_donors: int = 0


class CharityTotal(BaseModel):
    charity_id: UUID
    name: str
    total_amount: float
    donation_count: int
    unique_donors: int = 0


class UserDonationSummary(BaseModel):
    year: int
    totals: DonationTotals
    monthly: list[MonthlyAmount]
    top_charities: list[CharityTotal]


class CompanyDonationSummary(BaseModel):
    year: int
    company_id: UUID
    totals: DonationTotals
    monthly: list[MonthlyAmount]
    top_charities: list[CharityTotal]


class UserDonationsData(BaseModel):
    donations: list[DonationRead]
    totals: DonationTotals
