"""Charity catalog schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from giving.db.enums import CharityCategory, VerificationSource
from giving.schemas.values import (
    Address,
    CharityImages,
    CharityImpact,
    CharityVerification,
    ContactInfo,
    DonationInfo,
)


class CharityRead(BaseModel):
    id: UUID
    name: str
    ein: str
    description: str
    mission: str | None
    category: CharityCategory
    tags: list[str]
    address: Address
    contact_info: ContactInfo
    verification: CharityVerification
    impact: CharityImpact
    donation_info: DonationInfo
    images: CharityImages
    is_featured: bool
    is_active: bool
    total_donations: float
    total_donors: int
    created_at: datetime

    model_config = {"from_attributes": True}


class CharityBrief(BaseModel):
    id: UUID
    name: str
    ein: str
    category: CharityCategory

    model_config = {"from_attributes": True}


class CharityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    ein: str = Field(..., min_length=2, max_length=20)
    description: str = Field(..., min_length=1)
    mission: str | None = None
    category: CharityCategory
    tags: list[str] = Field(default_factory=list)
    address: Address = Field(default_factory=Address)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    verification: CharityVerification = Field(default_factory=CharityVerification)
    impact: CharityImpact = Field(default_factory=CharityImpact)
    donation_info: DonationInfo = Field(default_factory=DonationInfo)
    images: CharityImages = Field(default_factory=CharityImages)
    is_featured: bool = False


class CharityUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    mission: str | None = None
    category: CharityCategory | None = None
    tags: list[str] | None = None
    address: Address | None = None
    contact_info: ContactInfo | None = None
    impact: CharityImpact | None = None
    donation_info: DonationInfo | None = None
    images: CharityImages | None = None
    is_featured: bool | None = None
    is_active: bool | None = None


class CharityVerifyRequest(BaseModel):
    is_verified: bool = True
    verified_by: VerificationSource = VerificationSource.MANUAL
    rating: float | None = Field(None, ge=0, le=5)
    financial_score: float | None = Field(None, ge=0, le=100)
    accountability_score: float | None = Field(None, ge=0, le=100)


class CategoryCount(BaseModel):
    value: CharityCategory
    label: str
    count: int


class MonthlyAmount(BaseModel):
    month: str
    amount: float
    count: int


class CharityStats(BaseModel):
    charity_id: UUID
    year: int
    total_amount: float
    total_matching: float
    donation_count: int
    unique_donors: int
    monthly: list[MonthlyAmount]
