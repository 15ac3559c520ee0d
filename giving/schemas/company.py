"""Company (tenant) schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from giving.db.enums import MatchingType
from giving.schemas.values import (
    Address,
    CompanySettings,
    ContactInfo,
    MatchingProgram,
    Subscription,
)


class CompanyBrief(BaseModel):
    id: UUID
    name: str
    domain: str
    matching_program: MatchingProgram
    settings: CompanySettings

    model_config = {"from_attributes": True}


class CompanyRead(BaseModel):
    id: UUID
    name: str
    domain: str
    ein: str | None
    industry: str | None
    address: Address
    contact_info: ContactInfo
    subscription: Subscription
    matching_program: MatchingProgram
    settings: CompanySettings
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    domain: str = Field(..., min_length=3, max_length=255)
    ein: str | None = Field(None, max_length=20)
    industry: str | None = Field(None, max_length=100)
    address: Address = Field(default_factory=Address)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    subscription: Subscription = Field(default_factory=Subscription)
    matching_program: MatchingProgram = Field(default_factory=MatchingProgram)
    settings: CompanySettings = Field(default_factory=CompanySettings)


class MatchingProgramUpdate(BaseModel):
    """
    Policy fields of the matching program. Only sent fields are applied.

    used_amount is the annual reservation ledger kept by donations and the
    yearly reset, so it is not writable here.
    """
    enabled: bool = False
    type: MatchingType = MatchingType.NONE
    percentage: float = Field(0, ge=0, le=100)
    fixed_amount: float = Field(0, ge=0)
    max_match_per_employee: float | None = Field(None, ge=0)
    annual_limit: float | None = Field(None, ge=0)
    preferred_charities: list[UUID] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class CompanyUpdate(BaseModel):
    """
    Partial update. Nested documents are overlaid field by field.

    subscription and matching_program are honoured for super-admins only.
    """
    name: str | None = Field(None, min_length=1, max_length=255)
    ein: str | None = Field(None, max_length=20)
    industry: str | None = Field(None, max_length=100)
    address: Address | None = None
    contact_info: ContactInfo | None = None
    settings: CompanySettings | None = None
    subscription: Subscription | None = None
    matching_program: MatchingProgramUpdate | None = None
    is_active: bool | None = None


class CompanyWithStats(CompanyRead):
    employee_count: int = 0
    donation_count: int = 0
    total_donated: float = 0


# Only sent fields are applied.
SubscriptionUpdate = Subscription
