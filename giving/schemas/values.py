"""
Value objects stored in JSON columns.

Each nested document (preferences, gamification, matching program, ...) is a
Pydantic model with named optional fields. Unknown keys are dropped on load,
and partial updates go through ``overlay`` which only applies the fields the
caller actually sent.
"""

from datetime import date, datetime
from typing import TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from giving.db.enums import (
    DeductionType,
    MatchingType,
    PayrollProvider,
    SubscriptionPlan,
    SubscriptionStatus,
    TaxDocumentType,
    VerificationSource,
)


M = TypeVar("M", bound=BaseModel)


class ValueObject(BaseModel):
    model_config = ConfigDict(extra="ignore")


def overlay(current: M, patch: BaseModel) -> M:
    """
    Return a copy of ``current`` with the explicitly set fields of ``patch`` applied.

    Nested value objects are overlaid recursively, so sending
    ``{"privacy": {"show_on_leaderboard": true}}`` keeps the other privacy flags.
    """
    data = current.model_dump()
    for name in patch.model_fields_set:
        if name not in type(current).model_fields:
            continue
        value = getattr(patch, name)
        existing = getattr(current, name)
        if isinstance(value, BaseModel) and isinstance(existing, BaseModel):
            data[name] = overlay(existing, value).model_dump()
        elif isinstance(value, BaseModel):
            data[name] = value.model_dump()
        else:
            data[name] = value
    return type(current).model_validate(data)


# =============================================================================
# Shared
# =============================================================================

class Address(ValueObject):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str = "US"


class ContactInfo(ValueObject):
    email: str | None = None
    phone: str | None = None
    website: str | None = None


# =============================================================================
# Company
# =============================================================================

class Subscription(ValueObject):
    plan: SubscriptionPlan = SubscriptionPlan.BASIC
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    max_employees: int | None = Field(None, ge=1)
    start_date: date | None = None
    end_date: date | None = None


class MatchingProgram(ValueObject):
    """
    Employer matching policy.

    percentage is 0-100 (50 means 50 cents per dollar). A missing or zero
    max_match_per_employee / annual_limit means no cap at that level.
    used_amount is the matching already reserved this program year.
    """
    enabled: bool = False
    type: MatchingType = MatchingType.NONE
    percentage: float = Field(0, ge=0, le=100)
    fixed_amount: float = Field(0, ge=0)
    max_match_per_employee: float | None = Field(None, ge=0)
    annual_limit: float | None = Field(None, ge=0)
    used_amount: float = Field(0, ge=0)
    preferred_charities: list[UUID] = Field(default_factory=list)


class PayrollIntegration(ValueObject):
    provider: PayrollProvider = PayrollProvider.NONE
    api_key: str | None = None
    webhook_url: str | None = None


class CompanySettings(ValueObject):
    allow_employee_charity_selection: bool = True
    require_approval_for_donations: bool = False
    tax_year: int | None = None
    payroll_integration: PayrollIntegration = Field(default_factory=PayrollIntegration)


# =============================================================================
# User
# =============================================================================

class NotificationPreferences(ValueObject):
    email: bool = True
    sms: bool = False
    donation_confirmations: bool = True
    tax_reminders: bool = True
    matching_updates: bool = True


class PrivacyPreferences(ValueObject):
    show_on_leaderboard: bool = False
    share_donation_history: bool = False


class UserPreferences(ValueObject):
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    charity_categories: list[str] = Field(default_factory=list)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


class Badge(ValueObject):
    name: str
    description: str | None = None
    earned_at: datetime | None = None


class Gamification(ValueObject):
    """Derived counters; only donation side effects write these."""
    total_points: int = 0
    total_donated: float = 0
    level: int = 1
    badges: list[Badge] = Field(default_factory=list)
    streak_days: int = 0
    last_donation_date: date | None = None


# =============================================================================
# Charity
# =============================================================================

class CharityVerification(ValueObject):
    is_verified: bool = False
    verified_by: VerificationSource | None = None
    verified_at: datetime | None = None
    rating: float | None = Field(None, ge=0, le=5)
    financial_score: float | None = Field(None, ge=0, le=100)
    accountability_score: float | None = Field(None, ge=0, le=100)


class ImpactMetric(ValueObject):
    name: str
    value: str
    unit: str | None = None


class CharityImpact(ValueObject):
    description: str | None = None
    metrics: list[ImpactMetric] = Field(default_factory=list)


class CharityImages(ValueObject):
    logo: str | None = None
    banner: str | None = None


class DonationInfo(ValueObject):
    minimum_amount: float | None = Field(None, ge=0)
    maximum_amount: float | None = Field(None, ge=0)
    suggested_amounts: list[float] = Field(default_factory=list)
    accepts_recurring: bool = True


# =============================================================================
# Donation
# =============================================================================

class PayrollInfo(ValueObject):
    deduction_type: DeductionType | None = None
    deduction_value: float | None = Field(None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    next_deduction_date: date | None = None


class ProcessingInfo(ValueObject):
    last_status_update: datetime | None = None
    processed_at: datetime | None = None
    cancelled_at: datetime | None = None
    failure_reason: str | None = None
    # Set once charity / gamification counters have been credited
    counters_applied: bool = False


class TaxInfo(ValueObject):
    tax_deductible: bool = True
    tax_year: int | None = None
    receipt_number: str | None = None


# =============================================================================
# Tax record
# =============================================================================

class TaxLineItem(ValueObject):
    donation_id: UUID
    charity_name: str
    charity_ein: str
    amount: float
    date: datetime
    is_tax_deductible: bool = True


class TaxSummary(ValueObject):
    total_donations: float = 0
    total_tax_deductible: float = 0
    donation_count: int = 0
    unique_charities: int = 0


class DocumentStatus(ValueObject):
    generated: bool = False
    generated_at: datetime | None = None


class TaxDocuments(ValueObject):
    schedule_a: DocumentStatus = Field(default_factory=DocumentStatus)
    receipt: DocumentStatus = Field(default_factory=DocumentStatus)
    summary: DocumentStatus = Field(default_factory=DocumentStatus)

    def get(self, document_type: TaxDocumentType) -> DocumentStatus:
        return getattr(self, _DOCUMENT_FIELDS[document_type])

    @classmethod
    def all_generated(cls, at: datetime) -> "TaxDocuments":
        stamp = DocumentStatus(generated=True, generated_at=at)
        return cls(**{field: stamp for field in _DOCUMENT_FIELDS.values()})


_DOCUMENT_FIELDS = {
    TaxDocumentType.SCHEDULE_A: "schedule_a",
    TaxDocumentType.RECEIPT: "receipt",
    TaxDocumentType.SUMMARY: "summary",
}
