"""SQLAlchemy ORM models for tenants, users, charities, donations and tax records."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Enum as SAEnum, ForeignKey, Index, Integer, JSON,
    Numeric, String, Text, UniqueConstraint, text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giving.db.base import Base
from giving.db.enums import (
    CharityCategory, DonationFrequency, DonationStatus, DonationType,
    PaymentMethod, Role, TaxRecordStatus
)
from giving.db.types import ValueObjectJSON, ValueObjectListJSON
from giving.schemas.values import (
    Address, CharityImages, CharityImpact, CharityVerification, CompanySettings,
    ContactInfo, DonationInfo, Gamification, MatchingProgram, PayrollInfo,
    ProcessingInfo, Subscription, TaxDocuments, TaxInfo, TaxLineItem,
    TaxSummary, UserPreferences
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _enum_column(enum_cls, length: int = 30):
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=_enum_values,
        validate_strings=True,
    )


# =============================================================================
# Tenant
# =============================================================================

class Company(Base):
    """
    A tenant in the multi-tenant system.

    Users, donations and tax records are scoped by company_id.
    The domain is the key employees register and log in against.
    """
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    ein: Mapped[str | None] = mapped_column(String(20), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address: Mapped[Address] = mapped_column(ValueObjectJSON(Address), default=Address, nullable=False)
    contact_info: Mapped[ContactInfo] = mapped_column(
        ValueObjectJSON(ContactInfo), default=ContactInfo, nullable=False
    )
    subscription: Mapped[Subscription] = mapped_column(
        ValueObjectJSON(Subscription), default=Subscription, nullable=False
    )
    matching_program: Mapped[MatchingProgram] = mapped_column(
        ValueObjectJSON(MatchingProgram), default=MatchingProgram, nullable=False
    )
    settings: Mapped[CompanySettings] = mapped_column(
        ValueObjectJSON(CompanySettings), default=CompanySettings, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    users: Mapped[list["User"]] = relationship(back_populates="company")
    donations: Mapped[list["Donation"]] = relationship(back_populates="company")


class User(Base):
    """
    Platform user.

    Super-admins have no company. Everyone else belongs to exactly one tenant,
    and employee_id is unique within that tenant when present.
    Users are never hard-deleted; is_active=False is the soft delete.
    """
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("company_id", "employee_id", name="uq_users_company_employee_id"),
        Index("idx_users_company_active", "company_id", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[Role] = mapped_column(
        _enum_column(Role), default=Role.EMPLOYEE, nullable=False
    )
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    employee_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    # Bumped on logout / password change to invalidate outstanding tokens
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    preferences: Mapped[UserPreferences] = mapped_column(
        ValueObjectJSON(UserPreferences), default=UserPreferences, nullable=False
    )
    gamification: Mapped[Gamification] = mapped_column(
        ValueObjectJSON(Gamification), default=Gamification, nullable=False
    )
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    company: Mapped["Company | None"] = relationship(back_populates="users")
    donations: Mapped[list["Donation"]] = relationship(back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# =============================================================================
# Charity catalog
# =============================================================================

class Charity(Base):
    """A donation recipient shared across tenants."""
    __tablename__ = "charities"
    __table_args__ = (
        Index("idx_charities_category_active", "category", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    ein: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    mission: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[CharityCategory] = mapped_column(
        _enum_column(CharityCategory), nullable=False
    )
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    address: Mapped[Address] = mapped_column(ValueObjectJSON(Address), default=Address, nullable=False)
    contact_info: Mapped[ContactInfo] = mapped_column(
        ValueObjectJSON(ContactInfo), default=ContactInfo, nullable=False
    )
    verification: Mapped[CharityVerification] = mapped_column(
        ValueObjectJSON(CharityVerification), default=CharityVerification, nullable=False
    )
    impact: Mapped[CharityImpact] = mapped_column(
        ValueObjectJSON(CharityImpact), default=CharityImpact, nullable=False
    )
    donation_info: Mapped[DonationInfo] = mapped_column(
        ValueObjectJSON(DonationInfo), default=DonationInfo, nullable=False
    )
    images: Mapped[CharityImages] = mapped_column(
        ValueObjectJSON(CharityImages), default=CharityImages, nullable=False
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    # Running totals, incremented by donation side effects
    total_donations: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), default=Decimal("0"), server_default=text("0"), nullable=False
    )
    total_donors: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    donations: Mapped[list["Donation"]] = relationship(back_populates="charity")


# =============================================================================
# Donation ledger
# =============================================================================

class Donation(Base):
    """
    One employee contribution to one charity.

    amount, matching_amount and total_amount are fixed at creation;
    only status and processing metadata change afterwards.
    """
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        CheckConstraint("matching_amount >= 0", name="matching_non_negative"),
        Index("idx_donations_user_created", "user_id", "created_at"),
        Index("idx_donations_company_created", "company_id", "created_at"),
        Index("idx_donations_charity_status", "charity_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False
    )
    charity_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("charities.id", ondelete="RESTRICT"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    matching_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    donation_type: Mapped[DonationType] = mapped_column(
        _enum_column(DonationType), default=DonationType.ONE_TIME, nullable=False
    )
    frequency: Mapped[DonationFrequency | None] = mapped_column(
        _enum_column(DonationFrequency), nullable=True
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        _enum_column(PaymentMethod), default=PaymentMethod.DIRECT_PAYMENT, nullable=False
    )
    payroll_info: Mapped[PayrollInfo] = mapped_column(
        ValueObjectJSON(PayrollInfo), default=PayrollInfo, nullable=False
    )
    status: Mapped[DonationStatus] = mapped_column(
        _enum_column(DonationStatus), default=DonationStatus.PENDING, nullable=False, index=True
    )
    processing_info: Mapped[ProcessingInfo] = mapped_column(
        ValueObjectJSON(ProcessingInfo), default=ProcessingInfo, nullable=False
    )
    tax_info: Mapped[TaxInfo] = mapped_column(ValueObjectJSON(TaxInfo), default=TaxInfo, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    user: Mapped["User"] = relationship(back_populates="donations")
    company: Mapped["Company"] = relationship(back_populates="donations")
    charity: Mapped["Charity"] = relationship(back_populates="donations")


# =============================================================================
# Tax records
# =============================================================================

class TaxRecord(Base):
    """
    Yearly rollup of a user's completed donations.

    One row per (user, tax_year); regeneration replaces it in place.
    """
    __tablename__ = "tax_records"
    __table_args__ = (
        UniqueConstraint("user_id", "tax_year", name="uq_tax_records_user_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    donations: Mapped[list[TaxLineItem]] = mapped_column(
        ValueObjectListJSON(TaxLineItem), default=list, nullable=False
    )
    summary: Mapped[TaxSummary] = mapped_column(
        ValueObjectJSON(TaxSummary), default=TaxSummary, nullable=False
    )
    documents: Mapped[TaxDocuments] = mapped_column(
        ValueObjectJSON(TaxDocuments), default=TaxDocuments, nullable=False
    )
    status: Mapped[TaxRecordStatus] = mapped_column(
        _enum_column(TaxRecordStatus), default=TaxRecordStatus.DRAFT, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    user: Mapped["User"] = relationship()
