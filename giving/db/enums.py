"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with increasing privilege levels.

    - EMPLOYEE: donates, sees only their own records
    - HR_ADMIN: manages their own company (users, matching, approvals, reports)
    - SUPER_ADMIN: platform operator (companies, charities, system reports)
    """
    EMPLOYEE = "employee"
    HR_ADMIN = "hr_admin"
    SUPER_ADMIN = "super_admin"


# Roles a caller may pick for themselves at registration / HR user creation
SELF_ASSIGNABLE_ROLES = {Role.EMPLOYEE, Role.HR_ADMIN}
ADMIN_ROLES = {Role.HR_ADMIN, Role.SUPER_ADMIN}


class DonationStatus(str, Enum):
    """
    Donation lifecycle.

        pending → approved → processing → completed
    with failed / cancelled as side exits. Terminal: completed, failed, cancelled.
    """
    PENDING = "pending"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def cancellable(cls) -> set["DonationStatus"]:
        return {cls.PENDING, cls.APPROVED}


# Allowed admin status changes. Terminal states have no outgoing edges.
DONATION_TRANSITIONS: dict[DonationStatus, set[DonationStatus]] = {
    DonationStatus.PENDING: {
        DonationStatus.APPROVED,
        DonationStatus.CANCELLED,
        DonationStatus.FAILED,
    },
    DonationStatus.APPROVED: {
        DonationStatus.PROCESSING,
        DonationStatus.CANCELLED,
        DonationStatus.FAILED,
    },
    DonationStatus.PROCESSING: {DonationStatus.COMPLETED, DonationStatus.FAILED},
    DonationStatus.COMPLETED: set(),
    DonationStatus.FAILED: set(),
    DonationStatus.CANCELLED: set(),
}


class DonationType(str, Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class DonationFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class PaymentMethod(str, Enum):
    PAYROLL_DEDUCTION = "payroll_deduction"
    DIRECT_PAYMENT = "direct_payment"


class DeductionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class MatchingType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    NONE = "none"


class CharityCategory(str, Enum):
    ENVIRONMENT = "environment"
    EDUCATION = "education"
    HEALTH = "health"
    ANIMALS = "animals"
    HUMAN_SERVICES = "human_services"
    INTERNATIONAL = "international"
    ARTS_CULTURE = "arts_culture"
    RELIGION = "religion"
    OTHER = "other"

    @property
    def label(self) -> str:
        if self is CharityCategory.ARTS_CULTURE:
            return "Arts & Culture"
        return self.value.replace("_", " ").title()


class VerificationSource(str, Enum):
    CHARITY_NAVIGATOR = "charity_navigator"
    EVERY_ORG = "every_org"
    MANUAL = "manual"


class SubscriptionPlan(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class PayrollProvider(str, Enum):
    ADP = "adp"
    GUSTO = "gusto"
    BAMBOO = "bamboo"
    NONE = "none"


class TaxRecordStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    DOWNLOADED = "downloaded"


class TaxDocumentType(str, Enum):
    """Downloadable tax documents. Values match the URL path segment."""
    SCHEDULE_A = "scheduleA"
    RECEIPT = "receipt"
    SUMMARY = "summary"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
