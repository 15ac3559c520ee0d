"""Dashboard and report schemas (company and platform level)."""

from uuid import UUID

from pydantic import BaseModel

from giving.db.enums import SubscriptionPlan
from giving.schemas.charity import MonthlyAmount
from giving.schemas.donation import CharityTotal, DonationTotals


class MatchingStatus(BaseModel):
    enabled: bool
    used_amount: float
    annual_limit: float | None
    remaining: float | None
    utilization: float


class CompanyDashboard(BaseModel):
    company_id: UUID
    year: int
    totals: DonationTotals
    active_employees: int
    participation_rate: float
    top_charities: list[CharityTotal]
    monthly: list[MonthlyAmount]
    matching_status: MatchingStatus


class DepartmentTotal(BaseModel):
    department: str
    total_amount: float
    total_matching: float
    donation_count: int
    unique_donors: int


class CompanyReport(BaseModel):
    company_id: UUID
    year: int
    totals: DonationTotals
    departments: list[DepartmentTotal]
    top_charities: list[CharityTotal]


class CompanyTotal(BaseModel):
    company_id: UUID
    name: str
    total_amount: float
    donation_count: int
    unique_donors: int


class PlatformOverview(BaseModel):
    companies: int
    active_companies: int
    users: int
    active_users: int
    charities: int
    verified_charities: int


class PlanCount(BaseModel):
    plan: SubscriptionPlan | str
    count: int


class AdminDashboard(BaseModel):
    year: int
    overview: PlatformOverview
    totals: DonationTotals
    monthly: list[MonthlyAmount]
    top_companies: list[CompanyTotal]
    top_charities: list[CharityTotal]
    subscriptions: list[PlanCount]


class SystemReport(BaseModel):
    year: int
    totals: DonationTotals
    companies: list[CompanyTotal]
    charities: list[CharityTotal]
