"""
Dashboard aggregation and report exports.

Every report follows the same shape: fetch the candidate donations for a
tenant/year, then reduce them in memory (sums, distinct donors/charities,
group-by month, charity, company or department).
"""

from __future__ import annotations

import csv
import io
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from giving.db.enums import DonationStatus, Role
from giving.db.models import Charity, Company, Donation, User
from giving.schemas.charity import MonthlyAmount
from giving.schemas.donation import CharityTotal, DonationTotals
from giving.schemas.report import (
    AdminDashboard,
    CompanyDashboard,
    CompanyReport,
    CompanyTotal,
    DepartmentTotal,
    MatchingStatus,
    PlanCount,
    PlatformOverview,
    SystemReport,
)


UNASSIGNED_DEPARTMENT = "Unassigned"
TOP_CHARITIES = 10
TOP_COMPANIES = 10

COMPANY_REPORT_HEADERS = (
    "Date",
    "Employee Name",
    "Employee ID",
    "Department",
    "Charity Name",
    "Charity EIN",
    "Donation Amount",
    "Matching Amount",
    "Total Amount",
)

SYSTEM_REPORT_HEADERS = (
    "Date",
    "Company Name",
    "Company Domain",
    "User Name",
    "User Email",
    "Employee ID",
    "Department",
    "Charity Name",
    "Charity EIN",
    "Charity Category",
    "Donation Amount",
    "Matching Amount",
    "Total Amount",
)


# =============================================================================
# CSV helpers
# =============================================================================

CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")


def _csv_safe(value: str) -> str:
    if value and value.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{value}"
    return value


def _serialize_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def _write_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """csv.writer quotes any field holding a comma, quote or newline."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_csv_safe(_serialize_csv_value(value)) for value in row])
    return output.getvalue()


# =============================================================================
# In-memory reductions
# =============================================================================

def year_bounds(year: int) -> tuple[datetime, datetime]:
    """[Jan 1 00:00, next Jan 1 00:00) in UTC."""
    return (
        datetime(year, 1, 1, tzinfo=timezone.utc),
        datetime(year + 1, 1, 1, tzinfo=timezone.utc),
    )


def current_year() -> int:
    return datetime.now(timezone.utc).year


def summarize(donations: Sequence[Donation]) -> DonationTotals:
    total_amount = sum((d.amount for d in donations), Decimal("0"))
    total_matching = sum((d.matching_amount for d in donations), Decimal("0"))
    total_combined = sum((d.total_amount for d in donations), Decimal("0"))
    return DonationTotals(
        total_amount=float(total_amount),
        total_matching=float(total_matching),
        total_combined=float(total_combined),
        donation_count=len(donations),
        unique_charities=len({d.charity_id for d in donations}),
        unique_donors=len({d.user_id for d in donations}),
    )


def monthly_breakdown(donations: Sequence[Donation]) -> list[MonthlyAmount]:
    months: dict[str, list] = defaultdict(lambda: [Decimal("0"), 0])
    for donation in donations:
        key = donation.created_at.strftime("%Y-%m")
        months[key][0] += donation.total_amount
        months[key][1] += 1
    return [
        MonthlyAmount(month=month, amount=float(amount), count=count)
        for month, (amount, count) in sorted(months.items())
    ]


def _group(
    donations: Sequence[Donation],
    key: Callable[[Donation], Any],
) -> dict[Any, dict[str, Any]]:
    groups: dict[Any, dict[str, Any]] = {}
    for donation in donations:
        group = groups.setdefault(
            key(donation),
            {
                "sample": donation,
                "amount": Decimal("0"),
                "matching": Decimal("0"),
                "total": Decimal("0"),
                "count": 0,
                "donors": set(),
            },
        )
        group["amount"] += donation.amount
        group["matching"] += donation.matching_amount
        group["total"] += donation.total_amount
        group["count"] += 1
        group["donors"].add(donation.user_id)
    return groups


def top_charities(donations: Sequence[Donation], limit: int = TOP_CHARITIES) -> list[CharityTotal]:
    groups = _group(donations, lambda d: d.charity_id)
    ranked = sorted(groups.items(), key=lambda item: item[1]["total"], reverse=True)[:limit]
    return [
        CharityTotal(
            charity_id=charity_id,
            name=group["sample"].charity.name,
            total_amount=float(group["total"]),
            donation_count=group["count"],
            unique_donors=len(group["donors"]),
        )
        for charity_id, group in ranked
    ]


def top_companies(donations: Sequence[Donation], limit: int | None = TOP_COMPANIES) -> list[CompanyTotal]:
    groups = _group(donations, lambda d: d.company_id)
    ranked = sorted(groups.items(), key=lambda item: item[1]["total"], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        CompanyTotal(
            company_id=company_id,
            name=group["sample"].company.name,
            total_amount=float(group["total"]),
            donation_count=group["count"],
            unique_donors=len(group["donors"]),
        )
        for company_id, group in ranked
    ]


def department_breakdown(donations: Sequence[Donation]) -> list[DepartmentTotal]:
    groups = _group(donations, lambda d: d.user.department or UNASSIGNED_DEPARTMENT)
    return [
        DepartmentTotal(
            department=department,
            total_amount=float(group["amount"]),
            total_matching=float(group["matching"]),
            donation_count=group["count"],
            unique_donors=len(group["donors"]),
        )
        for department, group in sorted(groups.items(), key=lambda item: item[1]["total"], reverse=True)
    ]


def matching_status(company: Company) -> MatchingStatus:
    program = company.matching_program
    limit = program.annual_limit or None
    remaining = max(limit - program.used_amount, 0) if limit else None
    utilization = round(program.used_amount / limit * 100, 2) if limit else 0
    return MatchingStatus(
        enabled=program.enabled,
        used_amount=program.used_amount,
        annual_limit=limit,
        remaining=remaining,
        utilization=utilization,
    )


# =============================================================================
# Queries
# =============================================================================

def completed_donations(
    db: Session,
    year: int,
    *,
    company_id: UUID | None = None,
    user_id: UUID | None = None,
    charity_id: UUID | None = None,
) -> list[Donation]:
    """COMPLETED donations created within the calendar year, oldest first."""
    start, end = year_bounds(year)
    query = (
        select(Donation)
        .options(
            joinedload(Donation.charity),
            joinedload(Donation.user),
            joinedload(Donation.company),
        )
        .where(
            Donation.status == DonationStatus.COMPLETED,
            Donation.created_at >= start,
            Donation.created_at < end,
        )
        .order_by(Donation.created_at)
    )
    if company_id:
        query = query.where(Donation.company_id == company_id)
    if user_id:
        query = query.where(Donation.user_id == user_id)
    if charity_id:
        query = query.where(Donation.charity_id == charity_id)
    return list(db.execute(query).unique().scalars().all())


def count_active_employees(db: Session, company_id: UUID) -> int:
    return db.execute(
        select(func.count(User.id)).where(
            User.company_id == company_id,
            User.role == Role.EMPLOYEE,
            User.is_active.is_(True),
        )
    ).scalar_one()


# =============================================================================
# Company reports
# =============================================================================

def company_dashboard(db: Session, company: Company, year: int) -> CompanyDashboard:
    donations = completed_donations(db, year, company_id=company.id)
    totals = summarize(donations)
    active_employees = count_active_employees(db, company.id)
    participation = (
        round(totals.unique_donors / active_employees * 100, 2) if active_employees else 0
    )
    return CompanyDashboard(
        company_id=company.id,
        year=year,
        totals=totals,
        active_employees=active_employees,
        participation_rate=participation,
        top_charities=top_charities(donations),
        monthly=monthly_breakdown(donations),
        matching_status=matching_status(company),
    )


def company_report(db: Session, company: Company, year: int) -> CompanyReport:
    donations = completed_donations(db, year, company_id=company.id)
    return CompanyReport(
        company_id=company.id,
        year=year,
        totals=summarize(donations),
        departments=department_breakdown(donations),
        top_charities=top_charities(donations),
    )


def company_report_csv(db: Session, company: Company, year: int) -> str:
    donations = completed_donations(db, year, company_id=company.id)
    rows = (
        (
            d.created_at,
            d.user.full_name,
            d.user.employee_id,
            d.user.department or UNASSIGNED_DEPARTMENT,
            d.charity.name,
            d.charity.ein,
            d.amount,
            d.matching_amount,
            d.total_amount,
        )
        for d in donations
    )
    return _write_csv(COMPANY_REPORT_HEADERS, rows)


# =============================================================================
# Platform reports (super-admin)
# =============================================================================

def platform_overview(db: Session) -> PlatformOverview:
    def count(model, *criteria) -> int:
        return db.execute(select(func.count(model.id)).where(*criteria)).scalar_one()

    return PlatformOverview(
        companies=count(Company),
        active_companies=count(Company, Company.is_active.is_(True)),
        users=count(User),
        active_users=count(User, User.is_active.is_(True)),
        charities=count(Charity),
        verified_charities=sum(
            1 for charity in db.execute(select(Charity)).scalars() if charity.verification.is_verified
        ),
    )


def subscription_counts(db: Session) -> list[PlanCount]:
    counts: dict[str, int] = defaultdict(int)
    for company in db.execute(select(Company)).scalars():
        plan = company.subscription.plan.value if company.subscription.plan else "unknown"
        counts[plan] += 1
    return [PlanCount(plan=plan, count=count) for plan, count in sorted(counts.items())]


def admin_dashboard(db: Session, year: int) -> AdminDashboard:
    donations = completed_donations(db, year)
    return AdminDashboard(
        year=year,
        overview=platform_overview(db),
        totals=summarize(donations),
        monthly=monthly_breakdown(donations),
        top_companies=top_companies(donations),
        top_charities=top_charities(donations),
        subscriptions=subscription_counts(db),
    )


def system_report(db: Session, year: int) -> SystemReport:
    donations = completed_donations(db, year)
    return SystemReport(
        year=year,
        totals=summarize(donations),
        companies=top_companies(donations, limit=None),
        charities=top_charities(donations, limit=len(donations) or 1),
    )


def system_report_csv(db: Session, year: int) -> str:
    donations = completed_donations(db, year)
    rows = (
        (
            d.created_at,
            d.company.name,
            d.company.domain,
            d.user.full_name,
            d.user.email,
            d.user.employee_id,
            d.user.department or UNASSIGNED_DEPARTMENT,
            d.charity.name,
            d.charity.ein,
            d.charity.category.value,
            d.amount,
            d.matching_amount,
            d.total_amount,
        )
        for d in donations
    )
    return _write_csv(SYSTEM_REPORT_HEADERS, rows)
