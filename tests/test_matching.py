"""Tests for employer matching: per-donation math, caps and budget reservation."""
from decimal import Decimal

import pytest

from giving.db.enums import DonationStatus, MatchingType, Role
from giving.db.models import Charity, Company
from giving.schemas.donation import DonationCreate
from giving.schemas.values import MatchingProgram
from giving.services import donation_service


def _program(**kwargs) -> MatchingProgram:
    return MatchingProgram(enabled=True, **kwargs)


# =============================================================================
# Pure matching math
# =============================================================================

def test_percentage_match():
    program = _program(type=MatchingType.PERCENTAGE, percentage=50)
    assert donation_service.compute_match(program, Decimal("100.00")) == Decimal("50.00")


def test_percentage_match_rounds_half_up_to_cents():
    program = _program(type=MatchingType.PERCENTAGE, percentage=50)
    assert donation_service.compute_match(program, Decimal("0.01")) == Decimal("0.01")


def test_fixed_match_ignores_amount():
    program = _program(type=MatchingType.FIXED, fixed_amount=25)
    assert donation_service.compute_match(program, Decimal("5.00")) == Decimal("25.00")
    assert donation_service.compute_match(program, Decimal("500.00")) == Decimal("25.00")


def test_disabled_program_matches_nothing():
    program = MatchingProgram(enabled=False, type=MatchingType.PERCENTAGE, percentage=100)
    assert donation_service.compute_match(program, Decimal("100")) == Decimal("0")


@pytest.mark.parametrize(
    "amount, cap, expected",
    [
        ("100", 30, "30.00"),
        ("40", 30, "20.00"),
        ("60", 30, "30.00"),
        ("100", 0, "50.00"),
        ("100", None, "50.00"),
    ],
)
def test_per_employee_cap(amount, cap, expected):
    program = _program(type=MatchingType.PERCENTAGE, percentage=50, max_match_per_employee=cap)
    assert donation_service.compute_match(program, Decimal(amount)) == Decimal(expected)


@pytest.mark.parametrize("amount", ["0.01", "1", "19.99", "250", "9999.99"])
@pytest.mark.parametrize("percentage", [0, 25, 50, 100])
def test_match_never_exceeds_percentage_or_cap(amount, percentage):
    program = _program(type=MatchingType.PERCENTAGE, percentage=percentage, max_match_per_employee=75)
    match = donation_service.compute_match(program, Decimal(amount))

    assert Decimal("0") <= match <= Decimal("75")
    assert match <= (Decimal(amount) * percentage / 100).quantize(Decimal("0.01")) + Decimal("0.01")


def test_remaining_budget_without_annual_limit_is_unbounded():
    assert donation_service.remaining_budget(_program(annual_limit=None, used_amount=10)) is None
    assert donation_service.remaining_budget(_program(annual_limit=0, used_amount=10)) is None


def test_annual_cap_trims_to_remaining_budget():
    program = _program(type=MatchingType.PERCENTAGE, percentage=50, annual_limit=100, used_amount=90)
    assert donation_service.apply_annual_cap(program, Decimal("50.00")) == Decimal("10.00")


def test_exhausted_budget_matches_zero():
    program = _program(type=MatchingType.FIXED, fixed_amount=25, annual_limit=100, used_amount=100)
    assert donation_service.apply_annual_cap(program, Decimal("25.00")) == Decimal("0.00")


# =============================================================================
# Reservation against the company budget
# =============================================================================

@pytest.fixture
def capped_company(make_company):
    return make_company(
        matching=_program(type=MatchingType.PERCENTAGE, percentage=50, annual_limit=100, used_amount=90)
    )


def test_create_reserves_budget_and_trims_match(db, capped_company, make_user, charity, ctx_for):
    donor = make_user(capped_company)

    donation = donation_service.create_donation(
        db, ctx_for(donor), DonationCreate(charity_id=charity.id, amount=Decimal("100"))
    )

    assert donation.matching_amount == Decimal("10.00")
    assert donation.total_amount == Decimal("110.00")
    db.refresh(capped_company)
    assert capped_company.matching_program.used_amount == 100


def test_second_donation_after_budget_exhausted_gets_no_match(db, capped_company, make_user, charity, ctx_for):
    donor = make_user(capped_company)
    ctx = ctx_for(donor)

    donation_service.create_donation(db, ctx, DonationCreate(charity_id=charity.id, amount=Decimal("100")))
    second = donation_service.create_donation(db, ctx, DonationCreate(charity_id=charity.id, amount=Decimal("40")))

    assert second.matching_amount == Decimal("0.00")
    assert second.total_amount == Decimal("40.00")


@pytest.mark.parametrize("terminal", [DonationStatus.CANCELLED, DonationStatus.FAILED])
def test_cancel_or_fail_releases_reservation(db, capped_company, make_user, charity, ctx_for, terminal):
    donor = make_user(capped_company)
    admin = make_user(capped_company, role=Role.HR_ADMIN)
    donation = donation_service.create_donation(
        db, ctx_for(donor), DonationCreate(charity_id=charity.id, amount=Decimal("100"))
    )

    donation_service.update_status(db, ctx_for(admin), donation.id, terminal)

    db.refresh(capped_company)
    assert capped_company.matching_program.used_amount == 90


def test_reconcile_matching_recomputes_in_order(db, make_company, make_user, charity, make_donation):
    company = make_company(
        matching=_program(type=MatchingType.FIXED, fixed_amount=25, annual_limit=40, used_amount=999)
    )
    donor = make_user(company)
    first = make_donation(donor, charity, "60")
    second = make_donation(donor, charity, "60")
    cancelled = make_donation(donor, charity, "60", status=DonationStatus.CANCELLED)

    used = donation_service.reconcile_matching(db, company)
    db.commit()

    assert used == Decimal("40.00")
    db.refresh(first)
    db.refresh(second)
    db.refresh(cancelled)
    assert first.matching_amount == Decimal("25.00")
    assert second.matching_amount == Decimal("15.00")
    assert second.total_amount == Decimal("75.00")
    assert cancelled.matching_amount == Decimal("0.00")
    company = db.get(Company, company.id)
    assert company.matching_program.used_amount == 40


def test_reconcile_moves_charity_totals_for_credited_donations(
    db, make_company, make_user, make_charity, make_donation
):
    company = make_company(matching=_program(type=MatchingType.FIXED, fixed_amount=25))
    charity = make_charity(name="River Trust")
    donation = make_donation(make_user(company), charity, "60", matching_amount="25")
    donation_service.apply_counters(db, donation)
    db.commit()
    assert db.get(Charity, charity.id).total_donations == Decimal("85.00")

    company.matching_program = _program(type=MatchingType.FIXED, fixed_amount=25, annual_limit=10)
    donation_service.reconcile_matching(db, company)
    db.commit()

    db.refresh(donation)
    assert donation.total_amount == Decimal("70.00")
    assert db.get(Charity, charity.id).total_donations == Decimal("70.00")
