"""Tests for tenant management and matching program configuration."""
import pytest
from httpx import AsyncClient

from giving.db.enums import MatchingType, Role
from giving.db.models import Company
from giving.schemas.values import MatchingProgram


@pytest.mark.asyncio
async def test_super_admin_creates_company(client: AsyncClient, super_admin, auth_headers):
    response = await client.post(
        "/api/companies",
        headers=auth_headers(super_admin),
        json={
            "name": "Initech",
            "domain": " Initech.COM ",
            "matching_program": {"enabled": True, "type": "percentage", "percentage": 25},
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["domain"] == "initech.com"
    assert data["matching_program"]["percentage"] == 25
    assert data["matching_program"]["used_amount"] == 0
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_duplicate_domain_conflicts(client: AsyncClient, company, super_admin, auth_headers):
    response = await client.post(
        "/api/companies",
        headers=auth_headers(super_admin),
        json={"name": "Acme Again", "domain": "ACME.com"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Company already exists with this domain"


@pytest.mark.asyncio
async def test_hr_admin_cannot_create_or_list(client: AsyncClient, hr_admin, auth_headers):
    headers = auth_headers(hr_admin)
    assert (await client.get("/api/companies", headers=headers)).status_code == 403
    created = await client.post("/api/companies", headers=headers, json={"name": "X", "domain": "x.com"})
    assert created.status_code == 403


@pytest.mark.asyncio
async def test_member_reads_own_company_only(
    client: AsyncClient, company, employee, make_company, auth_headers
):
    other = make_company()
    headers = auth_headers(employee)

    assert (await client.get(f"/api/companies/{company.id}", headers=headers)).status_code == 200
    assert (await client.get(f"/api/companies/{other.id}", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_hr_admin_updates_settings_with_overlay(client: AsyncClient, company, hr_admin, auth_headers):
    response = await client.put(
        f"/api/companies/{company.id}",
        headers=auth_headers(hr_admin),
        json={"industry": "Manufacturing", "settings": {"require_approval_for_donations": True}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["industry"] == "Manufacturing"
    assert data["settings"]["require_approval_for_donations"] is True


@pytest.mark.asyncio
async def test_hr_admin_cannot_change_subscription_via_update(
    client: AsyncClient, company, hr_admin, auth_headers
):
    response = await client.put(
        f"/api/companies/{company.id}",
        headers=auth_headers(hr_admin),
        json={"subscription": {"plan": "enterprise"}},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_matching_update_keeps_usage(client: AsyncClient, make_company, make_user, auth_headers):
    company = make_company(
        matching=MatchingProgram(
            enabled=True, type=MatchingType.PERCENTAGE, percentage=50, annual_limit=1000, used_amount=200
        )
    )
    admin = make_user(company, role=Role.HR_ADMIN)

    response = await client.put(
        f"/api/companies/{company.id}/matching",
        headers=auth_headers(admin),
        json={"percentage": 100},
    )

    assert response.status_code == 200
    program = response.json()["data"]["matching_program"]
    assert program["percentage"] == 100
    assert program["annual_limit"] == 1000
    assert program["used_amount"] == 200


@pytest.mark.asyncio
async def test_matching_update_cannot_reset_used_amount(
    client: AsyncClient, db, make_company, make_user, charity, auth_headers
):
    company = make_company(
        matching=MatchingProgram(
            enabled=True, type=MatchingType.FIXED, fixed_amount=25, annual_limit=25, used_amount=25
        )
    )
    admin = make_user(company, role=Role.HR_ADMIN)
    donor = make_user(company)

    response = await client.put(
        f"/api/companies/{company.id}/matching",
        headers=auth_headers(admin),
        json={"used_amount": 0},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "used_amount"

    donation = await client.post(
        "/api/donations",
        headers=auth_headers(donor),
        json={"charity_id": str(charity.id), "amount": "60"},
    )
    assert donation.json()["data"]["matching_amount"] == 0
    assert db.get(Company, company.id).matching_program.used_amount == 25


@pytest.mark.asyncio
async def test_company_update_cannot_write_used_amount(
    client: AsyncClient, company, super_admin, auth_headers
):
    response = await client.put(
        f"/api/companies/{company.id}",
        headers=auth_headers(super_admin),
        json={"matching_program": {"annual_limit": 500, "used_amount": 0}},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_matching_update_other_tenant_forbidden(
    client: AsyncClient, hr_admin, make_company, auth_headers
):
    other = make_company()

    response = await client.put(
        f"/api/companies/{other.id}/matching", headers=auth_headers(hr_admin), json={"percentage": 100}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_matching_percentage_out_of_range_is_422(client: AsyncClient, company, hr_admin, auth_headers):
    response = await client.put(
        f"/api/companies/{company.id}/matching", headers=auth_headers(hr_admin), json={"percentage": 150}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_employees_listing(client: AsyncClient, company, employee, hr_admin, make_user, auth_headers):
    make_user(company, department="Sales", is_active=False)

    response = await client.get(
        f"/api/companies/{company.id}/employees?department=Engineering", headers=auth_headers(hr_admin)
    )

    assert [u["id"] for u in response.json()["data"]] == [str(employee.id)]


@pytest.mark.asyncio
async def test_admin_company_list_includes_stats(
    client: AsyncClient, company, employee, super_admin, charity, make_donation, auth_headers
):
    make_donation(employee, charity, "30", matching_amount="15")

    response = await client.get("/api/admin/companies", headers=auth_headers(super_admin))

    [row] = response.json()["data"]
    assert row["employee_count"] == 1
    assert row["donation_count"] == 1
    assert row["total_donated"] == 45


@pytest.mark.asyncio
async def test_admin_updates_subscription(client: AsyncClient, company, super_admin, auth_headers):
    response = await client.put(
        f"/api/admin/companies/{company.id}/subscription",
        headers=auth_headers(super_admin),
        json={"plan": "enterprise", "max_employees": 2000},
    )

    data = response.json()["data"]["subscription"]
    assert data["plan"] == "enterprise"
    assert data["max_employees"] == 2000
