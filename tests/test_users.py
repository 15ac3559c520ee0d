"""Tests for user management, preferences and the leaderboard."""
import pytest
from httpx import AsyncClient

from giving.db.enums import Role
from giving.db.models import User


# =============================================================================
# Leaderboard
# =============================================================================

@pytest.fixture
def ranked_company(make_company, make_user):
    company = make_company(domain="ranked.com")
    make_user(company, first_name="Ana", last_name="Able", total_donated=300,
              show_on_leaderboard=True, share_donation_history=True)
    make_user(company, first_name="Ben", last_name="Baker", total_donated=500,
              show_on_leaderboard=True, share_donation_history=False)
    make_user(company, first_name="Cat", last_name="Cole", total_donated=900,
              show_on_leaderboard=False, share_donation_history=True)
    make_user(company, first_name="Dan", last_name="Dorm", total_donated=1000,
              show_on_leaderboard=True, share_donation_history=True, is_active=False)
    return company


@pytest.mark.asyncio
async def test_leaderboard_is_public_with_company_id(client: AsyncClient, ranked_company):
    response = await client.get(f"/api/users/leaderboard?company_id={ranked_company.id}")

    assert response.status_code == 200
    entries = response.json()["data"]
    assert [(e["rank"], e["name"], e["total_donated"]) for e in entries] == [
        (1, "Anonymous", 500),
        (2, "Ana Able", 300),
    ]
    assert entries[0]["badges"] == 0


@pytest.mark.asyncio
async def test_leaderboard_respects_limit(client: AsyncClient, ranked_company):
    response = await client.get(f"/api/users/leaderboard?company_id={ranked_company.id}&limit=1")
    assert len(response.json()["data"]) == 1


@pytest.mark.asyncio
async def test_leaderboard_defaults_to_callers_company(
    client: AsyncClient, ranked_company, make_user, auth_headers
):
    member = make_user(ranked_company)

    response = await client.get("/api/users/leaderboard", headers=auth_headers(member))

    assert len(response.json()["data"]) == 2


@pytest.mark.asyncio
async def test_leaderboard_requires_company(client: AsyncClient):
    response = await client.get("/api/users/leaderboard")

    assert response.status_code == 400
    assert response.json()["message"] == "Company ID is required"


# =============================================================================
# Preferences
# =============================================================================

@pytest.mark.asyncio
async def test_preferences_overlay_keeps_unsent_fields(client: AsyncClient, employee, auth_headers):
    headers = auth_headers(employee)
    await client.put(
        f"/api/users/{employee.id}/preferences",
        headers=headers,
        json={"charity_categories": ["health"], "notifications": {"sms": True}},
    )

    response = await client.put(
        f"/api/users/{employee.id}/preferences",
        headers=headers,
        json={"privacy": {"show_on_leaderboard": True}},
    )

    assert response.status_code == 200
    prefs = response.json()["data"]["preferences"]
    assert prefs["privacy"] == {"show_on_leaderboard": True, "share_donation_history": False}
    assert prefs["charity_categories"] == ["health"]
    assert prefs["notifications"]["sms"] is True
    assert prefs["notifications"]["email"] is True


@pytest.mark.asyncio
async def test_cannot_edit_colleague_preferences(
    client: AsyncClient, employee, make_user, company, auth_headers
):
    colleague = make_user(company)

    response = await client.put(
        f"/api/users/{colleague.id}/preferences",
        headers=auth_headers(employee),
        json={"privacy": {"show_on_leaderboard": True}},
    )
    assert response.status_code == 403


# =============================================================================
# Management
# =============================================================================

@pytest.mark.asyncio
async def test_hr_admin_lists_own_tenant_only(
    client: AsyncClient, employee, hr_admin, make_company, make_user, auth_headers
):
    make_user(make_company())

    response = await client.get("/api/users", headers=auth_headers(hr_admin))

    assert response.status_code == 200
    ids = {u["id"] for u in response.json()["data"]}
    assert ids == {str(employee.id), str(hr_admin.id)}


@pytest.mark.asyncio
async def test_employee_cannot_list_users(client: AsyncClient, employee, auth_headers):
    response = await client.get("/api/users", headers=auth_headers(employee))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_hr_admin_creates_employee(client: AsyncClient, company, hr_admin, auth_headers):
    response = await client.post(
        "/api/users",
        headers=auth_headers(hr_admin),
        json={
            "email": "Fresh.Face@acme.com",
            "password": "welcome1",
            "first_name": "Fresh",
            "last_name": "Face",
            "employee_id": "EMP777",
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "fresh.face@acme.com"
    assert data["company_id"] == str(company.id)
    assert data["role"] == Role.EMPLOYEE.value


@pytest.mark.asyncio
async def test_employee_cannot_promote_self(client: AsyncClient, employee, auth_headers):
    response = await client.put(
        f"/api/users/{employee.id}", headers=auth_headers(employee), json={"role": "hr_admin"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["first_name", "last_name", "role", "is_active"])
async def test_null_for_required_field_is_422(
    client: AsyncClient, db, employee, hr_admin, auth_headers, field
):
    response = await client.put(
        f"/api/users/{employee.id}", headers=auth_headers(hr_admin), json={field: None}
    )

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == field
    assert db.get(User, employee.id).first_name == "Erin"



@pytest.mark.asyncio
async def test_hr_admin_deactivates_employee(
    client: AsyncClient, db, employee, hr_admin, auth_headers
):
    employee_headers = auth_headers(employee)

    response = await client.delete(f"/api/users/{employee.id}", headers=auth_headers(hr_admin))

    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False
    assert db.get(User, employee.id).is_active is False
    assert (await client.get("/api/auth/me", headers=employee_headers)).status_code == 401


@pytest.mark.asyncio
async def test_hr_admin_cannot_deactivate_other_tenant(
    client: AsyncClient, hr_admin, make_company, make_user, auth_headers
):
    outsider = make_user(make_company())

    response = await client.delete(f"/api/users/{outsider.id}", headers=auth_headers(hr_admin))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_super_admin_cannot_be_deleted(client: AsyncClient, super_admin, make_user, auth_headers):
    other_root = make_user(None, role=Role.SUPER_ADMIN)

    response = await client.delete(f"/api/users/{other_root.id}", headers=auth_headers(super_admin))

    assert response.status_code == 403
    assert response.json()["message"] == "Super admin accounts cannot be deleted"


@pytest.mark.asyncio
async def test_user_donations_with_totals(
    client: AsyncClient, employee, charity, make_donation, auth_headers
):
    make_donation(employee, charity, "30", matching_amount="15")
    make_donation(employee, charity, "20")

    response = await client.get(f"/api/users/{employee.id}/donations", headers=auth_headers(employee))

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["donations"]) == 2
    assert data["totals"]["total_combined"] == 65
    assert response.json()["pagination"]["total"] == 2
