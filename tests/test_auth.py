"""Tests for registration, login, token revocation and profile endpoints."""
import pytest
from httpx import AsyncClient

from giving.db.enums import Role


def _register_payload(**overrides) -> dict:
    payload = {
        "email": "new.hire@acme.com",
        "password": "secret123",
        "first_name": "New",
        "last_name": "Hire",
        "company_domain": "acme.com",
        "employee_id": "EMP100",
        "department": "Sales",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_register_creates_employee_and_returns_token(client: AsyncClient, company):
    response = await client.post("/api/auth/register", json=_register_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["user"]["role"] == Role.EMPLOYEE.value
    assert body["data"]["user"]["company_id"] == str(company.id)
    assert body["data"]["company"]["domain"] == "acme.com"
    assert "password_hash" not in body["data"]["user"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client: AsyncClient, company, employee):
    response = await client.post("/api/auth/register", json=_register_payload(email=employee.email.upper()))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "User already exists with this email"


@pytest.mark.asyncio
async def test_register_unknown_domain_rejected(client: AsyncClient, company):
    response = await client.post("/api/auth/register", json=_register_payload(company_domain="nowhere.org"))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid company domain"


@pytest.mark.asyncio
async def test_register_cannot_self_assign_super_admin(client: AsyncClient, company):
    response = await client.post(
        "/api/auth/register", json=_register_payload(role=Role.SUPER_ADMIN.value)
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "role"


@pytest.mark.asyncio
async def test_register_duplicate_employee_id_in_company(client: AsyncClient, company, make_user):
    make_user(company, employee_id="EMP100")

    response = await client.post("/api/auth/register", json=_register_payload())

    assert response.status_code == 400
    assert response.json()["message"] == "Employee ID already exists in this company"


@pytest.mark.asyncio
async def test_register_schema_failure_is_422(client: AsyncClient, company):
    response = await client.post("/api/auth/register", json=_register_payload(password="123"))

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert any(err["field"] == "password" for err in body["errors"])


@pytest.mark.asyncio
async def test_login_with_email(client: AsyncClient, employee):
    response = await client.post(
        "/api/auth/login", json={"email": employee.email, "password": "password123"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token"]
    assert data["user"]["id"] == str(employee.id)
    assert data["user"]["last_login_at"] is not None


@pytest.mark.asyncio
async def test_login_accepts_username_alias(client: AsyncClient, employee):
    response = await client.post(
        "/api/auth/login", json={"username": employee.email, "password": "password123"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_user_look_the_same(client: AsyncClient, employee):
    wrong = await client.post("/api/auth/login", json={"email": employee.email, "password": "nope"})
    unknown = await client.post("/api/auth/login", json={"email": "ghost@acme.com", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_inactive_user_rejected(client: AsyncClient, db, employee):
    employee.is_active = False
    db.commit()

    response = await client.post(
        "/api/auth/login", json={"email": employee.email, "password": "password123"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Access token required"}


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_user_and_company(client: AsyncClient, employee, company, auth_headers):
    response = await client.get("/api/auth/me", headers=auth_headers(employee))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["email"] == employee.email
    assert data["company"]["id"] == str(company.id)


@pytest.mark.asyncio
async def test_super_admin_me_has_no_company(client: AsyncClient, super_admin, auth_headers):
    response = await client.get("/api/auth/me", headers=auth_headers(super_admin))

    assert response.status_code == 200
    assert response.json()["data"]["company"] is None


@pytest.mark.asyncio
async def test_logout_revokes_outstanding_tokens(client: AsyncClient, employee, auth_headers):
    headers = auth_headers(employee)

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Session revoked"


@pytest.mark.asyncio
async def test_inactive_company_blocks_requests(client: AsyncClient, db, employee, company, auth_headers):
    headers = auth_headers(employee)
    company.is_active = False
    db.commit()

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, employee, auth_headers):
    response = await client.put(
        "/api/auth/profile",
        headers=auth_headers(employee),
        json={"phone": "555-0100", "position": "Lead"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["phone"] == "555-0100"
    assert data["position"] == "Lead"
    assert data["first_name"] == "Erin"


@pytest.mark.asyncio
async def test_update_profile_rejects_null_name(client: AsyncClient, employee, auth_headers):
    response = await client.put(
        "/api/auth/profile",
        headers=auth_headers(employee),
        json={"last_name": None},
    )

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "last_name"



@pytest.mark.asyncio
async def test_change_password_rotates_token(client: AsyncClient, employee, auth_headers):
    old_headers = auth_headers(employee)

    response = await client.put(
        "/api/auth/password",
        headers=old_headers,
        json={"current_password": "password123", "new_password": "betterpass"},
    )
    assert response.status_code == 200
    new_token = response.json()["data"]["token"]

    assert (await client.get("/api/auth/me", headers=old_headers)).status_code == 401
    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
    assert me.status_code == 200

    login = await client.post(
        "/api/auth/login", json={"email": employee.email, "password": "betterpass"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_change_password_requires_current(client: AsyncClient, employee, auth_headers):
    response = await client.put(
        "/api/auth/password",
        headers=auth_headers(employee),
        json={"current_password": "wrong", "new_password": "betterpass"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"
