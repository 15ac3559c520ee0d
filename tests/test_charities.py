"""Tests for the charity catalog."""
import pytest
from httpx import AsyncClient

from giving.db.enums import CharityCategory, DonationStatus
from giving.schemas.values import CharityVerification


@pytest.fixture
def catalog(make_charity):
    return [
        make_charity(name="Animal Rescue League", category=CharityCategory.ANIMALS, is_featured=True),
        make_charity(name="Books for Kids", category=CharityCategory.EDUCATION),
        make_charity(name="Clean Rivers", category=CharityCategory.ENVIRONMENT, is_featured=True,
                     verification=CharityVerification(is_verified=False)),
        make_charity(name="Dormant Fund", category=CharityCategory.EDUCATION, is_active=False),
    ]


@pytest.mark.asyncio
async def test_public_list_hides_inactive(client: AsyncClient, catalog):
    response = await client.get("/api/charities")

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Animal Rescue League", "Books for Kids", "Clean Rivers"]
    assert body["pagination"] == {"current": 1, "pages": 1, "total": 3}


@pytest.mark.asyncio
async def test_list_pagination(client: AsyncClient, catalog):
    response = await client.get("/api/charities?page=2&limit=2")

    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Clean Rivers"]
    assert body["pagination"] == {"current": 2, "pages": 2, "total": 3}


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, catalog):
    by_category = await client.get("/api/charities?category=education")
    verified = await client.get("/api/charities?verified=false")
    searched = await client.get("/api/charities?search=river")

    assert [c["name"] for c in by_category.json()["data"]] == ["Books for Kids"]
    assert [c["name"] for c in verified.json()["data"]] == ["Clean Rivers"]
    assert [c["name"] for c in searched.json()["data"]] == ["Clean Rivers"]


@pytest.mark.asyncio
async def test_super_admin_sees_inactive(client: AsyncClient, catalog, super_admin, auth_headers):
    response = await client.get("/api/charities", headers=auth_headers(super_admin))
    assert response.json()["pagination"]["total"] == 4


@pytest.mark.asyncio
async def test_featured_and_categories(client: AsyncClient, catalog):
    featured = await client.get("/api/charities/featured")
    categories = await client.get("/api/charities/categories")

    assert {c["name"] for c in featured.json()["data"]} == {"Animal Rescue League", "Clean Rivers"}
    counts = {c["value"]: c["count"] for c in categories.json()["data"]}
    assert len(counts) == len(CharityCategory)
    assert counts["education"] == 1
    assert counts["health"] == 0


@pytest.mark.asyncio
async def test_search_requires_two_characters(client: AsyncClient, catalog):
    assert (await client.get("/api/charities/search?q=a")).status_code == 422
    response = await client.get("/api/charities/search?q=books")
    assert [c["name"] for c in response.json()["data"]] == ["Books for Kids"]


@pytest.mark.asyncio
async def test_inactive_charity_is_not_found(client: AsyncClient, catalog):
    response = await client.get(f"/api/charities/{catalog[3].id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_charity_stats(client: AsyncClient, charity, employee, make_donation):
    make_donation(employee, charity, "40", matching_amount="20")
    make_donation(employee, charity, "10", status=DonationStatus.FAILED)

    response = await client.get(f"/api/charities/{charity.id}/stats")

    data = response.json()["data"]
    assert data["total_amount"] == 60
    assert data["total_matching"] == 20
    assert data["donation_count"] == 1
    assert data["unique_donors"] == 1


@pytest.mark.asyncio
async def test_hr_admin_cannot_create_charity(client: AsyncClient, hr_admin, auth_headers):
    response = await client.post(
        "/api/charities",
        headers=auth_headers(hr_admin),
        json={"name": "New Hope", "ein": "11-1111111", "description": "x", "category": "health"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_super_admin_creates_charity(client: AsyncClient, super_admin, charity, auth_headers):
    payload = {"name": "New Hope", "ein": "11-1111111", "description": "Clinic", "category": "health"}

    created = await client.post("/api/charities", headers=auth_headers(super_admin), json=payload)
    duplicate = await client.post(
        "/api/charities", headers=auth_headers(super_admin), json={**payload, "ein": charity.ein}
    )

    assert created.status_code == 201
    assert created.json()["data"]["total_donations"] == 0
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Charity already exists with this EIN"


@pytest.mark.asyncio
async def test_update_overlays_donation_limits(client: AsyncClient, super_admin, charity, auth_headers):
    response = await client.put(
        f"/api/charities/{charity.id}",
        headers=auth_headers(super_admin),
        json={"donation_info": {"minimum_amount": 5}},
    )

    info = response.json()["data"]["donation_info"]
    assert info["minimum_amount"] == 5
    assert info["suggested_amounts"] == charity.donation_info.suggested_amounts


@pytest.mark.asyncio
async def test_verify_stamps_and_clears_verified_at(
    client: AsyncClient, super_admin, make_charity, auth_headers
):
    pending = make_charity(name="Pending Org", verification=CharityVerification(is_verified=False))
    headers = auth_headers(super_admin)

    verified = await client.put(
        f"/api/charities/{pending.id}/verify",
        headers=headers,
        json={"is_verified": True, "verified_by": "charity_navigator", "rating": 4.5},
    )
    revoked = await client.put(
        f"/api/charities/{pending.id}/verify", headers=headers, json={"is_verified": False}
    )

    data = verified.json()["data"]["verification"]
    assert data["is_verified"] is True
    assert data["verified_by"] == "charity_navigator"
    assert data["verified_at"] is not None
    assert data["rating"] == 4.5
    assert revoked.json()["data"]["verification"]["verified_at"] is None


@pytest.mark.asyncio
async def test_verify_is_super_admin_only(client: AsyncClient, hr_admin, charity, auth_headers):
    response = await client.put(
        f"/api/charities/{charity.id}/verify", headers=auth_headers(hr_admin), json={"is_verified": True}
    )
    assert response.status_code == 403
