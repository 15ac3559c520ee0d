"""Tests for company and platform reports, JSON and CSV."""
import csv
import io
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from giving.db.enums import DonationStatus

YEAR = datetime.now(timezone.utc).year
COMPANY_HEADERS = [
    "Date",
    "Employee Name",
    "Employee ID",
    "Department",
    "Charity Name",
    "Charity EIN",
    "Donation Amount",
    "Matching Amount",
    "Total Amount",
]


def _rows(response) -> list[list[str]]:
    return list(csv.reader(io.StringIO(response.text)))


@pytest.mark.asyncio
async def test_company_csv_quotes_and_guards_fields(
    client: AsyncClient, company, employee, hr_admin, make_charity, make_donation, auth_headers
):
    comma = make_charity(name="Food, Shelter & Care")
    formula = make_charity(name="=HYPERLINK(\"http://evil\")")
    make_donation(employee, comma, "100", matching_amount="50")
    make_donation(employee, formula, "10")
    make_donation(employee, comma, "999", status=DonationStatus.CANCELLED)

    response = await client.get(
        f"/api/companies/{company.id}/reports?format=csv", headers=auth_headers(hr_admin)
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == f'attachment; filename="donation-report-{YEAR}.csv"'
    assert '"Food, Shelter & Care"' in response.text

    rows = _rows(response)
    assert rows[0] == COMPANY_HEADERS
    assert len(rows) == 3
    by_charity = {row[4]: row for row in rows[1:]}
    assert by_charity["Food, Shelter & Care"][1] == "Erin Employee"
    assert by_charity["Food, Shelter & Care"][3] == "Engineering"
    assert by_charity["Food, Shelter & Care"][6:] == ["100.00", "50.00", "150.00"]
    assert "'=HYPERLINK(\"http://evil\")" in by_charity


@pytest.mark.asyncio
async def test_company_report_json_breaks_down_departments(
    client: AsyncClient, company, employee, hr_admin, make_user, charity, make_donation, auth_headers
):
    sales = make_user(company, department="Sales")
    make_donation(employee, charity, "40", matching_amount="20")
    make_donation(sales, charity, "100")

    response = await client.get(f"/api/companies/{company.id}/reports", headers=auth_headers(hr_admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totals"]["total_combined"] == 160
    departments = {d["department"]: d for d in data["departments"]}
    assert departments["Sales"]["total_amount"] == 100
    assert departments["Engineering"]["total_matching"] == 20
    assert data["top_charities"][0]["unique_donors"] == 2


@pytest.mark.asyncio
async def test_company_report_other_tenant_forbidden(
    client: AsyncClient, hr_admin, make_company, auth_headers
):
    other = make_company()

    response = await client.get(f"/api/companies/{other.id}/reports", headers=auth_headers(hr_admin))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_company_report_employee_forbidden(client: AsyncClient, company, employee, auth_headers):
    response = await client.get(f"/api/companies/{company.id}/reports", headers=auth_headers(employee))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_company_dashboard_participation(
    client: AsyncClient, company, employee, hr_admin, make_user, charity, make_donation, auth_headers
):
    make_user(company)
    make_donation(employee, charity, "25")

    response = await client.get(f"/api/companies/{company.id}/dashboard", headers=auth_headers(hr_admin))

    data = response.json()["data"]
    assert data["active_employees"] == 2
    assert data["participation_rate"] == 50
    assert data["matching_status"]["enabled"] is True


@pytest.mark.asyncio
async def test_admin_reports_super_admin_only(client: AsyncClient, hr_admin, auth_headers):
    for path in ("/api/admin/reports", "/api/admin/dashboard", "/api/admin/companies"):
        response = await client.get(path, headers=auth_headers(hr_admin))
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_reports_require_auth(client: AsyncClient):
    response = await client.get("/api/admin/reports")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_system_report_csv(
    client: AsyncClient, employee, super_admin, charity, make_donation, auth_headers
):
    make_donation(employee, charity, "30", matching_amount="15")

    response = await client.get("/api/admin/reports?format=csv", headers=auth_headers(super_admin))

    assert response.status_code == 200
    assert response.headers["content-disposition"] == f'attachment; filename="system-report-{YEAR}.csv"'
    rows = _rows(response)
    assert len(rows) == 2
    assert "acme.com" in rows[1]
    assert rows[1][-3:] == ["30.00", "15.00", "45.00"]


@pytest.mark.asyncio
async def test_system_report_json_groups_by_company(
    client: AsyncClient, employee, super_admin, make_company, make_user, charity, make_donation, auth_headers
):
    other = make_user(make_company(domain="globex.com"))
    make_donation(employee, charity, "30")
    make_donation(other, charity, "70")

    response = await client.get("/api/admin/reports", headers=auth_headers(super_admin))

    data = response.json()["data"]
    assert data["totals"]["total_combined"] == 100
    assert [c["name"] for c in data["companies"]] == ["Globex", "Acme"]


@pytest.mark.asyncio
async def test_admin_dashboard_overview(
    client: AsyncClient, employee, super_admin, charity, auth_headers
):
    response = await client.get("/api/admin/dashboard", headers=auth_headers(super_admin))

    overview = response.json()["data"]["overview"]
    assert overview["companies"] == 1
    assert overview["users"] == 2
    assert overview["verified_charities"] == 1
