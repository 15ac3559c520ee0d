"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, tables created and dropped around each test
- Factories for companies, users, charities and donations
- Bearer token headers for authenticated requests
- HTTPX AsyncClient bound to the app with the test session
"""
import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Generator

# Must be set before any giving module reads settings
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from giving.core.deps import get_db
from giving.core.security import hash_password
from giving.db.base import Base
from giving.db.enums import CharityCategory, DonationStatus, MatchingType, Role
from giving.db.models import Charity, Company, Donation, User
from giving.db.session import SessionLocal, engine
from giving.main import app
from giving.schemas.auth import RequestContext
from giving.schemas.values import (
    CharityVerification,
    CompanySettings,
    Gamification,
    MatchingProgram,
    PrivacyPreferences,
    ProcessingInfo,
    UserPreferences,
)
from giving.services.auth_service import issue_token

TEST_PASSWORD = "password123"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code is free to commit."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_company(db: Session):
    def factory(
        domain: str | None = None,
        matching: MatchingProgram | None = None,
        require_approval: bool = False,
        **kwargs,
    ) -> Company:
        domain = domain or f"co-{uuid.uuid4().hex[:8]}.com"
        company = Company(
            name=kwargs.pop("name", domain.split(".")[0].title()),
            domain=domain,
            matching_program=matching or MatchingProgram(),
            settings=CompanySettings(require_approval_for_donations=require_approval),
            **kwargs,
        )
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    return factory


@pytest.fixture
def make_user(db: Session, password_hash: str):
    def factory(
        company: Company | None,
        role: Role = Role.EMPLOYEE,
        first_name: str = "Test",
        last_name: str | None = None,
        show_on_leaderboard: bool = False,
        share_donation_history: bool = False,
        total_donated: float = 0,
        **kwargs,
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            email=kwargs.pop("email", f"user-{suffix}@{company.domain if company else 'platform.test'}"),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name or f"User{suffix}",
            role=role,
            company_id=company.id if company else None,
            preferences=UserPreferences(
                privacy=PrivacyPreferences(
                    show_on_leaderboard=show_on_leaderboard,
                    share_donation_history=share_donation_history,
                )
            ),
            gamification=Gamification(total_donated=total_donated),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return factory


@pytest.fixture
def make_charity(db: Session):
    def factory(name: str = "Local Food Bank", **kwargs) -> Charity:
        charity = Charity(
            name=name,
            ein=kwargs.pop("ein", f"{uuid.uuid4().int % 100:02d}-{uuid.uuid4().int % 10_000_000:07d}"),
            description=kwargs.pop("description", f"{name} description"),
            category=kwargs.pop("category", CharityCategory.HUMAN_SERVICES),
            verification=kwargs.pop("verification", CharityVerification(is_verified=True)),
            **kwargs,
        )
        db.add(charity)
        db.commit()
        db.refresh(charity)
        return charity
    return factory


@pytest.fixture
def make_donation(db: Session):
    """Insert a ledger row directly, bypassing matching and side effects."""
    def factory(
        user: User,
        charity: Charity,
        amount: str | Decimal,
        status: DonationStatus = DonationStatus.COMPLETED,
        matching_amount: str | Decimal = "0",
        created_at: datetime | None = None,
    ) -> Donation:
        amount = Decimal(amount)
        matching_amount = Decimal(matching_amount)
        created_at = created_at or datetime.now(timezone.utc)
        donation = Donation(
            user_id=user.id,
            company_id=user.company_id,
            charity_id=charity.id,
            amount=amount,
            matching_amount=matching_amount,
            total_amount=amount + matching_amount,
            status=status,
            processing_info=ProcessingInfo(last_status_update=created_at),
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(donation)
        db.commit()
        db.refresh(donation)
        return donation
    return factory


# =============================================================================
# Common tenants
# =============================================================================

@pytest.fixture
def company(make_company) -> Company:
    """Tenant with a 50% match and no caps."""
    return make_company(
        domain="acme.com",
        matching=MatchingProgram(enabled=True, type=MatchingType.PERCENTAGE, percentage=50),
    )


@pytest.fixture
def employee(make_user, company: Company) -> User:
    return make_user(company, first_name="Erin", last_name="Employee", department="Engineering")


@pytest.fixture
def hr_admin(make_user, company: Company) -> User:
    return make_user(company, role=Role.HR_ADMIN, first_name="Hana", last_name="Admin")


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(None, role=Role.SUPER_ADMIN, first_name="Sam", last_name="Root")


@pytest.fixture
def charity(make_charity) -> Charity:
    return make_charity()


@pytest.fixture
def ctx_for(db: Session):
    """Build the request context a route would hand to a service."""
    def build(user: User) -> RequestContext:
        company = db.get(Company, user.company_id) if user.company_id else None
        return RequestContext(user=user, company=company)
    return build


@pytest.fixture
def auth_headers():
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return build


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient whose requests share the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
