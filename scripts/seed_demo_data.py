"""
Seed script creating three demo companies, a charity catalog, employees and
a year of completed donations.

Run with: python -m scripts.seed_demo_data
Every account uses the password "password123".
"""

import random
from datetime import datetime, timezone
from decimal import Decimal

from giving.core.security import hash_password
from giving.db.enums import (
    CharityCategory,
    DeductionType,
    DonationFrequency,
    DonationStatus,
    DonationType,
    MatchingType,
    PaymentMethod,
    Role,
    SubscriptionPlan,
    VerificationSource,
)
from giving.db.models import Charity, Company, Donation, TaxRecord, User
from giving.db.session import SessionLocal
from giving.schemas.values import (
    Address,
    CharityImpact,
    CharityVerification,
    ContactInfo,
    DonationInfo,
    Gamification,
    ImpactMetric,
    MatchingProgram,
    PayrollInfo,
    PrivacyPreferences,
    ProcessingInfo,
    Subscription,
    TaxInfo,
    UserPreferences,
)
from giving.services import donation_service

DEMO_PASSWORD = "password123"
DONATION_COUNT = 50

COMPANIES = [
    {
        "name": "TechCorp Solutions",
        "domain": "techcorp.com",
        "ein": "12-3456789",
        "address": Address(street="123 Tech Street", city="San Francisco", state="CA", zip_code="94105"),
        "plan": SubscriptionPlan.PREMIUM,
        "max_employees": 500,
        "matching": MatchingProgram(
            enabled=True, type=MatchingType.PERCENTAGE, percentage=50, annual_limit=50000
        ),
    },
    {
        "name": "Green Energy Co",
        "domain": "greenenergy.com",
        "ein": "98-7654321",
        "address": Address(street="456 Green Avenue", city="Portland", state="OR", zip_code="97201"),
        "plan": SubscriptionPlan.BASIC,
        "max_employees": 100,
        "matching": MatchingProgram(
            enabled=True, type=MatchingType.FIXED, fixed_amount=25, annual_limit=10000
        ),
    },
    {
        "name": "Global Finance Inc",
        "domain": "globalfinance.com",
        "ein": "11-2233445",
        "address": Address(street="789 Wall Street", city="New York", state="NY", zip_code="10005"),
        "plan": SubscriptionPlan.ENTERPRISE,
        "max_employees": 1000,
        "matching": MatchingProgram(
            enabled=True, type=MatchingType.PERCENTAGE, percentage=100, annual_limit=100000
        ),
    },
]

# (name, ein, category, city, state, rating, min, max, featured, impact metric)
CHARITIES = [
    ("American Red Cross", "13-5562305", CharityCategory.HUMAN_SERVICES, "Washington", "DC",
     4.5, 1, 50000, True, ("People Helped", "1000000", "annually")),
    ("World Wildlife Fund", "13-5562306", CharityCategory.ENVIRONMENT, "Washington", "DC",
     4.2, 1, 25000, True, ("Acres Protected", "1000000", "acres")),
    ("Doctors Without Borders", "13-3433452", CharityCategory.HEALTH, "New York", "NY",
     4.7, 1, 10000, True, ("Countries Active", "70", "countries")),
    ("Feeding America", "36-3673599", CharityCategory.HUMAN_SERVICES, "Chicago", "IL",
     4.4, 1, 25000, True, ("Meals Provided", "6000000000", "meals")),
    ("Charity: Water", "22-3936753", CharityCategory.INTERNATIONAL, "New York", "NY",
     4.6, 1, 25000, False, ("People Served", "17000000", "people")),
    ("The Nature Conservancy", "53-0242652", CharityCategory.ENVIRONMENT, "Arlington", "VA",
     4.3, 5, 25000, False, ("Acres Conserved", "119000000", "acres")),
    ("Save the Children", "06-0726487", CharityCategory.EDUCATION, "Fairfield", "CT",
     4.2, 5, 20000, False, ("Children Reached", "100000000", "children")),
    ("Best Friends Animal Society", "23-7147797", CharityCategory.ANIMALS, "Kanab", "UT",
     4.3, 5, 20000, False, ("Animals Saved", "500000", "animals")),
    ("Girls Who Code", "30-0845938", CharityCategory.EDUCATION, "New York", "NY",
     4.1, 5, 15000, True, ("Students Reached", "500000", "students")),
    ("Special Olympics", "52-0889518", CharityCategory.HUMAN_SERVICES, "Washington", "DC",
     4.4, 5, 15000, True, ("Athletes Served", "5000000", "athletes")),
]

EMPLOYEES = [
    ("John", "Doe", "EMP001", "Engineering", "Software Engineer"),
    ("Jane", "Smith", "EMP002", "Marketing", "Marketing Manager"),
    ("Mike", "Johnson", "EMP003", "Sales", "Sales Representative"),
    ("Sarah", "Wilson", "EMP004", "Engineering", "DevOps Engineer"),
    ("David", "Brown", "EMP005", "Finance", "Financial Analyst"),
]


def clear_data(db):
    """Delete existing rows, children first."""
    for model in (TaxRecord, Donation, User, Charity, Company):
        db.query(model).delete()
    db.flush()


def create_companies(db) -> list[Company]:
    companies = []
    for data in COMPANIES:
        domain = data["domain"]
        company = Company(
            name=data["name"],
            domain=domain,
            ein=data["ein"],
            address=data["address"],
            contact_info=ContactInfo(email=f"hr@{domain}", website=f"https://{domain}"),
            subscription=Subscription(plan=data["plan"], max_employees=data["max_employees"]),
            matching_program=data["matching"],
        )
        db.add(company)
        companies.append(company)
    db.flush()
    return companies


def create_charities(db) -> list[Charity]:
    charities = []
    now = datetime.now(timezone.utc)
    for name, ein, category, city, state, rating, minimum, maximum, featured, metric in CHARITIES:
        charity = Charity(
            name=name,
            ein=ein,
            description=f"{name} is a registered {category.label.lower()} nonprofit.",
            category=category,
            address=Address(city=city, state=state),
            verification=CharityVerification(
                is_verified=True,
                verified_by=VerificationSource.CHARITY_NAVIGATOR,
                verified_at=now,
                rating=rating,
            ),
            impact=CharityImpact(metrics=[ImpactMetric(name=metric[0], value=metric[1], unit=metric[2])]),
            donation_info=DonationInfo(
                minimum_amount=minimum,
                maximum_amount=maximum,
                suggested_amounts=[25, 50, 100, 250, 500],
            ),
            is_featured=featured,
        )
        db.add(charity)
        charities.append(charity)
    db.flush()
    return charities


def create_users(db, companies: list[Company]) -> list[User]:
    """One HR admin plus five employees per company."""
    password_hash = hash_password(DEMO_PASSWORD)
    users = []
    for company in companies:
        users.append(
            User(
                email=f"hr@{company.domain}",
                password_hash=password_hash,
                first_name="HR",
                last_name="Admin",
                role=Role.HR_ADMIN,
                company_id=company.id,
                employee_id="HR001",
                department="Human Resources",
                position="HR Manager",
                is_verified=True,
                preferences=UserPreferences(),
                gamification=Gamification(),
            )
        )
        for first, last, employee_id, department, position in EMPLOYEES:
            users.append(
                User(
                    email=f"{first.lower()}.{last.lower()}@{company.domain}",
                    password_hash=password_hash,
                    first_name=first,
                    last_name=last,
                    role=Role.EMPLOYEE,
                    company_id=company.id,
                    employee_id=employee_id,
                    department=department,
                    position=position,
                    is_verified=True,
                    preferences=UserPreferences(
                        charity_categories=["environment", "education", "health"],
                        privacy=PrivacyPreferences(
                            show_on_leaderboard=random.random() > 0.5,
                            share_donation_history=random.random() > 0.5,
                        ),
                    ),
                    gamification=Gamification(),
                )
            )
    db.add_all(users)
    db.flush()
    return users


def create_donations(db, users: list[User], charities: list[Charity], count: int = DONATION_COUNT) -> list[Donation]:
    """Completed payroll donations spread across the current year."""
    year = datetime.now(timezone.utc).year
    employees = [u for u in users if u.role == Role.EMPLOYEE]
    donations = []
    for _ in range(count):
        user = random.choice(employees)
        charity = random.choice(charities)
        amount = Decimal(random.randint(10, 510))
        created_at = datetime(year, random.randint(1, 12), random.randint(1, 28), tzinfo=timezone.utc)
        recurring = random.random() > 0.7
        donation = Donation(
            user_id=user.id,
            company_id=user.company_id,
            charity_id=charity.id,
            amount=amount,
            matching_amount=Decimal("0"),
            total_amount=amount,
            donation_type=DonationType.RECURRING if recurring else DonationType.ONE_TIME,
            frequency=random.choice(list(DonationFrequency)) if recurring else None,
            payment_method=PaymentMethod.PAYROLL_DEDUCTION,
            payroll_info=PayrollInfo(
                deduction_type=DeductionType.FIXED_AMOUNT,
                deduction_value=float(amount),
                start_date=created_at.date(),
            ),
            status=DonationStatus.COMPLETED,
            processing_info=ProcessingInfo(last_status_update=created_at, processed_at=created_at),
            tax_info=TaxInfo(tax_year=year),
            created_at=created_at,
        )
        db.add(donation)
        donations.append(donation)
    db.flush()
    return donations


def main():
    """Main entry point."""
    print("Seeding demo data...")
    db = SessionLocal()
    try:
        clear_data(db)
        companies = create_companies(db)
        print(f"✓ Created {len(companies)} companies")
        charities = create_charities(db)
        print(f"✓ Created {len(charities)} charities")
        users = create_users(db, companies)
        print(f"✓ Created {len(users)} users")
        donations = create_donations(db, users, charities)
        print(f"✓ Created {len(donations)} donations")

        # Matching first so charity totals include the employer match
        for company in companies:
            donation_service.reconcile_matching(db, company)
        db.flush()
        for donation in sorted(donations, key=lambda d: d.created_at):
            donation_service.apply_counters(db, donation)
        db.commit()
        print("✓ Reconciled matching and donation counters")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print("\nTest accounts (password: password123):")
    print("  HR admin: hr@techcorp.com")
    print("  Employee: john.doe@techcorp.com")
    print("  Employee: jane.smith@techcorp.com")


if __name__ == "__main__":
    main()
