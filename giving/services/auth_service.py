"""Registration, login and credential management."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giving.core.errors import Conflict, Unauthorized, ValidationFailed
from giving.core.security import create_access_token, hash_password, verify_password
from giving.core.structured_logging import build_log_context
from giving.db.enums import SELF_ASSIGNABLE_ROLES, Role
from giving.db.models import Company, User
from giving.schemas.auth import PasswordChange, ProfileUpdate, RegisterRequest
from giving.schemas.values import Gamification, UserPreferences

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def issue_token(user: User) -> str:
    return create_access_token(user.id, Role(user.role).value, user.token_version)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    ).scalar_one_or_none()


def employee_id_taken(db: Session, company_id, employee_id: str, exclude_user_id=None) -> bool:
    query = select(User.id).where(User.company_id == company_id, User.employee_id == employee_id)
    if exclude_user_id:
        query = query.where(User.id != exclude_user_id)
    return db.execute(query).first() is not None


def register(db: Session, data: RegisterRequest) -> tuple[User, Company, str]:
    """
    Create an employee (or HR admin) account under an existing company domain.

    Raises:
        Conflict: Email already registered, or employee id taken in the company
        ValidationFailed: Unknown / inactive company domain, or a role that
            cannot be self-assigned
    """
    email = normalize_email(data.email)
    if get_user_by_email(db, email):
        raise Conflict("User already exists with this email")

    company = db.execute(
        select(Company).where(func.lower(Company.domain) == data.company_domain.strip().lower())
    ).scalar_one_or_none()
    if not company or not company.is_active:
        raise ValidationFailed(
            "Invalid company domain",
            errors=[{"field": "company_domain", "message": "No active company with this domain"}],
        )

    role = data.role or Role.EMPLOYEE
    if role not in SELF_ASSIGNABLE_ROLES:
        raise ValidationFailed(
            "Role cannot be self-assigned",
            errors=[{"field": "role", "message": f"'{role.value}' is not allowed"}],
        )

    if data.employee_id and employee_id_taken(db, company.id, data.employee_id):
        raise Conflict("Employee ID already exists in this company")

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        role=role,
        company_id=company.id,
        employee_id=data.employee_id,
        department=data.department,
        position=data.position,
        preferences=UserPreferences(),
        gamification=Gamification(),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)

    logger.info(
        "User registered",
        extra=build_log_context(user_id=str(user.id), company_id=str(company.id)),
    )
    return user, company, issue_token(user)


def login(db: Session, identifier: str, password: str) -> tuple[User, Company | None, str]:
    """
    Authenticate by email and password.

    Unknown email, inactive user and wrong password all produce the same error.
    """
    user = get_user_by_email(db, identifier)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise Unauthorized(INVALID_CREDENTIALS)

    company = None
    if user.company_id:
        company = db.get(Company, user.company_id)
        if not company or not company.is_active:
            raise Unauthorized("Company account is inactive")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    logger.info("User logged in", extra=build_log_context(user_id=str(user.id)))
    return user, company, issue_token(user)


def logout(db: Session, user: User) -> None:
    """Revoke every outstanding token for the user."""
    user.token_version += 1
    db.commit()


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, data: PasswordChange) -> str:
    """
    Replace the password after checking the current one.

    Other sessions are revoked; the returned token replaces the caller's.
    """
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationFailed(
            "Current password is incorrect",
            errors=[{"field": "current_password", "message": "does not match"}],
        )
    user.password_hash = hash_password(data.new_password)
    user.token_version += 1
    db.commit()
    db.refresh(user)
    logger.info("Password changed", extra=build_log_context(user_id=str(user.id)))
    return issue_token(user)


def create_super_admin(db: Session, email: str, password: str, first_name: str, last_name: str) -> User:
    """Provision a platform operator (CLI only; not reachable over HTTP)."""
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise Conflict("User already exists with this email")
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=Role.SUPER_ADMIN,
        company_id=None,
        is_verified=True,
        preferences=UserPreferences(),
        gamification=Gamification(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
