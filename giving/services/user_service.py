"""User management, preferences and the company leaderboard."""

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from giving.core.deps import check_user_access
from giving.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from giving.core.security import hash_password
from giving.core.structured_logging import build_log_context
from giving.db.enums import SELF_ASSIGNABLE_ROLES, Role
from giving.db.models import Company, User
from giving.schemas.auth import RequestContext
from giving.schemas.user import LeaderboardEntry, PreferencesUpdate, UserCreate, UserUpdate
from giving.schemas.values import Gamification, UserPreferences, overlay
from giving.services.auth_service import employee_id_taken, get_user_by_email, normalize_email
from giving.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"
DEFAULT_LEADERBOARD_LIMIT = 10


def list_users(
    db: Session,
    ctx: RequestContext,
    pagination: PaginationParams,
    *,
    search: str | None = None,
    department: str | None = None,
    role: Role | None = None,
    company_id: UUID | None = None,
    include_inactive: bool = False,
) -> tuple[list[User], int]:
    """HR admins are pinned to their own tenant; super-admins may filter by company."""
    query = db.query(User)
    if ctx.is_super_admin:
        if company_id:
            query = query.filter(User.company_id == company_id)
    else:
        query = query.filter(User.company_id == ctx.company_id)

    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
                User.employee_id.ilike(pattern),
            )
        )
    if department:
        query = query.filter(User.department == department)
    if role:
        query = query.filter(User.role == role)

    return paginate_query(query.order_by(User.last_name, User.first_name), pagination)


def get_user(db: Session, ctx: RequestContext, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    check_user_access(ctx, user)
    return user


def create_user(db: Session, ctx: RequestContext, data: UserCreate) -> User:
    """HR admin adds an employee to its company; super-admins name the company."""
    company_id = data.company_id if ctx.is_super_admin else ctx.company_id
    if not company_id:
        raise ValidationFailed("Company ID is required")
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")

    if data.role not in SELF_ASSIGNABLE_ROLES:
        raise ValidationFailed(f"Role '{data.role.value}' cannot be assigned here")
    if get_user_by_email(db, data.email):
        raise Conflict("User already exists with this email")
    if employee_id_taken(db, company_id, data.employee_id):
        raise Conflict("Employee ID already exists in this company")

    user = User(
        email=normalize_email(data.email),
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        role=data.role,
        company_id=company_id,
        employee_id=data.employee_id,
        department=data.department,
        position=data.position,
        preferences=UserPreferences(),
        gamification=Gamification(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        "User created by admin",
        extra=build_log_context(user_id=str(ctx.user_id), company_id=str(company_id)),
    )
    return user


def update_user(db: Session, ctx: RequestContext, user_id: UUID, data: UserUpdate) -> User:
    user = get_user(db, ctx, user_id)
    changes = data.model_dump(exclude_unset=True)

    admin_fields = {"role", "is_active"} & changes.keys()
    if admin_fields and not (ctx.is_super_admin or ctx.is_hr_admin):
        raise Forbidden("Only administrators can change role or status")
    if "role" in changes:
        new_role = changes["role"]
        if new_role == Role.SUPER_ADMIN or user.role == Role.SUPER_ADMIN:
            raise Forbidden("Super admin roles cannot be changed here")
    if changes.get("employee_id") and user.company_id:
        if employee_id_taken(db, user.company_id, changes["employee_id"], exclude_user_id=user.id):
            raise Conflict("Employee ID already exists in this company")

    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, ctx: RequestContext, user_id: UUID) -> User:
    """Soft delete. Super-admin accounts cannot be deleted."""
    user = get_user(db, ctx, user_id)
    if user.role == Role.SUPER_ADMIN:
        raise Forbidden("Super admin accounts cannot be deleted")
    user.is_active = False
    user.token_version += 1
    db.commit()
    db.refresh(user)
    logger.info(
        "User deactivated",
        extra=build_log_context(user_id=str(ctx.user_id), company_id=str(user.company_id)),
    )
    return user


def update_preferences(
    db: Session,
    ctx: RequestContext,
    user_id: UUID,
    patch: PreferencesUpdate,
) -> User:
    user = get_user(db, ctx, user_id)
    user.preferences = overlay(user.preferences, patch)
    db.commit()
    db.refresh(user)
    return user


def leaderboard(db: Session, company_id: UUID, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[LeaderboardEntry]:
    """
    Opted-in active users of a company ranked by total donated.

    Users who don't share their history appear as "Anonymous".
    Ties keep query order (last name, first name).
    """
    users = db.execute(
        select(User)
        .where(User.company_id == company_id, User.is_active.is_(True))
        .order_by(User.last_name, User.first_name)
    ).scalars().all()

    visible = [u for u in users if u.preferences.privacy.show_on_leaderboard is True]
    visible.sort(key=lambda u: u.gamification.total_donated, reverse=True)

    return [
        LeaderboardEntry(
            rank=position,
            name=user.full_name if user.preferences.privacy.share_donation_history is True else ANONYMOUS_NAME,
            total_donated=user.gamification.total_donated,
            level=user.gamification.level,
            badges=len(user.gamification.badges),
        )
        for position, user in enumerate(visible[:limit], start=1)
    ]
