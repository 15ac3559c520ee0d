"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from giving.db.enums import Role
from giving.schemas.values import Gamification, UserPreferences


class UserRead(BaseModel):
    """Response schema for reading a user."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: Role
    company_id: UUID | None
    employee_id: str | None
    department: str | None
    position: str | None
    phone: str | None
    is_active: bool
    is_verified: bool
    preferences: UserPreferences
    gamification: Gamification
    last_login_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    employee_id: str | None = None
    department: str | None = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    """HR admin creating an employee inside its own tenant."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    employee_id: str = Field(..., min_length=1, max_length=50)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    role: Role = Role.EMPLOYEE
    company_id: UUID | None = None


class UserUpdate(BaseModel):
    """Request schema for updating a user. role / is_active are admin-only."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    employee_id: str | None = Field(None, max_length=50)
    role: Role | None = None
    is_active: bool | None = None

    @field_validator("first_name", "last_name", "role", "is_active", mode="before")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class LeaderboardEntry(BaseModel):
    rank: int
    name: str
    total_donated: float
    level: int
    badges: int


# Preferences updates reuse the value object; only sent fields are applied.
PreferencesUpdate = UserPreferences
