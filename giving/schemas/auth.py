"""Authentication-related schemas and the per-request context."""

from dataclasses import dataclass
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from giving.db.enums import Role
from giving.schemas.company import CompanyBrief
from giving.schemas.user import UserRead


@dataclass
class RequestContext:
    """
    The acting user and tenant for one request.

    Built by ``get_current_context`` from the bearer token and passed
    explicitly into services. ``company`` is None for super-admins.
    """
    user: object
    company: object | None

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def company_id(self) -> UUID | None:
        return self.company.id if self.company else None

    @property
    def role(self) -> Role:
        return Role(self.user.role)

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @property
    def is_hr_admin(self) -> bool:
        return self.role == Role.HR_ADMIN


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company_domain: str = Field(..., min_length=3, max_length=255)
    employee_id: str | None = Field(None, max_length=50)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)
    role: Role | None = None


class LoginRequest(BaseModel):
    """Either ``email`` or ``username`` identifies the account."""
    email: str | None = None
    username: str | None = None
    password: str = Field(..., min_length=1, max_length=72)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.email or self.username):
            raise ValueError("email or username is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.email or self.username or "").strip().lower()


class AuthData(BaseModel):
    token: str
    user: UserRead
    company: CompanyBrief | None = None


class MeData(BaseModel):
    user: UserRead
    company: CompanyBrief | None = None


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=6, max_length=72)
