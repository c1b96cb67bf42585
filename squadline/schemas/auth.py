"""Request/response schemas for auth endpoints."""

import re
from datetime import date
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from squadline.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Roles a visitor may pick at registration; the rest are granted by an admin.
SelfAssignableRole = Literal["user", "athlete", "manager", "organizer"]
SELF_ASSIGNABLE_ROLES = get_args(SelfAssignableRole)


def _normalize_email(v: str) -> str:
    email = v.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError("Must be a valid email address")
    return email


class LoginRequest(BaseModel):
    """
    Credentials for login.

    Both fields are optional at the schema level so that an incomplete body
    yields MISSING_CREDENTIALS rather than a generic validation error.
    """

    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    password: str | None = Field(default=None, max_length=PASSWORD_MAX_LEN)


class Principal(BaseModel):
    """Authenticated identity attached to the request by the session dependency."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: str
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    roles: list[str]
    role: str
    origin: str = "user"


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str
    user: dict
    redirect_url: str = Field(default="/dashboard", alias="redirectUrl")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CheckEmailResponse(BaseModel):
    exists: bool


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: SelfAssignableRole = "user"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class AthleteRegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., min_length=1, max_length=100, alias="firstName")
    middle_name: str | None = Field(default=None, max_length=100, alias="middleName")
    last_name: str = Field(..., min_length=1, max_length=100, alias="lastName")
    email: str = Field(..., max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    dob: date
    height: float = Field(..., gt=0, lt=300)
    position: Literal["FW", "MD", "DF", "GK"]
    country: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("dob")
    @classmethod
    def validate_dob(cls, v: date) -> date:
        if v.year < 1900 or v.year > date.today().year - 5:
            raise ValueError("Date of birth year is out of range")
        return v


class RegisteredUser(BaseModel):
    id: int
    email: str
    role: str


class UserListItem(BaseModel):
    """User entry for admin list (no password)."""

    id: int
    email: str
    role: str
    roles: list[str]
    status: str


class UsersListResponse(BaseModel):
    """Response for GET /auth/users (admin only)."""

    users: list[UserListItem]
