"""Schemas for teams, their rosters and the join-request / invitation workflow."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from squadline.core.security import EMAIL_MAX_LEN
from squadline.schemas.auth import _normalize_email

# Roles staff may grant directly; "owner" is only set when a team is created.
AssignableTeamRole = Literal["manager", "assistant_manager", "coach", "athlete"]


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    abbreviation: str | None = Field(default=None, min_length=2, max_length=3)
    city: str | None = Field(default=None, max_length=100)
    nickname: str | None = Field(default=None, max_length=100)
    founded_year: int | None = Field(default=None, ge=1800, le=2100)
    logo_url: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("abbreviation")
    @classmethod
    def upper_abbreviation(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    abbreviation: str | None = None
    city: str | None = None
    nickname: str | None = None
    founded_year: int | None = None
    logo_url: str | None = None
    creator_id: int | None = None


class MemberAdd(BaseModel):
    user_id: int
    role: AssignableTeamRole = "athlete"


class MemberOut(BaseModel):
    user_id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str
    status: str
    joined_at: datetime | None = None


class RosterResponse(BaseModel):
    team_id: int
    team_name: str
    members: list[MemberOut]


class JoinRequestCreate(BaseModel):
    message: str | None = Field(default=None, max_length=1000)


class InvitationCreate(BaseModel):
    email: str = Field(..., max_length=EMAIL_MAX_LEN)
    role: Literal["athlete", "assistant_manager"] = "athlete"
    message: str | None = Field(default=None, max_length=1000)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class TeamRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    user_id: int
    team_id: int
    invited_by: int | None = None
    role: str
    message: str | None = None
    status: str
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
