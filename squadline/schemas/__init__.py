"""Pydantic request/response schemas."""

from squadline.schemas.auth import (
    CheckEmailResponse,
    LoginRequest,
    LoginResponse,
    Principal,
    RegisterRequest,
)
from squadline.schemas.health import HealthResponse
from squadline.schemas.league import LeagueCreate, LeagueOut, MatchCreate, StandingRow

__all__ = [
    "CheckEmailResponse",
    "HealthResponse",
    "LeagueCreate",
    "LeagueOut",
    "LoginRequest",
    "LoginResponse",
    "MatchCreate",
    "Principal",
    "RegisterRequest",
    "StandingRow",
]
