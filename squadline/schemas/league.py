"""Schemas for leagues, match results and standings."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LeagueCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    season: str | None = Field(default=None, max_length=20)
    description: str | None = Field(default=None, max_length=5000)


class LeagueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    season: str | None = None
    description: str | None = None
    created_by: int | None = None


class MatchCreate(BaseModel):
    home_team_id: int
    away_team_id: int
    home_score: int | None = Field(default=None, ge=0)
    away_score: int | None = Field(default=None, ge=0)
    status: Literal["scheduled", "in-progress", "finished", "cancelled"] = "finished"
    scheduled_at: datetime | None = None

    @model_validator(mode="after")
    def distinct_teams(self) -> "MatchCreate":
        if self.home_team_id == self.away_team_id:
            raise ValueError("home_team_id and away_team_id must differ")
        return self


class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    league_id: int | None
    home_team_id: int
    away_team_id: int
    home_score: int | None
    away_score: int | None
    status: str
    scheduled_at: datetime | None = None


class StandingRow(BaseModel):
    team_id: int
    name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0


class StandingsResponse(BaseModel):
    league_id: int
    standings: list[StandingRow]
