"""League, match result and standings endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from squadline.api.deps import guarded, refresh_session
from squadline.core.database import get_db
from squadline.core.errors import not_found
from squadline.core.serialization import SafeRoute
from squadline.models import League, Match, Team
from squadline.schemas.auth import Principal
from squadline.schemas.league import (
    LeagueCreate,
    LeagueOut,
    MatchCreate,
    MatchOut,
    StandingsResponse,
)
from squadline.services.standings import compute_standings

logger = logging.getLogger(__name__)
router = APIRouter(route_class=SafeRoute)

LEAGUE_EDITORS = ("organizer", "admin")
RESULT_RECORDERS = ("manager", "assistant_manager", "organizer", "admin")


def _get_league(db: Session, league_id: int) -> League:
    league = db.get(League, league_id)
    if league is None:
        raise not_found("League")
    return league


@router.get("", response_model=list[LeagueOut])
def list_leagues(
    db: Annotated[Session, Depends(get_db)],
    _principal: Annotated[Principal, Depends(refresh_session)],
) -> list[League]:
    return db.query(League).order_by(League.id).all()


@router.post(
    "",
    response_model=LeagueOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=guarded(*LEAGUE_EDITORS),
)
def create_league(
    body: LeagueCreate,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> League:
    """Create a league (organizers and admins)."""
    principal: Principal = request.state.principal
    league = League(
        name=body.name.strip(),
        season=body.season,
        description=body.description,
        # legacy-origin principals have no users row to reference
        created_by=principal.id if principal.origin == "user" else None,
    )
    db.add(league)
    db.commit()
    db.refresh(league)
    logger.info("League %s created by id=%s", league.id, principal.id)
    return league


@router.get("/{league_id}", response_model=LeagueOut)
def get_league(
    league_id: int,
    db: Annotated[Session, Depends(get_db)],
    _principal: Annotated[Principal, Depends(refresh_session)],
) -> League:
    return _get_league(db, league_id)


@router.get("/{league_id}/standings", response_model=StandingsResponse)
def get_standings(
    league_id: int,
    db: Annotated[Session, Depends(get_db)],
    _principal: Annotated[Principal, Depends(refresh_session)],
) -> StandingsResponse:
    """
    League table over every team that appears in the league's matches.

    Finished and in-progress matches count: 3 points for a win, 1 for a draw;
    sorted by points then goal difference.
    """
    _get_league(db, league_id)
    matches = db.query(Match).filter(Match.league_id == league_id).order_by(Match.id).all()
    team_ids = {m.home_team_id for m in matches} | {m.away_team_id for m in matches}
    teams = (
        db.query(Team).filter(Team.id.in_(team_ids)).order_by(Team.id).all() if team_ids else []
    )
    return StandingsResponse(league_id=league_id, standings=compute_standings(teams, matches))


@router.post(
    "/{league_id}/matches",
    response_model=MatchOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=guarded(*RESULT_RECORDERS),
)
def record_match(
    league_id: int,
    body: MatchCreate,
    db: Annotated[Session, Depends(get_db)],
) -> Match:
    """Record a match (and its score, if played) in a league."""
    _get_league(db, league_id)
    wanted = {body.home_team_id, body.away_team_id}
    found = {t.id for t in db.query(Team).filter(Team.id.in_(wanted)).all()}
    if found != wanted:
        raise not_found("Team")
    match = Match(league_id=league_id, **body.model_dump())
    db.add(match)
    db.commit()
    db.refresh(match)
    logger.info(
        "Match %s recorded in league %s: %s-%s (%s)",
        match.id,
        league_id,
        match.home_score,
        match.away_score,
        match.status,
    )
    return match
