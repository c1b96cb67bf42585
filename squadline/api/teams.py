"""Team, roster, join-request and invitation endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from squadline.api.deps import get_current_principal, guarded, refresh_session
from squadline.core.database import get_db
from squadline.core.serialization import SafeRoute
from squadline.models import Team, TeamRequest, User, UserTeam
from squadline.schemas.auth import Principal
from squadline.schemas.team import (
    InvitationCreate,
    JoinRequestCreate,
    MemberAdd,
    MemberOut,
    RejectRequest,
    RosterResponse,
    TeamCreate,
    TeamOut,
    TeamRequestOut,
)
from squadline.services import teams

logger = logging.getLogger(__name__)
router = APIRouter(route_class=SafeRoute)

TEAM_CREATORS = ("manager", "admin")
TEAM_STAFF = ("manager", "assistant_manager", "admin", "athlete_admin")


def _member_out(membership: UserTeam, user: User) -> MemberOut:
    return MemberOut(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=membership.role,
        status=membership.status,
        joined_at=membership.joined_at,
    )


@router.get("", response_model=list[TeamOut])
def list_teams(
    db: Annotated[Session, Depends(get_db)],
    _principal: Annotated[Principal, Depends(refresh_session)],
) -> list[Team]:
    return db.query(Team).order_by(Team.id).all()


@router.post(
    "",
    response_model=TeamOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=guarded(*TEAM_CREATORS),
)
def create_team(
    body: TeamCreate,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> Team:
    """Create a team; the caller becomes its owner and manager."""
    return teams.create_team(db, request.state.principal, body)


@router.get("/{team_id}/members", response_model=RosterResponse)
def list_members(
    team_id: int,
    db: Annotated[Session, Depends(get_db)],
    _principal: Annotated[Principal, Depends(refresh_session)],
) -> RosterResponse:
    team = teams.get_team(db, team_id)
    members = [_member_out(m, u) for m, u in teams.list_members(db, team_id)]
    return RosterResponse(team_id=team.id, team_name=team.name, members=members)


@router.post(
    "/{team_id}/members",
    response_model=MemberOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=guarded(*TEAM_STAFF),
)
def add_member(
    team_id: int,
    body: MemberAdd,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> MemberOut:
    membership = teams.add_member(db, request.state.principal, team_id, body.user_id, body.role)
    return _member_out(membership, db.get(User, membership.user_id))


@router.post(
    "/{team_id}/join-requests",
    response_model=TeamRequestOut,
    status_code=status.HTTP_201_CREATED,
)
def request_to_join(
    team_id: int,
    body: JoinRequestCreate,
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> TeamRequest:
    """Ask to join a team as an athlete; the team's managers are notified."""
    return teams.create_join_request(db, principal, team_id, body.message)


@router.get(
    "/{team_id}/join-requests",
    response_model=list[TeamRequestOut],
    dependencies=guarded(*TEAM_STAFF),
)
def list_join_requests(
    team_id: int,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> list[TeamRequest]:
    return teams.pending_join_requests(db, request.state.principal, team_id)


@router.post(
    "/join-requests/{request_id}/approve",
    response_model=TeamRequestOut,
    dependencies=guarded(*TEAM_STAFF),
)
def approve_join_request(
    request_id: int,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> TeamRequest:
    return teams.review_join_request(db, request.state.principal, request_id, approve=True)


@router.post(
    "/join-requests/{request_id}/reject",
    response_model=TeamRequestOut,
    dependencies=guarded(*TEAM_STAFF),
)
def reject_join_request(
    request_id: int,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    body: RejectRequest | None = None,
) -> TeamRequest:
    reason = body.reason if body else None
    return teams.review_join_request(
        db, request.state.principal, request_id, approve=False, reason=reason
    )


@router.post(
    "/{team_id}/invitations",
    response_model=TeamRequestOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=guarded(*TEAM_STAFF),
)
def invite(
    team_id: int,
    body: InvitationCreate,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> TeamRequest:
    """Invite a registered user by email; assistant managers may only invite athletes."""
    return teams.invite_user(db, request.state.principal, team_id, body)


@router.post("/invitations/{request_id}/accept", response_model=TeamRequestOut)
def accept_invitation(
    request_id: int,
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> TeamRequest:
    return teams.respond_to_invitation(db, principal, request_id, accept=True)


@router.post("/invitations/{request_id}/decline", response_model=TeamRequestOut)
def decline_invitation(
    request_id: int,
    db: Annotated[Session, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> TeamRequest:
    return teams.respond_to_invitation(db, principal, request_id, accept=False)
