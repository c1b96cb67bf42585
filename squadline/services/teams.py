"""
Team rosters and the membership workflow.

Membership lives in user_teams, one row per (user, team, role). Users ask to
join through a join request that team staff approve or reject; staff invite
users, who accept or decline. Every decision notifies the other side.
Only unified users take part; legacy-origin principals are refused.
"""

import logging
from datetime import UTC, datetime

from fastapi import status
from sqlalchemy.orm import Session

from squadline.core.errors import ApiError, conflict, not_found
from squadline.models import Team, TeamRequest, User, UserTeam
from squadline.models.membership import TEAM_STAFF_ROLES
from squadline.schemas.auth import Principal
from squadline.schemas.team import InvitationCreate, TeamCreate
from squadline.services.notifications import archive_matching, notify
from squadline.services.roles import ADMIN_ROLES, assign_role

logger = logging.getLogger(__name__)


def _display_name(user: User) -> str:
    name = " ".join(part for part in (user.first_name, user.last_name) if part)
    return name or user.email


def _now() -> datetime:
    return datetime.now(UTC)


def require_user_account(principal: Principal) -> None:
    if principal.origin != "user":
        raise ApiError(
            "Team membership requires a user account",
            status.HTTP_403_FORBIDDEN,
            "USER_ACCOUNT_REQUIRED",
        )


def get_team(db: Session, team_id: int) -> Team:
    team = db.get(Team, team_id)
    if team is None:
        raise not_found("Team")
    return team


def active_memberships(db: Session, user_id: int, team_id: int) -> list[UserTeam]:
    return (
        db.query(UserTeam)
        .filter(
            UserTeam.user_id == user_id,
            UserTeam.team_id == team_id,
            UserTeam.status == "active",
        )
        .all()
    )


def staff_user_ids(db: Session, team_id: int) -> list[int]:
    rows = (
        db.query(UserTeam.user_id)
        .filter(
            UserTeam.team_id == team_id,
            UserTeam.role.in_(TEAM_STAFF_ROLES),
            UserTeam.status == "active",
        )
        .distinct()
        .order_by(UserTeam.user_id)
        .all()
    )
    return [user_id for (user_id,) in rows]


def staff_role(db: Session, principal: Principal, team_id: int) -> str | None:
    """The principal's strongest staff role in the team; admins count as "admin"."""
    if ADMIN_ROLES.intersection(principal.roles):
        return "admin"
    if principal.origin != "user":
        return None
    held = {m.role for m in active_memberships(db, principal.id, team_id)}
    for role in TEAM_STAFF_ROLES:
        if role in held:
            return role
    return None


def require_team_staff(db: Session, principal: Principal, team_id: int) -> str:
    role = staff_role(db, principal, team_id)
    if role is None:
        logger.warning("id=%s is not staff of team %s", principal.id, team_id)
        raise ApiError(
            "Only team managers can perform this action",
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
        )
    return role


def _check_grantable(granter_role: str, role: str) -> None:
    # assistant managers may not promote anyone to staff
    if granter_role == "assistant_manager" and role in TEAM_STAFF_ROLES:
        raise ApiError(
            "Assistant managers cannot grant manager roles",
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
        )


def _grant(db: Session, user: User, team_id: int, role: str) -> UserTeam:
    membership = UserTeam(user_id=user.id, team_id=team_id, role=role, status="active")
    db.add(membership)
    if role in TEAM_STAFF_ROLES:
        # route guards check account roles, so team staff also need the account role
        assign_role(db, user, role)
    return membership


def create_team(db: Session, principal: Principal, body: TeamCreate) -> Team:
    """Create a team owned and managed by the calling user."""
    require_user_account(principal)
    creator = db.get(User, principal.id)
    if creator is None:
        raise not_found("User")
    team = Team(**body.model_dump(), creator_id=creator.id)
    db.add(team)
    db.flush()
    db.add(UserTeam(user_id=creator.id, team_id=team.id, role="owner", status="active"))
    _grant(db, creator, team.id, "manager")
    db.commit()
    db.refresh(team)
    logger.info("Team %s created by user_id=%s", team.id, creator.id)
    return team


def list_members(db: Session, team_id: int) -> list[tuple[UserTeam, User]]:
    return (
        db.query(UserTeam, User)
        .join(User, User.id == UserTeam.user_id)
        .filter(UserTeam.team_id == team_id)
        .order_by(UserTeam.id)
        .all()
    )


def add_member(db: Session, principal: Principal, team_id: int, user_id: int, role: str) -> UserTeam:
    """Staff add a user to the roster directly."""
    team = get_team(db, team_id)
    granter_role = require_team_staff(db, principal, team_id)
    _check_grantable(granter_role, role)
    user = db.get(User, user_id)
    if user is None:
        raise not_found("User")
    if any(m.role == role for m in active_memberships(db, user_id, team_id)):
        raise conflict("User is already a member of this team", "ALREADY_MEMBER")
    membership = _grant(db, user, team_id, role)
    notify(
        db,
        user.id,
        "team_announcement",
        f"You were added to {team.name} as {role}",
        team_id=team_id,
        sender_user_id=principal.id if principal.origin == "user" else None,
    )
    db.commit()
    db.refresh(membership)
    logger.info("user_id=%s added to team %s as %s by id=%s", user_id, team_id, role, principal.id)
    return membership


def create_join_request(
    db: Session, principal: Principal, team_id: int, message: str | None
) -> TeamRequest:
    """A user asks to join a team; every staff member is notified."""
    require_user_account(principal)
    team = get_team(db, team_id)
    user = db.get(User, principal.id)
    if user is None:
        raise not_found("User")
    if active_memberships(db, user.id, team_id):
        raise conflict("You are already a member of this team", "ALREADY_MEMBER")
    pending = (
        db.query(TeamRequest)
        .filter(
            TeamRequest.kind == "join_request",
            TeamRequest.user_id == user.id,
            TeamRequest.team_id == team_id,
            TeamRequest.status == "pending",
        )
        .first()
    )
    if pending is not None:
        raise conflict("You already have a pending request for this team", "REQUEST_EXISTS")
    managers = staff_user_ids(db, team_id)
    if not managers:
        raise ApiError(
            "This team has no managers to review the request",
            status.HTTP_404_NOT_FOUND,
            "NO_MANAGERS",
        )

    request = TeamRequest(
        kind="join_request", user_id=user.id, team_id=team_id, role="athlete", message=message
    )
    db.add(request)
    db.flush()
    text = f"{_display_name(user)} has requested to join {team.name}"
    if message:
        text = f"{text}: {message}"
    for manager_id in managers:
        notify(
            db,
            manager_id,
            "join_request",
            text,
            team_id=team_id,
            sender_user_id=user.id,
            details={"requestId": request.id},
        )
    db.commit()
    db.refresh(request)
    logger.info(
        "Join request %s: user_id=%s -> team %s (%s managers notified)",
        request.id,
        user.id,
        team_id,
        len(managers),
    )
    return request


def pending_join_requests(db: Session, principal: Principal, team_id: int) -> list[TeamRequest]:
    get_team(db, team_id)
    require_team_staff(db, principal, team_id)
    return (
        db.query(TeamRequest)
        .filter(
            TeamRequest.kind == "join_request",
            TeamRequest.team_id == team_id,
            TeamRequest.status == "pending",
        )
        .order_by(TeamRequest.id)
        .all()
    )


def _pending_request(db: Session, request_id: int, kind: str) -> TeamRequest:
    request = db.get(TeamRequest, request_id)
    if request is None or request.kind != kind:
        raise not_found("Join request" if kind == "join_request" else "Invitation")
    if request.status != "pending":
        raise ApiError(
            "This request has already been processed",
            status.HTTP_400_BAD_REQUEST,
            "ALREADY_PROCESSED",
        )
    return request


def _close(request: TeamRequest, outcome: str, reviewer_id: int) -> None:
    request.status = outcome
    request.reviewed_by = reviewer_id
    request.reviewed_at = _now()


def review_join_request(
    db: Session,
    principal: Principal,
    request_id: int,
    approve: bool,
    reason: str | None = None,
) -> TeamRequest:
    """Approve (the requester joins as request.role) or reject a pending join request."""
    require_user_account(principal)
    request = _pending_request(db, request_id, "join_request")
    require_team_staff(db, principal, request.team_id)
    team = get_team(db, request.team_id)
    requester = db.get(User, request.user_id)
    if requester is None:
        raise not_found("User")

    if approve:
        if active_memberships(db, requester.id, team.id):
            raise conflict("User is already a member of this team", "ALREADY_MEMBER")
        _grant(db, requester, team.id, request.role)
        _close(request, "approved", principal.id)
        notify(
            db,
            requester.id,
            "request_accepted",
            f"Your request to join {team.name} has been approved",
            team_id=team.id,
            sender_user_id=principal.id,
            details={"requestId": request.id},
        )
    else:
        _close(request, "rejected", principal.id)
        text = f"Your request to join {team.name} has been declined"
        if reason:
            text = f"{text}: {reason}"
        notify(
            db,
            requester.id,
            "request_denied",
            text,
            team_id=team.id,
            sender_user_id=principal.id,
            details={"requestId": request.id, "reason": reason},
        )
    archive_matching(db, staff_user_ids(db, team.id), "join_request", team.id, requester.id)
    db.commit()
    db.refresh(request)
    logger.info(
        "Join request %s %s by user_id=%s", request.id, request.status, principal.id
    )
    return request


def invite_user(
    db: Session, principal: Principal, team_id: int, body: InvitationCreate
) -> TeamRequest:
    """Staff invite a user (by email) to join the team."""
    require_user_account(principal)
    team = get_team(db, team_id)
    granter_role = require_team_staff(db, principal, team_id)
    _check_grantable(granter_role, body.role)
    invitee = db.query(User).filter(User.email == body.email).first()
    if invitee is None:
        raise not_found("User")
    if active_memberships(db, invitee.id, team_id):
        raise conflict("User is already a member of this team", "ALREADY_MEMBER")
    pending = (
        db.query(TeamRequest)
        .filter(
            TeamRequest.kind == "invitation",
            TeamRequest.user_id == invitee.id,
            TeamRequest.team_id == team_id,
            TeamRequest.status == "pending",
        )
        .first()
    )
    if pending is not None:
        raise conflict("User already has a pending invitation to this team", "REQUEST_EXISTS")

    invitation = TeamRequest(
        kind="invitation",
        user_id=invitee.id,
        team_id=team_id,
        invited_by=principal.id,
        role=body.role,
        message=body.message,
    )
    db.add(invitation)
    db.flush()
    text = f"You have been invited to join {team.name} as {body.role}"
    if body.message:
        text = f"{text}: {body.message}"
    notify(
        db,
        invitee.id,
        "invitation",
        text,
        team_id=team_id,
        sender_user_id=principal.id,
        details={"requestId": invitation.id, "role": body.role},
    )
    db.commit()
    db.refresh(invitation)
    logger.info("Invitation %s: team %s -> user_id=%s", invitation.id, team_id, invitee.id)
    return invitation


def respond_to_invitation(
    db: Session, principal: Principal, request_id: int, accept: bool
) -> TeamRequest:
    """The invited user accepts (joins as invitation.role) or declines."""
    require_user_account(principal)
    invitation = _pending_request(db, request_id, "invitation")
    if invitation.user_id != principal.id:
        raise ApiError(
            "Only the invited user can respond to this invitation",
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
        )
    team = get_team(db, invitation.team_id)
    invitee = db.get(User, invitation.user_id)
    if invitee is None:
        raise not_found("User")

    if accept:
        if not any(m.role == invitation.role for m in active_memberships(db, invitee.id, team.id)):
            _grant(db, invitee, team.id, invitation.role)
        _close(invitation, "approved", invitee.id)
    else:
        _close(invitation, "rejected", invitee.id)
    if invitation.invited_by is not None:
        verb = "accepted" if accept else "declined"
        notify(
            db,
            invitation.invited_by,
            "request_accepted" if accept else "request_denied",
            f"{_display_name(invitee)} has {verb} your invitation to join {team.name}",
            team_id=team.id,
            sender_user_id=invitee.id,
            details={"requestId": invitation.id},
        )
        archive_matching(db, [invitee.id], "invitation", team.id, invitation.invited_by)
    db.commit()
    db.refresh(invitation)
    logger.info("Invitation %s %s by user_id=%s", invitation.id, invitation.status, invitee.id)
    return invitation
