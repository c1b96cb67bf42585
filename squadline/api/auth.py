"""Login, logout, registration and current-user endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from squadline.api.deps import get_current_principal, get_login_limiter, guarded, refresh_session
from squadline.core.cookies import clear_auth_cookie, set_auth_cookie
from squadline.core.database import get_db
from squadline.core.errors import ApiError, auth_failure, missing_credentials
from squadline.core.security import issue_token
from squadline.core.serialization import SafeRoute
from squadline.models.user import User
from squadline.schemas.auth import (
    EMAIL_RE,
    AthleteRegisterRequest,
    CheckEmailResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    Principal,
    RegisteredUser,
    RegisterRequest,
    UserListItem,
    UsersListResponse,
)
from squadline.services.credentials import (
    CredentialOrigin,
    email_in_use,
    normalize_email,
    resolve_credentials,
    sanitize_profile,
)
from squadline.services.rate_limit import LoginRateLimiter, login_key
from squadline.services.roles import assign_role, effective_roles

logger = logging.getLogger(__name__)
router = APIRouter(route_class=SafeRoute)


def _email_taken() -> ApiError:
    return ApiError("Email is already in use", status.HTTP_409_CONFLICT, "EMAIL_IN_USE")


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    limiter: Annotated[LoginRateLimiter, Depends(get_login_limiter)],
) -> LoginResponse:
    """
    Authenticate with email and password across all credential tables.

    On success the token is set as an http-only cookie and also returned in
    the body for clients that send it as Authorization: Bearer <token>.
    """
    if not body.email or not body.password:
        raise missing_credentials()

    key = login_key(request.client.host if request.client else None, body.email)
    if not limiter.check_and_increment(key):
        raise ApiError(
            "Too many failed login attempts. Please try again later.",
            status.HTTP_429_TOO_MANY_REQUESTS,
            "AUTH_RATE_LIMIT",
        )

    try:
        identity = resolve_credentials(db, body.email, body.password)
    except SQLAlchemyError as e:
        logger.exception("Credential lookup failed for %s", normalize_email(body.email))
        raise auth_failure() from e

    limiter.reset(key)
    token = issue_token(identity.id, identity.token_role)
    set_auth_cookie(response, token)

    display_role = (
        identity.record.role
        if identity.origin is CredentialOrigin.USER
        else identity.origin.value
    )
    user = sanitize_profile(
        identity.record, identity.origin, display_role, identity.merged_profile
    )
    logger.info(
        "Successful login for %s (%s) id=%s",
        normalize_email(body.email),
        identity.origin.value,
        identity.id,
    )
    return LoginResponse(token=token, user=user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_principal)],
)
def logout(request: Request, response: Response) -> MessageResponse:
    """Clear the auth cookie. The token itself stays valid until it expires."""
    clear_auth_cookie(response)
    principal = getattr(request.state, "principal", None)
    logger.info("Logged out id=%s", principal.id if principal else None)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=Principal)
def me(principal: Annotated[Principal, Depends(refresh_session)]) -> Principal:
    """Return the current principal (refreshes the token when close to expiry)."""
    return principal


@router.get("/check-email", response_model=CheckEmailResponse)
def check_email(
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[str | None, Query(max_length=255)] = None,
) -> CheckEmailResponse:
    """Report only whether the email is registered in any credential table."""
    normalized = normalize_email(email)
    if not normalized or not EMAIL_RE.match(normalized):
        raise ApiError("Invalid or missing email", status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
    return CheckEmailResponse(exists=email_in_use(db, normalized))


@router.post("/register", response_model=RegisteredUser, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> RegisteredUser:
    """Create a users-table account. The password is hashed on insert."""
    if email_in_use(db, body.email):
        raise _email_taken()
    user = User(email=body.email, password=body.password, role=body.role)
    db.add(user)
    db.flush()
    assign_role(db, user, body.role)
    db.commit()
    logger.info("Registered user %s id=%s role=%s", user.email, user.id, user.role)
    return RegisteredUser(id=user.id, email=user.email, role=user.role)


@router.post("/register/athlete", status_code=status.HTTP_201_CREATED)
def register_athlete(
    body: AthleteRegisterRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create an athlete account in the users table and sign it in."""
    if email_in_use(db, body.email):
        raise _email_taken()
    user = User(
        email=body.email,
        password=body.password,
        role="athlete",
        first_name=body.first_name,
        middle_name=body.middle_name,
        last_name=body.last_name,
        dob=body.dob,
        height=body.height,
        position=body.position,
        country=body.country,
    )
    db.add(user)
    db.flush()
    assign_role(db, user, "athlete")
    db.commit()

    token = issue_token(user.id, CredentialOrigin.USER.value)
    set_auth_cookie(response, token)
    logger.info("Registered athlete %s id=%s", user.email, user.id)
    return {
        "success": True,
        "message": "Athlete registered successfully",
        "token": token,
        "user": sanitize_profile(user, CredentialOrigin.USER, user.role),
    }


@router.get(
    "/users",
    response_model=UsersListResponse,
    dependencies=guarded("admin"),
)
def list_users(db: Annotated[Session, Depends(get_db)]) -> UsersListResponse:
    """List all unified-table users with their effective roles (admin only)."""
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(
        users=[
            UserListItem(
                id=u.id,
                email=u.email,
                role=u.role,
                roles=effective_roles(u),
                status=u.status,
            )
            for u in users
        ]
    )
