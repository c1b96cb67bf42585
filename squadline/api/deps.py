"""
Auth dependencies: session (get_current_principal), sliding refresh
(refresh_session) and role guards (require_role).

Guards read the principal stored on request.state, so they must run after
get_current_principal; use guarded() to declare both in the right order.
"""

import logging
from collections.abc import Iterable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from squadline.core.config import get_settings
from squadline.core.cookies import set_auth_cookie
from squadline.core.database import get_db
from squadline.core.errors import auth_failure, forbidden, token_expired, unauthorized
from squadline.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    issue_token,
    token_remaining_seconds,
    verify_token,
)
from squadline.schemas.auth import Principal
from squadline.services.rate_limit import LoginRateLimiter
from squadline.services.session import extract_token, load_principal

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Token refresh only runs for requests that do not change state.
REFRESH_METHODS = frozenset({"GET", "HEAD"})


def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> Principal:
    """Dependency: require a valid bearer token (header or cookie) and return the principal."""
    settings = get_settings()
    token = extract_token(
        credentials.credentials if credentials else None,
        request.cookies.get(settings.AUTH_COOKIE_NAME),
    )
    if token is None:
        raise unauthorized("No token provided")
    try:
        claims = verify_token(token)
    except TokenExpiredError:
        logger.info("Rejected expired token on %s", request.url.path)
        raise token_expired()
    except TokenInvalidError as e:
        logger.warning("Rejected invalid token on %s: %s", request.url.path, e)
        raise unauthorized("Invalid token")
    try:
        principal = load_principal(db, claims)
    except SQLAlchemyError as e:
        logger.exception("Could not load principal for userId=%s", claims.get("userId"))
        raise auth_failure() from e

    request.state.principal = principal
    request.state.auth_token = token
    request.state.token_claims = claims
    return principal


def refresh_session(
    request: Request,
    response: Response,
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """
    Dependency for read routes: authenticate, then re-issue the token when
    less than TOKEN_REFRESH_THRESHOLD_HOURS of validity remain. The new token
    goes into the auth cookie and the refresh header. Failures here are
    logged and never affect the request.
    """
    if request.method not in REFRESH_METHODS:
        return principal
    try:
        settings = get_settings()
        claims = request.state.token_claims
        remaining = token_remaining_seconds(claims)
        if remaining < settings.TOKEN_REFRESH_THRESHOLD_HOURS * 3600:
            new_token = issue_token(claims["userId"], claims["role"])
            set_auth_cookie(response, new_token)
            response.headers[settings.REFRESH_HEADER_NAME] = new_token
            logger.info(
                "Refreshed token for userId=%s role=%s (%sh remaining)",
                claims["userId"],
                claims["role"],
                remaining // 3600,
            )
    except Exception:
        logger.exception("Token refresh failed; continuing with the current token")
    return principal


class RoleGuard:
    """Allow the request when the principal holds at least one of `roles`."""

    def __init__(self, roles: Iterable[str]) -> None:
        self.roles = tuple(roles)

    def __call__(self, request: Request) -> Principal:
        principal: Principal | None = getattr(request.state, "principal", None)
        if principal is None:
            raise unauthorized()
        if not any(role in principal.roles for role in self.roles):
            logger.warning(
                "Access denied for %s id=%s on %s: needs one of %s, has %s",
                principal.origin,
                principal.id,
                request.url.path,
                ", ".join(self.roles),
                ", ".join(principal.roles),
            )
            raise forbidden()
        return principal


def require_role(roles: str | Iterable[str]) -> RoleGuard:
    """Guard factory; accepts one role name or several."""
    if isinstance(roles, str):
        return RoleGuard((roles,))
    return RoleGuard(roles)


def guarded(*roles: str) -> list:
    """Route dependencies: authenticate first, then check roles."""
    return [Depends(get_current_principal), Depends(require_role(roles))]


@lru_cache
def get_login_limiter() -> LoginRateLimiter:
    """Process-wide login limiter (Redis-backed when RATE_LIMIT_REDIS_URL is set)."""
    return LoginRateLimiter.from_settings(get_settings())
