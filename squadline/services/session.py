"""Turn verified token claims into the request principal."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from squadline.core.errors import unauthorized
from squadline.schemas.auth import Principal
from squadline.services.credentials import CredentialOrigin, spec_for
from squadline.services.roles import effective_roles

logger = logging.getLogger(__name__)


def extract_token(bearer_token: str | None, cookie_token: str | None) -> str | None:
    """The Authorization: Bearer token wins; the auth cookie is the fallback."""
    for candidate in (bearer_token, cookie_token):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def origin_from_claim(role_claim: str) -> CredentialOrigin:
    """Legacy origin tags select their own table; anything else is a users-table token."""
    try:
        return CredentialOrigin(role_claim)
    except ValueError:
        return CredentialOrigin.USER


def load_principal(db: Session, claims: dict[str, Any]) -> Principal:
    """
    Load the identity referenced by the token and build the principal.

    The record is re-read on every request, so a token for a deleted identity
    is rejected even though its signature is still valid.
    """
    origin = origin_from_claim(claims["role"])
    spec = spec_for(origin)
    record = db.get(spec.model, claims["userId"])
    if record is None:
        logger.warning(
            "Token references missing %s id=%s", origin.value, claims["userId"]
        )
        raise unauthorized("User no longer exists")

    if origin is CredentialOrigin.USER:
        roles = effective_roles(record)
        primary_role = record.role or roles[0]
    else:
        roles = [origin.value]
        primary_role = origin.value

    first_name = getattr(record, "first_name", None)
    if first_name is None and origin is CredentialOrigin.TEAM:
        first_name = record.name
    return Principal(
        id=record.id,
        email=record.email or "",
        first_name=first_name,
        last_name=getattr(record, "last_name", None),
        roles=roles,
        role=primary_role,
        origin=origin.value,
    )
