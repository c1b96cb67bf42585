"""
Credential resolution across the unified users table and the legacy tables.

Every authenticable record is one of four origins. RESOLUTION_ORDER is the
single, fixed precedence list: the first table containing the email decides
which hash is checked, even when a later table would have accepted the password.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from squadline.core.errors import ApiError, invalid_credentials
from squadline.core.security import verify_password
from squadline.models.legacy import Athlete, Manager, Team
from squadline.models.user import User
from squadline.services.roles import ADMIN_ROLES

logger = logging.getLogger(__name__)

# Fields copied from a matching athletes row onto an admin login.
ADMIN_ATHLETE_MERGE_FIELDS = ("first_name", "last_name", "position")


class CredentialOrigin(str, Enum):
    USER = "user"
    ATHLETE = "athlete"
    MANAGER = "manager"
    TEAM = "team"


@dataclass(frozen=True)
class OriginSpec:
    """How one credential table is queried, verified and projected for the client."""

    origin: CredentialOrigin
    model: type
    password_attr: str
    # field name -> max length (None for integer ids)
    profile_fields: dict[str, int | None] = field(default_factory=dict)
    # Query errors on this table are logged and treated as "not found".
    tolerate_errors: bool = False


RESOLUTION_ORDER: tuple[OriginSpec, ...] = (
    OriginSpec(
        CredentialOrigin.USER,
        User,
        "password",
        {"first_name": 100, "last_name": 100, "position": 10},
    ),
    OriginSpec(
        CredentialOrigin.ATHLETE,
        Athlete,
        "password_hash",
        {"first_name": 100, "last_name": 100, "position": 10},
    ),
    OriginSpec(
        CredentialOrigin.MANAGER,
        Manager,
        "password_hash",
        {"first_name": 100, "last_name": 100, "team_id": None},
        tolerate_errors=True,
    ),
    OriginSpec(
        CredentialOrigin.TEAM,
        Team,
        "password_hash",
        {"name": 200, "logo_url": 500},
    ),
)

ORIGIN_SPECS: dict[CredentialOrigin, OriginSpec] = {s.origin: s for s in RESOLUTION_ORDER}


class InvalidCredentialsError(ApiError):
    """Unknown email or wrong password; deliberately indistinguishable."""

    def __init__(self) -> None:
        err = invalid_credentials()
        super().__init__(err.message, err.status_code, err.code)


@dataclass
class ResolvedIdentity:
    origin: CredentialOrigin
    record: Any
    # Extra profile values merged in from another table (admin + athlete case).
    merged_profile: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> int:
        return int(self.record.id)

    @property
    def token_role(self) -> str:
        return self.origin.value


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


def spec_for(origin: CredentialOrigin | str) -> OriginSpec:
    return ORIGIN_SPECS[CredentialOrigin(origin)]


def _find_by_email(db: Session, spec: OriginSpec, email: str) -> Any | None:
    try:
        return db.query(spec.model).filter(spec.model.email == email).first()
    except SQLAlchemyError as e:
        if not spec.tolerate_errors:
            raise
        db.rollback()
        logger.warning(
            "Skipping %s table during credential lookup: %s", spec.origin.value, e
        )
        return None


def _admin_athlete_profile(db: Session, email: str) -> dict[str, Any]:
    # Legacy compatibility: admins whose player profile still lives in athletes.
    athlete = db.query(Athlete).filter(Athlete.email == email).first()
    if athlete is None:
        return {}
    logger.debug("Admin login %s merged with athlete record %s", email, athlete.id)
    return {name: getattr(athlete, name) for name in ADMIN_ATHLETE_MERGE_FIELDS}


def find_identity(db: Session, email: str) -> ResolvedIdentity | None:
    """Probe the credential tables in precedence order; first table holding the email wins."""
    for spec in RESOLUTION_ORDER:
        record = _find_by_email(db, spec, email)
        if record is None:
            continue
        identity = ResolvedIdentity(origin=spec.origin, record=record)
        if spec.origin is CredentialOrigin.USER and record.role in ADMIN_ROLES:
            identity.merged_profile = _admin_athlete_profile(db, email)
        return identity
    return None


def resolve_credentials(db: Session, email: str | None, password: str) -> ResolvedIdentity:
    """
    Return the verified identity for email/password.

    Raises InvalidCredentialsError when no table holds the email or when the
    password does not match the hash of the table that does.
    """
    normalized = normalize_email(email)
    identity = find_identity(db, normalized)
    if identity is None:
        logger.warning("Login failed: no account for %s", normalized)
        raise InvalidCredentialsError()

    spec = spec_for(identity.origin)
    stored_hash = getattr(identity.record, spec.password_attr)
    if not verify_password(password, stored_hash):
        logger.warning("Login failed: bad password for %s (%s)", normalized, identity.origin.value)
        raise InvalidCredentialsError()
    return identity


def email_in_use(db: Session, email: str) -> bool:
    """True if any credential table already holds this email."""
    normalized = normalize_email(email)
    return any(_find_by_email(db, spec, normalized) is not None for spec in RESOLUTION_ORDER)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _clip(value: Any, limit: int | None) -> Any:
    if value is None:
        return None if limit is None else ""
    if limit is None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    return str(value)[:limit]


def sanitize_profile(
    record: Any,
    origin: CredentialOrigin | str,
    role: str | None = None,
    merged: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Client-safe projection of a credential record; never includes password fields."""
    spec = spec_for(origin)
    source = {name: getattr(record, name, None) for name in spec.profile_fields}
    if merged:
        source.update({k: v for k, v in merged.items() if v is not None})
    profile: dict[str, Any] = {
        "id": int(record.id),
        "email": str(record.email or "")[:255],
        "role": str(role or spec.origin.value)[:50],
    }
    for name, limit in spec.profile_fields.items():
        profile[_camel(name)] = _clip(source.get(name), limit)
    return profile
