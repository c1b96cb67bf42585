"""Effective role computation and role assignment for unified users."""

import logging

from sqlalchemy.orm import Session

from squadline.models.user import Role, User

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({"admin", "athlete_admin"})

# Vocabulary seeded by the initial migration; role labels remain free text.
DEFAULT_ROLES: dict[str, str] = {
    "user": "Regular user with basic permissions",
    "athlete": "Can participate in tournaments as a player",
    "manager": "Can manage teams and their rosters",
    "assistant_manager": "Can help manage a team roster",
    "organizer": "Can create and manage leagues and tournaments",
    "athlete_admin": "Administrator who also plays as an athlete",
    "admin": "Has all system permissions",
}


def effective_roles(user: User) -> list[str]:
    """
    Role set used for authorization: the primary role column first, then any
    user_roles rows. Never empty; with no join rows the primary role is the only entry.
    """
    names: list[str] = []
    for name in [user.role or "user", *(r.name for r in user.roles)]:
        if name and name not in names:
            names.append(name)
    return names


def get_or_create_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if role is None:
        role = Role(name=name, description=DEFAULT_ROLES.get(name))
        db.add(role)
        db.flush()
        logger.info("Created role %s", name)
    return role


def assign_role(db: Session, user: User, name: str) -> None:
    """Attach role `name` to user through user_roles (no-op if already present)."""
    role = get_or_create_role(db, name)
    if role not in user.roles:
        user.roles.append(role)
        db.flush()
