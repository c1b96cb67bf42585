"""SQLAlchemy ORM models."""

from squadline.models.base import Base
from squadline.models.competition import League, Match
from squadline.models.legacy import Athlete, Manager, Team
from squadline.models.membership import TeamRequest, UserTeam
from squadline.models.notification import Notification
from squadline.models.user import Role, User, UserRole
from squadline.models import hooks  # noqa: F401  (registers password hashing events)

__all__ = [
    "Athlete",
    "Base",
    "League",
    "Manager",
    "Match",
    "Notification",
    "Role",
    "Team",
    "TeamRequest",
    "User",
    "UserRole",
    "UserTeam",
]
