"""Team membership of unified users and the join-request / invitation workflow."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from squadline.models.base import Base, created_at_column, updated_at_column

TEAM_ROLES = ("owner", "manager", "assistant_manager", "coach", "athlete")
# Team roles allowed to manage the roster and answer join requests.
TEAM_STAFF_ROLES = ("manager", "assistant_manager")
MEMBERSHIP_STATUSES = ("active", "inactive", "pending")

REQUEST_KINDS = ("join_request", "invitation")
REQUEST_STATUSES = ("pending", "approved", "rejected", "cancelled")


class UserTeam(Base):
    """One role a user holds in a team. A user may hold several roles in the same team."""

    __tablename__ = "user_teams"
    __table_args__ = (UniqueConstraint("user_id", "team_id", "role", name="user_team_role_unique"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id = Column(
        Integer,
        ForeignKey("teams.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(32), nullable=False, default="athlete", server_default="athlete")
    status = Column(String(16), nullable=False, default="active", server_default="active")
    joined_at = created_at_column()
    updated_at = updated_at_column()


class TeamRequest(Base):
    """
    Pending membership change between a user and a team.

    kind=join_request: user_id asked to join; team staff approve or reject.
    kind=invitation: staff member invited_by invited user_id; that user accepts or declines.
    """

    __tablename__ = "team_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False, default="join_request")
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # team role granted when the request is approved or the invitation accepted
    role = Column(String(32), nullable=False, default="athlete", server_default="athlete")
    message = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", server_default="pending")
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
