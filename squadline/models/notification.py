"""In-app notifications delivered to unified users."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from squadline.models.base import Base, created_at_column

NOTIFICATION_TYPES = (
    "join_request",
    "invitation",
    "request_accepted",
    "request_denied",
    "team_announcement",
)
NOTIFICATION_STATUSES = ("unread", "read", "archived")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    sender_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="unread", server_default="unread")
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
