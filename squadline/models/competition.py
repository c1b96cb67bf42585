"""ORM models for leagues and the matches recorded in them."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from squadline.models.base import Base, created_at_column

MATCH_STATUSES = ("scheduled", "in-progress", "finished", "cancelled")


class League(Base):
    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    season = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = created_at_column()


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(
        Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=True, index=True
    )
    home_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    status = Column(String(16), nullable=False, default="scheduled", server_default="scheduled")
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
