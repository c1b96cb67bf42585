"""
Deprecated credential tables kept for accounts not yet migrated to users.

Each table carries its own email and password_hash; login still probes them
after the users table. New accounts must not be created here.
"""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String

from squadline.models.base import Base, created_at_column, updated_at_column

ATHLETE_POSITIONS = ("FW", "MD", "DF", "GK")


class Athlete(Base):
    __tablename__ = "athletes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    dob = Column(Date, nullable=True)
    height = Column(Float, nullable=True)
    position = Column(String(2), nullable=True)
    country = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()


class Manager(Base):
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    playing_style = Column(String(32), nullable=True)
    preferred_formation = Column(String(20), nullable=True)
    experience = Column(Integer, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()


class Team(Base):
    """Team record; teams with an email and password_hash can log in directly."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    logo_url = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    abbreviation = Column(String(3), nullable=True)
    founded_year = Column(Integer, nullable=True)
    city = Column(String(100), nullable=True)
    nickname = Column(String(100), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()
