"""ORM models for unified user accounts and their role memberships."""

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from squadline.models.base import Base, created_at_column, updated_at_column

USER_STATUSES = ("active", "inactive", "suspended")


class User(Base):
    """
    Unified account table; the only credential origin new accounts are created in.

    role is the primary free-text role label ('user', 'admin', 'athlete_admin', ...).
    password is null for accounts provisioned through an external OAuth provider.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="user", server_default="user")
    status = Column(String(16), nullable=False, default="active", server_default="active")
    first_name = Column(String(100), nullable=True)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    position = Column(String(10), nullable=True)
    country = Column(String(100), nullable=True)
    dob = Column(Date, nullable=True)
    height = Column(Float, nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    roles = relationship(
        "Role",
        secondary="user_roles",
        lazy="selectin",
        order_by="Role.id",
    )


class Role(Base):
    """Named permission label, many-to-many with User through user_roles."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(String(255), nullable=True)


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role_id", name="user_role_unique"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_id = Column(
        Integer,
        ForeignKey("roles.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
