"""Shared test helpers: in-memory SQLite database, seeded accounts and an API client."""

from collections.abc import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from squadline.api.deps import get_login_limiter
from squadline.core.database import get_db
from squadline.main import app
from squadline.models import Athlete, Base, Manager, Team, User, UserTeam
from squadline.services.rate_limit import InMemoryAttemptStore, LoginRateLimiter
from squadline.services.roles import assign_role


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_user(
    db: Session,
    email: str = "player@example.com",
    password: str | None = "correct-horse",
    role: str = "user",
    extra_roles: tuple[str, ...] = (),
    **fields: object,
) -> User:
    user = User(email=email, password=password, role=role, **fields)
    db.add(user)
    db.flush()
    for name in extra_roles:
        assign_role(db, user, name)
    db.commit()
    return user


def add_athlete(
    db: Session,
    email: str = "athlete@example.com",
    password: str | None = "athlete-pass",
    **fields: object,
) -> Athlete:
    defaults = {"first_name": "Ana", "last_name": "Silva", "position": "FW"}
    defaults.update(fields)
    athlete = Athlete(email=email, password_hash=password, **defaults)
    db.add(athlete)
    db.commit()
    return athlete


def add_manager(
    db: Session,
    email: str = "manager@example.com",
    password: str | None = "manager-pass",
    **fields: object,
) -> Manager:
    defaults = {"first_name": "Marco", "last_name": "Reyes"}
    defaults.update(fields)
    manager = Manager(email=email, password_hash=password, **defaults)
    db.add(manager)
    db.commit()
    return manager


def add_team(
    db: Session,
    name: str = "Riverside FC",
    email: str | None = None,
    password: str | None = None,
) -> Team:
    team = Team(name=name, email=email, password_hash=password)
    db.add(team)
    db.commit()
    return team


def add_membership(db: Session, user: User, team: Team, role: str = "athlete") -> UserTeam:
    membership = UserTeam(user_id=user.id, team_id=team.id, role=role, status="active")
    db.add(membership)
    db.commit()
    return membership


def make_client(session_factory: sessionmaker, max_attempts: int = 10) -> TestClient:
    """TestClient whose requests use session_factory and a private login limiter."""

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    limiter = LoginRateLimiter(InMemoryAttemptStore(), max_attempts=max_attempts)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_login_limiter] = lambda: limiter
    return TestClient(app)


def reset_overrides() -> None:
    app.dependency_overrides.clear()
