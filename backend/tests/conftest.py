# backend/tests/conftest.py
"""
Pytest configuration for the scheduling service.

Every test gets a fresh in-memory SQLite database; StaticPool keeps the
single connection (and therefore the data) alive across sessions. Tests that
exercise concurrent writers use a file-backed database instead, because they
need real connection-level locking.
"""

import os

# Set test configuration BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.core.enums import DayOfWeek, RoleName
from app.database import Base, build_engine, init_db
from app.main import create_app
from app.models import AvailabilityRule, Course, User
from app.principal import ActorPrincipal
from app.services.scheduling_service import SchedulingService

TEACHER_TZ = "America/Lima"


def upcoming_weekday(weekday: int, min_days_ahead: int = 7) -> date:
    """First date with ``weekday`` (Mon=0) at least ``min_days_ahead`` days from today."""
    candidate = date.today() + timedelta(days=min_days_ahead)
    return candidate + timedelta(days=(weekday - candidate.weekday()) % 7)


def make_user(db: Session, role: RoleName, email: str, tz: str = TEACHER_TZ, **extra) -> User:
    first, _, last = email.partition("@")[0].partition(".")
    user = User(
        email=email,
        first_name=first.title(),
        last_name=(last or "Tester").title(),
        role=role.value,
        timezone=tz,
        **extra,
    )
    db.add(user)
    db.commit()
    return user


def add_rule(
    db: Session,
    teacher: User,
    day: DayOfWeek,
    start: str,
    end: str,
    is_available: bool = True,
) -> AvailabilityRule:
    rule = AvailabilityRule(
        teacher_id=teacher.id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        is_available=is_available,
    )
    db.add(rule)
    db.commit()
    return rule


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: Callable[[], Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def teacher(db: Session) -> User:
    return make_user(db, RoleName.TEACHER, "ana.quispe@example.com")


@pytest.fixture
def student(db: Session) -> User:
    return make_user(db, RoleName.STUDENT, "luis.rojas@example.com", tz="America/New_York")


@pytest.fixture
def course(db: Session) -> Course:
    row = Course(title="Conversation practice", class_duration=60)
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def monday_morning(db: Session, teacher: User) -> AvailabilityRule:
    """monday 09:00-11:00 in the teacher's zone."""
    return add_rule(db, teacher, DayOfWeek.MONDAY, "09:00", "11:00")


@pytest.fixture
def next_monday() -> date:
    return upcoming_weekday(0)


@pytest.fixture
def admin() -> ActorPrincipal:
    return ActorPrincipal(user_id="01HADMIN0000000000000000AA", role=RoleName.ADMIN)


@pytest.fixture
def service(db: Session) -> SchedulingService:
    return SchedulingService(db)


@pytest.fixture
def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client bound to the test session."""
    app = create_app(run_lifespan=False)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def file_session_factory(tmp_path) -> Iterator[Callable[[], Session]]:
    """Sessions on a file-backed SQLite database, one connection per session."""
    file_engine = build_engine(f"sqlite:///{tmp_path / 'scheduling.db'}")
    init_db(bind=file_engine)
    yield sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
    file_engine.dispose()


@pytest.fixture
def user_factory(db: Session) -> Callable[..., User]:
    def _make(role: RoleName, email: str, tz: str = TEACHER_TZ, **extra) -> User:
        return make_user(db, role, email, tz=tz, **extra)

    return _make


@pytest.fixture
def rule_factory(db: Session) -> Callable[..., AvailabilityRule]:
    def _make(
        teacher: User, day: DayOfWeek, start: str, end: str, is_available: bool = True
    ) -> AvailabilityRule:
        return add_rule(db, teacher, day, start, end, is_available)

    return _make


@pytest.fixture
def other_student(db: Session) -> User:
    return make_user(db, RoleName.STUDENT, "maria.flores@example.com")
