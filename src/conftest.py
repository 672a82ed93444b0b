"""Pytest configuration and shared fixtures."""

import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from auth import AuthenticatedUser, FirebaseUser, get_or_create_user
from database import Base, get_db
from firebase_config import get_firebase_auth
from main import app
from models import ExerciseDB, ProfileDB, ProgramDB, ProgramExerciseDB
from workout_sessions_api import ActiveWorkouts


def get_test_db_url():
    """Get the test database URL from environment or use in-memory SQLite."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite://")


def _create_sqlite_engine(db_url):
    # One shared connection so every session sees the same in-memory database
    engine = create_engine(
        db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT works with pysqlite
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine that persists for the entire test session."""
    db_url = get_test_db_url()

    if db_url.startswith("sqlite"):
        engine = _create_sqlite_engine(db_url)
        Base.metadata.create_all(bind=engine)
        yield engine
        engine.dispose()
        return

    # PostgreSQL: drop and recreate a dedicated test database
    base_url, db_name = db_url.rsplit("/", 1)
    admin_engine = create_engine(f"{base_url}/postgres", isolation_level="AUTOCOMMIT")
    with admin_engine.connect() as conn:
        conn.execute(text(f"DROP DATABASE IF EXISTS {db_name}"))
        conn.execute(text(f"CREATE DATABASE {db_name}"))
    admin_engine.dispose()

    engine = create_engine(db_url, echo=False)
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()

    admin_engine = create_engine(f"{base_url}/postgres", isolation_level="AUTOCOMMIT")
    with admin_engine.connect() as conn:
        conn.execute(text(f"DROP DATABASE IF EXISTS {db_name}"))
    admin_engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Create a new database session for each test.

    Everything runs inside one outer transaction that is rolled back after
    the test; commits and rollbacks in the code under test use savepoints.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    session = TestingSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


# Authentication fixtures


@pytest.fixture
def mock_firebase_auth():
    """Replace the Firebase auth module behind get_firebase_auth."""
    mock_auth = MagicMock()
    app.dependency_overrides[get_firebase_auth] = lambda: mock_auth
    yield mock_auth
    app.dependency_overrides.pop(get_firebase_auth, None)


@pytest.fixture
def test_firebase_user() -> FirebaseUser:
    """Create a test Firebase user."""
    return FirebaseUser(
        uid="test_firebase_uid_123",
        email="test@example.com",
        email_verified=True,
        claims={"uid": "test_firebase_uid_123", "email": "test@example.com"},
    )


@pytest.fixture
def test_user(db_session: Session, test_firebase_user: FirebaseUser) -> ProfileDB:
    """Create a test profile in the database."""
    profile = ProfileDB(
        firebase_uid=test_firebase_user.uid,
        email=test_firebase_user.email,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def test_authenticated_user(
    test_user: ProfileDB, test_firebase_user: FirebaseUser
) -> AuthenticatedUser:
    """Create a test authenticated user context."""
    return AuthenticatedUser(
        firebase_uid=test_user.firebase_uid,
        user_id=test_user.id,
        email=test_user.email,
        firebase_user=test_firebase_user,
    )


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(db_session, test_authenticated_user, fake_clock):
    """Create test client with database and auth overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_auth():
        return test_authenticated_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_or_create_user] = override_auth
    app.state.active_workouts = ActiveWorkouts(clock=fake_clock)

    test_client = TestClient(app)
    yield test_client

    app.state.active_workouts.clear()
    app.dependency_overrides.clear()


# Library and program fixtures


@pytest.fixture
def exercises(db_session):
    """A small exercise library, one exercise per record type and then some."""
    rows = {
        "bench": ExerciseDB(
            name="벤치프레스",
            aliases=["벤치", "Bench Press"],
            target_part="chest",
            record_type="weight_reps",
        ),
        "pullup": ExerciseDB(
            name="풀업",
            aliases=["Pull-up", "턱걸이"],
            target_part="back",
            record_type="reps_only",
        ),
        "plank": ExerciseDB(
            name="플랭크",
            aliases=["Plank"],
            target_part="abs",
            record_type="time",
        ),
        "squat": ExerciseDB(
            name="스쿼트",
            aliases=["Back Squat"],
            target_part="quads",
            record_type="weight_reps",
        ),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    for row in rows.values():
        db_session.refresh(row)
    return rows


@pytest.fixture
def sample_program(db_session, test_user, exercises):
    """Bench 3x10 @60 with 90s rest, pull-ups 2x8 with 60s rest, plank 1x45s."""
    program = ProgramDB(
        user_id=test_user.id,
        title="Upper Body A",
        description="Press, pull, then core",
        rpe=8,
    )
    program.exercises = [
        ProgramExerciseDB(
            exercise_id=exercises["bench"].id,
            order=0,
            target_sets=3,
            target_weight=60,
            target_reps=10,
            rest_seconds=90,
        ),
        ProgramExerciseDB(
            exercise_id=exercises["pullup"].id,
            order=1,
            target_sets=2,
            target_reps=8,
            rest_seconds=60,
        ),
        ProgramExerciseDB(
            exercise_id=exercises["plank"].id,
            order=2,
            target_sets=1,
            target_time=45,
        ),
    ]
    db_session.add(program)
    db_session.commit()
    db_session.refresh(program)
    return program
