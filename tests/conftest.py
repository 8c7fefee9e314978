"""Pytest fixtures and configuration for taskcycle tests."""

import os

# Keep the app's module-level engine off the filesystem during tests.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SWEEP_ENABLED", "false")

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from taskcycle.database.database import Base
from taskcycle.database.repository import TaskRepository
from taskcycle.models.task import Task, TaskPriority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Fixed clock shared by the repository, service and API tests.
FIXED_NOW = datetime(2024, 1, 10, 12, 0, 0)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    from taskcycle.database import models  # noqa: F401

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session: Session):
    """Session factory bound to the test engine (for the sweep scheduler)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_session.get_bind())


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    """A second user, for authorization tests."""
    return "other-user-456"


@pytest.fixture
def fixed_now():
    """Deterministic 'now' used across tests."""
    return FIXED_NOW


@pytest.fixture
def sample_task_base(test_user_id, fixed_now):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "description": "Test description",
        "completed": False,
        "completed_at": None,
        "priority": TaskPriority.MEDIUM,
        "category": None,
        "due": None,
        "due_time": None,
        "is_recurring": False,
        "recurring_pattern": None,
        "created_at": fixed_now,
        "updated_at": fixed_now,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def make_task(sample_task_base):
    """Build a Task from the base data with overrides (fresh id each call)."""
    def _make(**overrides) -> Task:
        return Task(**{**sample_task_base, "id": str(uuid.uuid4()), **overrides})
    return _make


@pytest.fixture
def test_client(db_session: Session, test_user_id, fixed_now):
    """Create a FastAPI test client with overridden database dependency, clock and authentication."""
    from taskcycle.api.app import app, get_now
    from taskcycle.database.database import get_db
    from taskcycle.auth.dependencies import get_current_user_id

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: test_user_id
    app.dependency_overrides[get_now] = lambda: fixed_now

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
