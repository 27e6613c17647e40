"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read at import time, so the environment is set first
os.environ["APP_ENV"] = "test"
os.environ["API_SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = (
    f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'test_tasks.db')}"
)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from task_runner.core.database import (  # noqa: E402
    clean_database,
    close_db,
    create_tables,
)
from task_runner.main import app  # noqa: E402
from task_runner.models import Task, UpsertRequest  # noqa: E402
from task_runner.services import TaskService  # noqa: E402


def create_test_task(
    name: str = "Test task",
    owner: str = "ops",
    command: str = "echo hello",
) -> Task:
    """Helper function to create a test task with default values."""
    return TaskService.upsert_task(
        UpsertRequest(name=name, owner=owner, command=command)
    )


@pytest.fixture(autouse=True, scope="function")
def clean_db():
    """Initialize and clean database for each test."""
    create_tables()

    # Clean all tables before test to ensure isolation
    clean_database()

    yield

    # Close DB connections
    close_db()


@pytest.fixture(scope="function")
def test_client():
    """Create a test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def auth_headers():
    """Provide authentication headers for API requests."""
    from task_runner.core.config import settings

    return {"X-API-Key": settings.api_secret_key}
