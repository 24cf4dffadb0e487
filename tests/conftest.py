"""
Shared pytest fixtures for the task tracker test suite.

Provides the Flask application, test client, database session, user and
task factories, and bearer-token headers used by the unit, integration and
security suites.

Key Concepts Demonstrated:
- Session-scoped app vs function-scoped database for speed and isolation
- Factory fixtures (user_factory, task_factory) backed by Faker
- Token fixtures minted with the app's own TokenSettings
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest
from faker import Faker

os.environ["FLASK_ENV"] = "testing"

from tracker_app import create_app, db
from tracker_app.models import Task, TaskPriority, User
from tracker_app.tokens import TokenSettings, issue_token

fake = Faker()

DEFAULT_PASSWORD = "StrongPass123!"


def auth_headers(token: str) -> dict[str, str]:
    """Build JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """Provide the Flask app configured for testing, once per session."""
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a fresh Flask test client for every test."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test function.

    Creates all tables before the test and drops them afterwards so no rows
    leak between tests.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def token_settings(app) -> TokenSettings:
    return app.extensions["token_settings"]


# -----------------------------------------------------------------------------
# Data Factories
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(db_session) -> Callable[..., User]:
    """
    Factory that creates and persists User rows.

    Name and email default to Faker values; the password defaults to
    ``DEFAULT_PASSWORD``.
    """

    def _create_user(
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        user = User(name=name or fake.name(), email=(email or fake.unique.email()).lower())
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def task_factory(db_session) -> Callable[..., Task]:
    """Factory that creates and persists Task rows for a given owner."""

    def _create_task(
        *,
        owner: int,
        title: str | None = None,
        description: str | None = None,
        priority: str = TaskPriority.MEDIUM.value,
        completed: bool = False,
        due_date: datetime | None = None,
    ) -> Task:
        task = Task(
            owner=owner,
            title=title or fake.sentence(nb_words=4),
            description=description or fake.paragraph(),
            priority=priority,
            completed=completed,
            due_date=due_date,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


# -----------------------------------------------------------------------------
# Identity Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def user_one(user_factory) -> User:
    return user_factory(name="User One", email="one@example.com")


@pytest.fixture
def user_two(user_factory) -> User:
    return user_factory(name="User Two", email="two@example.com")


@pytest.fixture
def token_for(token_settings) -> Callable[[User], str]:
    """Mint a valid bearer token for any persisted user."""

    def _token_for(user: User) -> str:
        return issue_token(user.id, token_settings)

    return _token_for


@pytest.fixture
def api_headers(user_one, token_for) -> dict[str, str]:
    """Authorization + JSON headers for ``user_one``."""
    return auth_headers(token_for(user_one))


@pytest.fixture
def second_user_headers(user_two, token_for) -> dict[str, str]:
    """Authorization + JSON headers for ``user_two``."""
    return auth_headers(token_for(user_two))


@pytest.fixture
def sample_task(task_factory, user_one) -> Task:
    return task_factory(
        owner=user_one.id,
        title="Sample Task",
        description="This is a sample task for testing",
    )


@pytest.fixture
def multiple_tasks(task_factory, user_one) -> list[Task]:
    """Four tasks for user_one: two completed, two pending, mixed priorities."""
    return [
        task_factory(owner=user_one.id, title="Alpha", priority="high", completed=True),
        task_factory(owner=user_one.id, title="Bravo", priority="low", completed=False),
        task_factory(owner=user_one.id, title="Charlie", priority="medium", completed=True),
        task_factory(owner=user_one.id, title="Delta", priority="high", completed=False),
    ]


@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "priority": "high",
        "due_date": "2030-01-15T09:30:00+00:00",
        "completed": False,
    }
