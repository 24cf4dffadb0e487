"""
Database models for the task tracker.

Defines the SQLAlchemy ORM models backing the credential store and the task
store:

- :class:`User` stores the profile and a salted password hash.  The hash is
  never part of any serialised representation.
- :class:`Task` is a to-do item owned by exactly one user.  Every query in
  the API layer filters by ``Task.owner`` so that a task is never visible
  or writable across accounts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash

from . import db


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Serialise a datetime to an ISO-8601 UTC string.

    SQLite does not keep timezone information, so values read back may be
    naive even though they were written in UTC.  Naive values are assumed
    to be UTC; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskPriority(str, Enum):
    """Task priority levels; ``str`` members serialise to their value."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class User(db.Model):
    """
    A registered account.

    Attributes:
        id: Auto-incrementing primary key; this is the identity embedded in
            bearer tokens.
        name: Display name.
        email: Unique, lower-cased email address used to log in.
        password_hash: Werkzeug-generated salted hash.
        created_at: Account creation time (UTC).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.String(100), nullable=False)
    # Indexed because login and registration look users up by email
    email: str = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    @classmethod
    def find_by_email(cls, email: str) -> User | None:
        return db.session.scalar(select(cls).where(cls.email == email.strip().lower()))

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password (PBKDF2 with a random salt)."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Return ``True`` if *password* matches the stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """Return the client-safe profile; ``password_hash`` is omitted."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Auto-incrementing primary key.
        owner: Id of the owning user.  Stamped from the authenticated
            identity at creation and never changed afterwards.
        title: Short summary (max 200 characters).
        description: Optional longer text.
        priority: One of :class:`TaskPriority`.
        due_date: Optional timezone-aware deadline.
        completed: Strict boolean completion flag.
        created_at: Creation time (UTC).
        updated_at: Last modification time (UTC, auto-updated).
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    owner: int = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: str = db.Column(db.String(200), nullable=False)
    description: str | None = db.Column(db.Text, nullable=True)
    priority: str = db.Column(db.String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the task to a JSON-safe dictionary."""
        return {
            "id": self.id,
            "owner": self.owner,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "due_date": _to_utc_iso(self.due_date),
            "completed": bool(self.completed),
            "created_at": _to_utc_iso(self.created_at),
            "updated_at": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
