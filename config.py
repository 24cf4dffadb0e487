"""
Configuration for the task tracker.

Provides environment-aware configuration classes: a shared ``Config`` base
holds defaults read from environment variables, and the environment-specific
subclasses (``DevelopmentConfig``, ``TestingConfig``, ``ProductionConfig``)
override only what differs.  ``get_config`` resolves the class at runtime
from an explicit name or the ``FLASK_ENV`` environment variable.

The token settings (secret, lifetime, leeway) are read here once and turned
into an immutable ``TokenSettings`` value by the application factory; nothing
else in the code base reads them from the environment.
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def load_jwt_secret(env_var: str = "JWT_SECRET_KEY") -> str:
    """Read the token signing secret from the environment, failing if unset."""
    secret = os.environ.get(env_var, "").strip()
    if not secret:
        raise RuntimeError(f"Missing JWT secret configuration: set {env_var}.")
    return secret


class Config:
    """
    Base configuration shared by all environments.

    Every setting can be overridden through an environment variable so that
    deployments inject secrets and connection strings at start-up.
    """

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "tracker-dev-secret-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tracker.db'}",
    )

    # Secret used to sign bearer tokens (HS256).
    JWT_SECRET_KEY: str = os.environ.get(
        "JWT_SECRET_KEY", "tracker-dev-jwt-secret-change-in-production-0123456789"
    )
    # How many hours a newly issued token remains valid
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "24"))
    # Tokens are issued and verified by the same service, so no skew by default
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "0"))

    PORT: int = int(os.environ.get("PORT", "4000"))


class DevelopmentConfig(Config):
    """Local development: debug on, testing off."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Configuration for the automated test suite.

    Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set, so
    test runs never touch development data.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}
    JWT_SECRET_KEY: str = os.environ.get(
        "TEST_JWT_SECRET_KEY", "test-jwt-secret-key-for-local-tests-123456"
    )


class ProductionConfig(Config):
    """
    Configuration for production deployments.

    All secrets must be supplied through environment variables; the defaults
    in ``Config`` are only suitable for local use.
    """

    DEBUG: bool = False
    TESTING: bool = False
    # The built-in development secret is never accepted here
    REQUIRE_JWT_SECRET_ENV: bool = True


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Resolve a configuration class by environment name.

    Args:
        env: One of ``"development"``, ``"testing"`` or ``"production"``.
            When ``None``, the ``FLASK_ENV`` environment variable is
            consulted, falling back to ``"development"``.

    Returns:
        The configuration class (not an instance).  Unknown names resolve
        to ``DevelopmentConfig``.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
