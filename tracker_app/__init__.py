"""
Task tracker Flask application factory.

Provides the ``create_app`` factory that assembles the task tracker API: it
loads configuration, builds the immutable token settings, initialises
SQLAlchemy, registers the user and task blueprints plus the JSON error
handlers, and creates the database tables.

Blueprints:
  * **users_bp** -- registration, login and profile endpoints under
    ``/api/user``.
  * **tasks_bp** -- owner-scoped task CRUD under ``/api`` (``/api/tasks``)
    plus the public health check.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from config import get_config, load_jwt_secret

# Shared SQLAlchemy instance -- bound to a concrete app inside create_app()
db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the task tracker application.

    Args:
        config_name: Configuration environment to load (``"development"``,
            ``"testing"``, ``"production"``).  When ``None``, the value is
            read from ``FLASK_ENV``, defaulting to ``"development"``.

    Returns:
        A configured :class:`~flask.Flask` instance with extensions
        initialised, blueprints registered and tables created.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if app.config.get("REQUIRE_JWT_SECRET_ENV"):
        app.config["JWT_SECRET_KEY"] = load_jwt_secret()

    logger.info("Creating task tracker app with config: %s", config_class.__name__)

    from .tokens import TokenSettings

    # Built once per process; the auth gate and the issuer read it from here.
    app.extensions["token_settings"] = TokenSettings.from_mapping(app.config)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    # Imported inside the factory: the blueprint modules reference ``db``.
    from .errors import register_error_handlers
    from .routes.tasks import tasks_bp
    from .routes.users import users_bp

    app.register_blueprint(users_bp, url_prefix="/api/user")
    app.register_blueprint(tasks_bp, url_prefix="/api")
    register_error_handlers(app)

    with app.app_context():
        db.create_all()
        logger.info("Task tracker database tables created")

    return app
