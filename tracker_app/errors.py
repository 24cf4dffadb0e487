"""
Error taxonomy and JSON error envelopes.

Every failure a handler can report is an :class:`ApiError` subclass carrying
an HTTP status, a stable machine-readable ``code`` and a human-readable
message.  Handlers terminate a request by *raising* one of these; the single
error handler registered by :func:`register_error_handlers` turns it into the
uniform ``{"success": false, "error": ..., "message": ...}`` envelope.  This
guarantees exactly one response per request on every path.

Anything that is not an ``ApiError`` is logged with its traceback, the
database session is rolled back, and the caller only sees a generic
``server_error`` envelope.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

from . import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for failures reported to API callers."""

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "Server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.code, "message": self.message}


class Unauthenticated(ApiError):
    """Missing or malformed credentials."""

    status_code = 401
    code = "unauthenticated"
    default_message = "Not authorized, token missing."


class InvalidCredentials(ApiError):
    """Email/password pair (or current password) did not match."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials."


class InvalidToken(ApiError):
    """Bad signature, expired or malformed bearer token."""

    status_code = 401
    code = "invalid_token"
    default_message = "Token invalid or expired."


class UserNotFound(ApiError):
    """A verified token refers to a user that no longer exists."""

    status_code = 401
    code = "user_not_found"
    default_message = "User not found."


class ValidationFailed(ApiError):
    status_code = 400
    code = "validation_failed"
    default_message = "Invalid request."


class Conflict(ApiError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class NotFound(ApiError):
    """Resource absent or not owned by the requester (indistinguishable)."""

    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class ServerError(ApiError):
    pass


def error_response(error: ApiError) -> tuple[Response, int]:
    """Build the JSON envelope for *error*."""
    return jsonify(error.to_dict()), error.status_code


# HTTP errors raised by Flask/werkzeug itself (routing, malformed JSON)
_HTTP_ERROR_MAP: dict[int, type[ApiError]] = {
    400: ValidationFailed,
    401: Unauthenticated,
    404: NotFound,
    409: Conflict,
}


def register_error_handlers(app: Flask) -> None:
    """
    Install the envelope error handlers on *app*.

    Args:
        app: The Flask application to configure.
    """

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> tuple[Response, int]:
        if error.status_code >= 500:
            logger.error("Request failed: %s", error.message)
        else:
            logger.warning("Request rejected (%s): %s", error.code, error.message)
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        status_code = error.code or 500
        error_class = _HTTP_ERROR_MAP.get(status_code)
        if error_class is None:
            # 405 and friends keep their status but use the envelope
            body = {"success": False, "error": "http_error", "message": error.description}
            return jsonify(body), status_code
        return error_response(error_class())

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception) -> tuple[Response, int]:
        logger.exception("Unhandled error: %s", error)
        db.session.rollback()
        return error_response(ServerError())
