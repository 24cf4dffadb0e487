"""
Auth gate for protected endpoints.

Every protected view is wrapped in :func:`require_auth`.  Before the view
runs, :func:`authenticate_request`:

1. reads ``Authorization`` and insists on the literal ``"Bearer "`` scheme,
2. verifies the token's signature and expiry with the app's
   :class:`~tracker_app.tokens.TokenSettings`,
3. loads the user named by the token's ``id`` claim,
4. stores a :class:`CurrentUser` (no password hash) on ``flask.g``.

Any failure raises an :class:`~tracker_app.errors.ApiError`, so the wrapped
view never executes for an unauthenticated request and the error handler
writes the single 401 response.  The gate mutates nothing and never retries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import current_app, g, request

from . import db
from .errors import Unauthenticated, UserNotFound
from .models import User
from .tokens import TokenSettings, decode_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to the request by the auth gate."""

    id: int
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> CurrentUser:
        return cls(id=user.id, name=user.name, email=user.email)


def get_token_settings() -> TokenSettings:
    """Return the token settings built by the application factory."""
    return current_app.extensions["token_settings"]


def extract_bearer_token(auth_header: str | None) -> str:
    """
    Return the token part of an ``Authorization`` header value.

    Raises:
        Unauthenticated: If the header is absent, uses another scheme, or
            carries an empty token.
    """
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise Unauthenticated()
    token = auth_header[len(BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthenticated()
    return token


def authenticate_request() -> CurrentUser:
    """
    Resolve the current request to a verified identity.

    Returns:
        The :class:`CurrentUser` now stored on ``g.current_user``.

    Raises:
        Unauthenticated: Missing or malformed ``Authorization`` header.
        InvalidToken: Bad signature, expired token or bad claims.
        UserNotFound: The token's user no longer exists.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    payload = decode_token(token, get_token_settings())

    user = db.session.get(User, payload["id"])
    if user is None:
        logger.warning("Token presented for missing user id=%s", payload["id"])
        raise UserNotFound()

    g.current_user = CurrentUser.from_user(user)
    return g.current_user


def require_auth(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that runs the auth gate before *view_func*.

    Downstream code reads the identity from ``g.current_user``.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        authenticate_request()
        return view_func(*args, **kwargs)

    return wrapper
