"""
Bearer token issuance and verification.

Tokens are HS256-signed JSON Web Tokens carrying the canonical claims:

    - ``id``  -- integer primary key of the authenticated user.
    - ``iat`` -- issued-at timestamp (UTC epoch seconds).
    - ``exp`` -- expiration timestamp (UTC epoch seconds).
    - ``jti`` -- random token id, so that two tokens issued for the same
      user within the same second are still distinct strings.

Tokens are stateless: nothing is persisted server-side and there is no
revocation list, so a token stays valid until ``exp``.

All signing parameters live in an immutable :class:`TokenSettings` value that
the application factory builds once from the Flask config.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .errors import InvalidToken

REQUIRED_TOKEN_CLAIMS = ["id", "iat", "exp"]


@dataclass(frozen=True)
class TokenSettings:
    """
    Signing parameters shared by the token issuer and the auth gate.

    Attributes:
        secret_key: Server-held HMAC secret.
        expiry_hours: Lifetime of a newly issued token.
        algorithm: JWS algorithm; the verifier accepts only this one.
        leeway_seconds: Tolerated clock drift when checking ``exp``/``iat``.
    """

    secret_key: str
    expiry_hours: int = 24
    algorithm: str = "HS256"
    leeway_seconds: int = 0

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ValueError("secret_key must not be empty")
        if self.expiry_hours <= 0:
            raise ValueError("expiry_hours must be positive")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config (or any mapping)."""
        return cls(
            secret_key=values["JWT_SECRET_KEY"],
            expiry_hours=int(values.get("JWT_EXPIRY_HOURS", 24)),
            leeway_seconds=int(values.get("JWT_CLOCK_SKEW_SECONDS", 0)),
        )


def issue_token(user_id: int, settings: TokenSettings, now: datetime | None = None) -> str:
    """
    Create a signed token bound to *user_id*.

    Args:
        user_id: Primary key of the authenticated user.  Must be positive.
        settings: Signing parameters.
        now: Issue time; defaults to the current UTC time.

    Returns:
        A compact JWS string suitable for ``Authorization: Bearer <token>``.

    Raises:
        ValueError: If *user_id* is not a positive integer.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")

    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=settings.expiry_hours)
    payload: dict[str, Any] = {
        "id": int(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, settings: TokenSettings) -> dict[str, Any]:
    """
    Verify *token* and return its claims.

    Checks the signature against the server secret, rejects any algorithm
    other than the configured one, enforces expiry and the presence of the
    required claims, and validates that ``id`` is a positive integer.

    Raises:
        InvalidToken: For every kind of verification failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require": REQUIRED_TOKEN_CLAIMS},
            leeway=settings.leeway_seconds,
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken() from exc

    user_id = payload.get("id")
    # bool is an int subclass; a token claiming id=True is not an identity
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise InvalidToken()
    return payload
