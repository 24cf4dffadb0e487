"""
User API endpoints.

Endpoints (mounted under ``/api/user``):
    POST /register  -- Create an account and receive a token.
    POST /login     -- Exchange email + password for a token.
    GET  /me        -- Profile of the authenticated user.
    PUT  /me        -- Update name and email.
    PUT  /password  -- Change the password (requires the current one).

Responses use the ``{"success": true, ...}`` envelope; failures are raised
as :mod:`tracker_app.errors` exceptions and rendered by the app-level
handler.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, g, jsonify
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .. import db
from ..auth import get_token_settings, require_auth
from ..errors import Conflict, InvalidCredentials, UserNotFound
from ..models import User
from ..schemas import (
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    parse_body,
)
from ..tokens import issue_token

logger = logging.getLogger(__name__)

users_bp = Blueprint("users_api", __name__)


def _auth_payload(user: User) -> dict:
    token = issue_token(user.id, get_token_settings())
    return {"success": True, "token": token, "user": user.to_dict()}


def _current_user_record() -> User:
    user = db.session.get(User, g.current_user.id)
    if user is None:
        raise UserNotFound()
    return user


def _commit_or_conflict(message: str) -> None:
    """Commit, turning a lost race on the unique email index into 409."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict(message) from exc


@users_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new account.

    Returns:
        201 with ``token`` and ``user`` on success.
        400 if a field is missing or invalid (password shorter than 8).
        409 if the email is already registered.
    """
    payload = parse_body(RegisterRequest)

    if User.find_by_email(payload.email) is not None:
        raise Conflict("User already exists.")

    user = User(name=payload.name, email=payload.email)
    user.set_password(payload.password)
    db.session.add(user)
    _commit_or_conflict("User already exists.")

    logger.info("Registered user id=%s", user.id)
    return jsonify(_auth_payload(user)), 201


@users_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate and issue a token.

    The same ``Invalid credentials.`` message is used for an unknown email
    and a wrong password so the response does not reveal which one failed.
    """
    payload = parse_body(LoginRequest)

    user = User.find_by_email(payload.email)
    if user is None or not user.check_password(payload.password):
        raise InvalidCredentials()

    logger.info("User id=%s logged in", user.id)
    return jsonify(_auth_payload(user)), 200


@users_bp.route("/me", methods=["GET"])
@require_auth
def get_current_user() -> tuple[Response, int]:
    return jsonify({"success": True, "user": _current_user_record().to_dict()}), 200


@users_bp.route("/me", methods=["PUT"])
@require_auth
def update_profile() -> tuple[Response, int]:
    """
    Update the authenticated user's name and email.

    Returns:
        200 with the updated ``user``.
        400 if name or email is missing or invalid.
        409 if the email belongs to another account.
    """
    payload = parse_body(ProfileUpdateRequest)
    user = _current_user_record()

    taken = db.session.scalar(
        select(User).where(User.email == payload.email, User.id != user.id)
    )
    if taken is not None:
        raise Conflict("Email already in use by another account.")

    user.name = payload.name
    user.email = payload.email
    _commit_or_conflict("Email already in use by another account.")

    logger.info("Updated profile for user id=%s", user.id)
    return jsonify({"success": True, "user": user.to_dict()}), 200


@users_bp.route("/password", methods=["PUT"])
@require_auth
def change_password() -> tuple[Response, int]:
    """
    Change the password after re-checking the current one.

    Returns:
        200 on success.
        400 if the new password is missing or shorter than 8 characters.
        401 if the current password is wrong.
    """
    payload = parse_body(PasswordChangeRequest)
    user = _current_user_record()

    if not user.check_password(payload.current_password):
        raise InvalidCredentials("Current password is invalid.")

    user.set_password(payload.new_password)
    db.session.commit()

    logger.info("Changed password for user id=%s", user.id)
    return jsonify({"success": True, "message": "Password changed."}), 200
