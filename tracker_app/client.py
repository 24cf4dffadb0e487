"""
Client for the task tracker API.

This is the Python counterpart of the single-page frontend: it keeps the
current session (bearer token + serialised current user) in a small JSON file
that survives restarts, drives the REST API with :mod:`requests`, and
computes the statistics the dashboard displays.

Every API response is read through one envelope shape
(``{"success": bool, ...}``); a ``success: false`` body becomes an
:class:`ApiRequestError`.  A 401 on an authenticated call means the stored
session is no longer usable, so it is cleared and :class:`SessionExpired`
is raised -- the equivalent of the UI forcing a logout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import requests

from .stats import TaskStats, summarize

logger = logging.getLogger(__name__)


class ApiRequestError(Exception):
    """The API answered with ``success: false`` (or a non-JSON error)."""

    def __init__(self, status_code: int, error: str, message: str):
        self.status_code = status_code
        self.error = error
        self.message = message
        super().__init__(f"{status_code} {error}: {message}")


class SessionExpired(ApiRequestError):
    """No usable session: never logged in, logged out, or token rejected."""

    def __init__(self, message: str = "Session expired, please log in again."):
        super().__init__(401, "unauthenticated", message)


class SessionStore:
    """
    Persistent client session: one token string and the current user.

    The file is read once on construction.  A missing or unreadable file
    yields an empty session rather than an error.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.token: str | None = None
        self.current_user: dict[str, Any] | None = None
        self.load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return

        if not isinstance(data, dict):
            return
        token = data.get("token")
        user = data.get("current_user")
        self.token = token if isinstance(token, str) and token else None
        self.current_user = user if isinstance(user, dict) else None

    def save(self, token: str, user: dict[str, Any]) -> None:
        self.token = token
        self.current_user = user
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": token, "current_user": user}),
            encoding="utf-8",
        )

    def clear(self) -> None:
        self.token = None
        self.current_user = None
        self.path.unlink(missing_ok=True)


class TrackerClient:
    """
    Thin HTTP client for the task tracker API.

    Args:
        base_url: Root URL of the API server (e.g. ``http://localhost:4000``).
        store: Session store used to persist the login.
        timeout: Per-request timeout in seconds.
        http: Optional :class:`requests.Session` (injectable for tests).
    """

    def __init__(
        self,
        base_url: str,
        store: SessionStore,
        timeout: float = 5,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.timeout = timeout
        self.http = http or requests.Session()

    # -----------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, *, auth: bool = True, **kwargs) -> dict[str, Any]:
        """
        Send a request and unwrap the response envelope.

        Raises:
            SessionExpired: *auth* is set and there is no token, or the
                server rejected the token (the session is cleared).
            ApiRequestError: Any other ``success: false`` response.
            requests.RequestException: Network-level failures.
        """
        headers = kwargs.pop("headers", {})
        if auth:
            if not self.store.is_authenticated:
                raise SessionExpired("No auth token found.")
            headers = {**headers, "Authorization": f"Bearer {self.store.token}"}

        response = self.http.request(
            method=method,
            url=self._url(path),
            headers=headers,
            timeout=self.timeout,
            **kwargs,
        )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise ApiRequestError(response.status_code, "invalid_response", "Response was not a JSON envelope.")

        if body.get("success") is True:
            return body

        error = str(body.get("error", "error"))
        message = str(body.get("message", "Request failed."))
        if auth and response.status_code == 401:
            logger.info("Clearing session after 401 (%s)", error)
            self.store.clear()
            raise SessionExpired(message)
        raise ApiRequestError(response.status_code, error, message)

    # -----------------------------------------------------------------
    # Account
    # -----------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        body = self._request(
            "POST",
            "/api/user/register",
            auth=False,
            json={"name": name, "email": email, "password": password},
        )
        self.store.save(body["token"], body["user"])
        return body["user"]

    def login(self, email: str, password: str) -> dict[str, Any]:
        body = self._request(
            "POST",
            "/api/user/login",
            auth=False,
            json={"email": email, "password": password},
        )
        self.store.save(body["token"], body["user"])
        return body["user"]

    def logout(self) -> None:
        """Forget the session locally; tokens are stateless server-side."""
        self.store.clear()

    def me(self) -> dict[str, Any]:
        user = self._request("GET", "/api/user/me")["user"]
        self.store.save(self.store.token, user)
        return user

    def update_profile(self, name: str, email: str) -> dict[str, Any]:
        user = self._request("PUT", "/api/user/me", json={"name": name, "email": email})["user"]
        self.store.save(self.store.token, user)
        return user

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request(
            "PUT",
            "/api/user/password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # -----------------------------------------------------------------
    # Tasks
    # -----------------------------------------------------------------

    def list_tasks(self, **filters: Any) -> list[dict[str, Any]]:
        params = {key: value for key, value in filters.items() if value is not None}
        return self._request("GET", "/api/tasks", params=params)["tasks"]

    def get_task(self, task_id: int) -> dict[str, Any]:
        return self._request("GET", f"/api/tasks/{task_id}")["task"]

    def create_task(self, title: str, **fields: Any) -> dict[str, Any]:
        return self._request("POST", "/api/tasks", json={"title": title, **fields})["task"]

    def update_task(self, task_id: int, **fields: Any) -> dict[str, Any]:
        return self._request("PUT", f"/api/tasks/{task_id}", json=fields)["task"]

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")

    def dashboard_stats(self) -> TaskStats:
        """Fetch the user's tasks and summarise them for the dashboard."""
        return summarize(self.list_tasks())
