from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A request to the board API failed. status_code is 0 for network errors."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AuthError(ApiError):
    """The server rejected (or never got) the bearer token."""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text or f"HTTP {response.status_code}"


class BoardApiClient:
    """Thin HTTP client for the board backend; one call per user action."""

    def __init__(self, base_url: str, token: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = http or httpx.Client(timeout=10.0)

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, *, json: Any = None, auth: bool = True) -> httpx.Response:
        headers = {}
        if auth:
            if not self.token:
                raise AuthError(401, "Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(method, f"{self.base_url}{path}", json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, path, exc)
            raise ApiError(0, f"Request failed: {exc}") from exc

        if response.is_success:
            return response
        message = _error_message(response)
        if auth and response.status_code in (401, 403):
            raise AuthError(response.status_code, message)
        raise ApiError(response.status_code, message)

    # Auth
    def signup(self, username: str, password: str) -> str:
        return self._request("POST", "/api/auth/signup", json={"username": username, "password": password}, auth=False).text

    def login(self, username: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/login", json={"username": username, "password": password}, auth=False).json()
        self.token = data["token"]
        return data

    def google_login(self, credential: str) -> dict:
        data = self._request("POST", "/api/auth/google", json={"credential": credential}, auth=False).json()
        self.token = data["token"]
        return data

    # Tasks
    def list_tasks(self) -> list[dict]:
        return self._request("GET", "/api/tasks").json()

    def add_task(self, text: str) -> str:
        return self._request("POST", "/api/tasks", json={"text": text}).text

    def update_task(self, task_id: str, *, text: Optional[str] = None, status: Optional[str] = None) -> str:
        body = {k: v for k, v in (("text", text), ("status", status)) if v is not None}
        return self._request("PUT", f"/api/tasks/{task_id}", json=body).text

    def delete_task(self, task_id: str) -> str:
        return self._request("DELETE", f"/api/tasks/{task_id}").text

    def share_task(self, task_id: str, to_username: str) -> str:
        return self._request("POST", f"/api/tasks/{task_id}/share", json={"toUsername": to_username}).text
