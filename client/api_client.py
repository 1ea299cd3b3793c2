"""Thin HTTP client for the student quiz API."""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class QuizApiError(Exception):
    """Non-2xx response from the quiz API."""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.code = code


class QuizApiClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.session.request(
            method, f"{self.base_url}{path}", json=json, headers=headers, timeout=self.timeout
        )
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("error") or body.get("message") or "Request failed"
            raise QuizApiError(response.status_code, message, body.get("code"))
        return body

    def login(self, username_or_email: str, password: str) -> dict:
        body = self._request(
            "POST", "/api/auth/login", {"username_or_email": username_or_email, "password": password}
        )
        self.token = body["token"]
        return body["user"]

    def preview(self, quiz_id: int) -> dict:
        return self._request("GET", f"/api/quizzes/{quiz_id}/preview")["data"]

    def start(self, quiz_id: int) -> dict:
        return self._request("POST", f"/api/quizzes/{quiz_id}/start")["data"]

    def save_answer(self, attempt_id: int, question_id: int, option_id: str) -> None:
        self._request(
            "PUT",
            f"/api/quizzes/attempts/{attempt_id}/answer",
            {"question_id": question_id, "selected_answer": option_id},
        )

    def submit(self, attempt_id: int, auto: bool = False) -> dict:
        return self._request("POST", f"/api/quizzes/attempts/{attempt_id}/submit", {"auto": auto})["result"]

    def result(self, attempt_id: int) -> dict:
        return self._request("GET", f"/api/quizzes/attempts/{attempt_id}/result")["result"]

    def leaderboard(self, quiz_id: int) -> list[dict]:
        return self._request("GET", f"/api/quizzes/{quiz_id}/leaderboard")["data"]
