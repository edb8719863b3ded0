"""HTTP client for the Lumina Web API.

One method per endpoint. Bodies are returned as decoded JSON; any non-2xx
response raises ApiClientError carrying the server's {"error": ...} text.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "http://localhost:3000"


class ApiClientError(Exception):
    """Request failed at the transport level or with a non-2xx status."""

    def __init__(self, status_code: int | None, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}" if status_code else message)


class LuminaApiClient:
    """Thin wrapper over an httpx.Client pointed at the API.

    Example:
        with httpx.Client(base_url="http://localhost:3000") as http:
            api = LuminaApiClient(http)
            user = api.login("jane@example.com", "parent")
    """

    def __init__(self, http: httpx.Client):
        self.http = http

    @classmethod
    def connect(cls, base_url: str = DEFAULT_API_URL, timeout: float = 200.0) -> LuminaApiClient:
        """Build a client with its own httpx.Client.

        The default timeout leaves room for a server-side lesson generation.
        """
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("api_request_failed", method=method, path=path, error=str(e))
            raise ApiClientError(None, str(e)) from e

        if not response.is_success:
            try:
                message = response.json().get("error") or response.reason_phrase
            except (ValueError, AttributeError):
                message = response.text or response.reason_phrase
            raise ApiClientError(response.status_code, message)

        return response.json()

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def login(self, identifier: str, role: str = "parent") -> dict[str, Any]:
        return self._request("POST", "/api/login", json={"identifier": identifier, "role": role})

    def list_students(self, parent_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/students/{parent_id}")

    def add_student(
        self,
        name: str,
        grade_level: str,
        parent_id: int,
        email: str | None = None,
    ) -> int:
        """Register a student and return the new id."""
        body = {"name": name, "email": email, "gradeLevel": grade_level, "parentId": parent_id}
        return self._request("POST", "/api/students", json=body)["id"]

    def delete_student(self, student_id: int) -> bool:
        return self._request("DELETE", f"/api/students/{student_id}")["success"]

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def create_lesson(
        self,
        title: str,
        subject: str,
        grade_level: str,
        content: str,
        quiz: list[dict[str, Any]],
        student_id: int | None = None,
    ) -> int:
        """Store a lesson and return its id."""
        body = {
            "title": title,
            "subject": subject,
            "grade_level": grade_level,
            "content": content,
            "quiz_json": quiz,
            "student_id": student_id,
        }
        return self._request("POST", "/api/lessons", json=body)["id"]

    def generate_lesson(
        self,
        subject: str,
        grade_level: str,
        topic: str,
        student_id: int | None = None,
    ) -> dict[str, Any]:
        """Have the server generate and store a lesson; returns {id, title, questions}."""
        body = {
            "subject": subject,
            "grade_level": grade_level,
            "topic": topic,
            "student_id": student_id,
        }
        return self._request("POST", "/api/lessons/generate", json=body)

    def list_lessons(self, grade_level: str, student_id: int | None = None) -> list[dict[str, Any]]:
        params = {"studentId": student_id} if student_id is not None else None
        return self._request("GET", f"/api/lessons/{grade_level}", params=params)

    def get_lesson(self, lesson_id: int) -> dict[str, Any] | None:
        """Fetch one lesson with its quiz decoded, or None."""
        return self._request("GET", f"/api/lesson/{lesson_id}")

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def record_progress(
        self,
        student_id: int,
        lesson_id: int,
        score: int,
        answers: list[int | None] | None = None,
    ) -> int:
        body: dict[str, Any] = {"student_id": student_id, "lesson_id": lesson_id, "score": score}
        if answers is not None:
            body["answers"] = answers
        return self._request("POST", "/api/progress", json=body)["id"]

    def list_progress(self, student_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/progress/{student_id}")

    # -------------------------------------------------------------------------
    # Background tasks
    # -------------------------------------------------------------------------

    def seed(self) -> dict[str, Any]:
        return self._request("POST", "/api/seed")

    def get_task(self, task_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/tasks/{task_id}")

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")
