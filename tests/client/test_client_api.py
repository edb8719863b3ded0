"""Tests for LuminaApiClient against the in-process app."""

from unittest.mock import MagicMock

import httpx
import pytest

from lumina.client.api import ApiClientError, LuminaApiClient


@pytest.fixture
def api(client):
    return LuminaApiClient(client)


class TestApiClient:
    """Tests for request/response handling."""

    def test_login_and_students(self, api):
        jane = api.login("Jane", "parent")
        student_id = api.add_student("Sam", "3", jane["id"])

        assert [s["id"] for s in api.list_students(jane["id"])] == [student_id]
        assert api.delete_student(student_id) is True
        assert api.list_students(jane["id"]) == []

    def test_lesson_round_trip(self, api, sample_quiz):
        lesson_id = api.create_lesson("Water", "Science", "3", "...", sample_quiz, student_id=9)

        assert api.get_lesson(lesson_id)["quiz_json"] == sample_quiz
        assert api.list_lessons("3") == []
        assert [lesson["id"] for lesson in api.list_lessons("3", 9)] == [lesson_id]

    def test_missing_lesson_is_none(self, api):
        assert api.get_lesson(999) is None

    def test_error_message_from_body(self, api):
        """Non-2xx responses raise with the server's error text."""
        with pytest.raises(ApiClientError) as exc_info:
            api.login("   ")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Identifier is required"

    def test_generate_lesson(self, api):
        stored = api.generate_lesson("Math", "4", "Long Division")
        assert stored["title"] == "Long Division (Grade 4)"
        assert api.get_lesson(stored["id"])["grade_level"] == "4"

    def test_progress(self, api, sample_quiz):
        lesson_id = api.create_lesson("Water", "Science", "3", "...", sample_quiz)
        api.record_progress(5, lesson_id, 0, answers=[0, 1, 2, 3, 0])

        assert api.list_progress(5)[0]["score"] == 100

    def test_seed_and_task(self, api):
        started = api.seed()
        assert api.get_task(started["task_id"])["name"] == "seed"

    def test_health(self, api):
        assert api.health()["status"] == "ok"


class TestTransportErrors:
    """Tests for failures below HTTP."""

    def test_transport_error_wrapped(self):
        """Connection failures raise ApiClientError without a status code."""
        http = MagicMock(spec=httpx.Client)
        http.request.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ApiClientError) as exc_info:
            LuminaApiClient(http).health()

        assert exc_info.value.status_code is None

    def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(503, text="upstream down")

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")
        with pytest.raises(ApiClientError) as exc_info:
            LuminaApiClient(http).health()

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "upstream down"
