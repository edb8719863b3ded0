"""Shared fixtures: an isolated SQLite store, the API app and a fake generator."""

import pytest
from fastapi.testclient import TestClient

from lumina.config.app_config import AppConfig
from lumina.core.lesson_generator import GenerationError, LessonContent
from lumina.db.database import Database
from lumina.db.lessons_repository import QuizQuestion
from lumina.web.api import create_app


def make_quiz(n: int = 5) -> list[QuizQuestion]:
    """Quiz whose correct answer for question i is option i % 4."""
    return [
        QuizQuestion(
            question=f"Question {i + 1}?",
            options=["A", "B", "C", "D"],
            correct_answer=i % 4,
        )
        for i in range(n)
    ]


class FakeGenerator:
    """Lesson generator that records calls instead of reaching a service."""

    def __init__(self, fail_on: set[str] | None = None):
        self.calls: list[tuple[str, str, str]] = []
        self.fail_on = fail_on or set()

    def __call__(self, subject: str, grade: str, topic: str) -> LessonContent:
        self.calls.append((subject, grade, topic))
        if grade in self.fail_on:
            raise GenerationError(f"service unavailable for grade {grade}")
        return LessonContent(
            title=f"{topic} (Grade {grade})",
            content=f"# {topic}\n\nAll about {topic}.",
            quiz=make_quiz(),
        )


@pytest.fixture
def sample_quiz():
    """Five questions in wire format."""
    return [q.to_dict() for q in make_quiz()]


@pytest.fixture
def db(tmp_path):
    """Open database in a temporary directory."""
    database = Database(tmp_path / "test.db").open()
    yield database
    database.close()


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def app(db, app_config, generator):
    return create_app(config=app_config, database=db, generator=generator)


@pytest.fixture
def client(app):
    """Test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
