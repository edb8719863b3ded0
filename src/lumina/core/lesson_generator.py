"""Lesson generation module.

Responsibilities:
- Ask the generative-text service for a lesson on (subject, grade, topic)
- Declare the expected output shape as a JSON Schema
- Parse the structured reply into LessonContent

Every call regenerates from scratch: nothing is cached, nothing is retried.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from lumina.config.app_config import AppConfig
from lumina.db.lessons_repository import QuizQuestion
from lumina.llm.client import LLMClient, LLMConfig, LLMError, Message

logger = structlog.get_logger(__name__)

# =============================================================================
# PROMPTS
# =============================================================================

SYSTEM_PROMPT_LESSON = """You are an experienced home-school teacher who writes complete, \
self-contained lessons for children and teenagers."""

USER_PROMPT_LESSON = """Generate a comprehensive educational lesson for grade {grade} on the \
topic of "{topic}" in the subject of {subject}.
The lesson should be engaging, age-appropriate, and include:
1. A clear title.
2. Detailed educational content (at least 500 words).
3. A 5-question multiple-choice quiz to test understanding.

Format the response as JSON."""

LESSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "content": {
            "type": "string",
            "description": "Markdown formatted lesson content",
        },
        "quiz": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "options": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "4 options for the multiple choice question",
                    },
                    "correctAnswer": {
                        "type": "integer",
                        "description": "Index of the correct option (0-3)",
                    },
                },
                "required": ["question", "options", "correctAnswer"],
            },
        },
    },
    "required": ["title", "content", "quiz"],
}


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LessonContent:
    """A generated lesson, ready to be stored."""

    title: str
    content: str
    quiz: list[QuizQuestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "content": self.content,
            "quiz": [q.to_dict() for q in self.quiz],
        }


class GenerationError(Exception):
    """Error during lesson generation."""

    pass


class LessonGenerator(Protocol):
    """Callable contract: (subject, grade, topic) -> LessonContent or GenerationError."""

    def __call__(self, subject: str, grade: str, topic: str) -> LessonContent: ...


# =============================================================================
# MAIN FUNCTION
# =============================================================================


def _parse_lesson(raw: dict[str, Any]) -> LessonContent:
    """Turn the service payload into LessonContent.

    Raises:
        GenerationError: If title, content or quiz are missing or mistyped
    """
    title = raw.get("title")
    content = raw.get("content")
    quiz = raw.get("quiz")

    if not isinstance(title, str) or not isinstance(content, str):
        raise GenerationError("Generated lesson is missing a title or content")
    if not isinstance(quiz, list):
        raise GenerationError("Generated lesson is missing its quiz")

    try:
        questions = [QuizQuestion.from_dict(item) for item in quiz]
    except (AttributeError, TypeError, ValueError) as e:
        raise GenerationError(f"Malformed quiz question: {e}") from e

    return LessonContent(title=title, content=content, quiz=questions)


def generate_lesson(
    subject: str,
    grade: str,
    topic: str,
    client: LLMClient | None = None,
) -> LessonContent:
    """Generate a lesson and quiz for one grade and topic.

    Args:
        subject: Subject name (e.g., "Science")
        grade: Grade label ("K", "1" .. "12")
        topic: Lesson topic (e.g., "The Water Cycle")
        client: Optional pre-configured LLM client (for testing)

    Returns:
        LessonContent with title, markdown content and quiz

    Raises:
        GenerationError: If the service fails or the reply cannot be parsed
    """
    if client is None:
        client = LLMClient()

    start_time = time.time()
    messages = [
        Message(role="system", content=SYSTEM_PROMPT_LESSON),
        Message(
            role="user",
            content=USER_PROMPT_LESSON.format(grade=grade, topic=topic, subject=subject),
        ),
    ]

    try:
        raw = client.chat_json(messages, schema=LESSON_SCHEMA, schema_name="lesson")
    except LLMError as e:
        logger.error(
            "lesson_generation_failed",
            subject=subject,
            grade=grade,
            topic=topic,
            error=str(e),
        )
        raise GenerationError(f"Lesson generation failed: {e}") from e

    lesson = _parse_lesson(raw)

    logger.info(
        "lesson_generated",
        subject=subject,
        grade=grade,
        topic=topic,
        title=lesson.title,
        questions=len(lesson.quiz),
        time_ms=int((time.time() - start_time) * 1000),
    )
    return lesson


def configured_generator(
    config: AppConfig | None = None,
    provider: str | None = None,
    model: str | None = None,
) -> LessonGenerator:
    """Bind generate_lesson to a provider from the app config.

    The LLM client is built on first use, so a missing API key only
    surfaces when a lesson is actually requested.
    """
    client: LLMClient | None = None

    def generate(subject: str, grade: str, topic: str) -> LessonContent:
        nonlocal client
        if client is None:
            try:
                client = LLMClient(LLMConfig.from_app_config(config, provider, model))
            except LLMError as e:
                raise GenerationError(str(e)) from e
        return generate_lesson(subject, grade, topic, client=client)

    return generate
