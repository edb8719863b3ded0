"""Lesson player: reading, then the quiz, then the result.

The player is linear. Calls made out of order raise InvalidTransition and
leave the state untouched.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any

import structlog

from lumina.client.api import ApiClientError, LuminaApiClient
from lumina.core.scoring import count_correct, score_answers
from lumina.db.lessons_repository import QuizQuestion

logger = structlog.get_logger(__name__)


class PlayerStep(Enum):
    """Steps of a single lesson run."""

    READING = auto()
    QUIZ = auto()
    RESULT = auto()  # terminal


class InvalidTransition(Exception):
    """Operation not allowed from the current step or view."""

    pass


class LessonPlayer:
    """Drives one student through one lesson.

    Args:
        lesson: Lesson as returned by GET /api/lesson/{id} (quiz decoded)
        student_id: Student the result is recorded for
        api: Client used to persist the result
    """

    def __init__(self, lesson: dict[str, Any], student_id: int, api: LuminaApiClient):
        self.lesson = lesson
        self.student_id = student_id
        self.api = api
        self.quiz = [QuizQuestion.from_dict(q) for q in lesson.get("quiz_json") or []]
        self.answers: list[int | None] = [None] * len(self.quiz)
        self.step = PlayerStep.READING
        self.score: int | None = None
        self.saved: bool | None = None

    @property
    def lesson_id(self) -> int:
        return self.lesson["id"]

    @property
    def title(self) -> str:
        return self.lesson.get("title") or ""

    @property
    def content(self) -> str:
        return self.lesson.get("content") or ""

    @property
    def correct_count(self) -> int:
        return count_correct(self.quiz, self.answers)

    @property
    def can_submit(self) -> bool:
        """True once every question has a selected option."""
        return (
            self.step is PlayerStep.QUIZ
            and bool(self.quiz)
            and all(a is not None for a in self.answers)
        )

    def _require(self, step: PlayerStep, action: str) -> None:
        if self.step is not step:
            raise InvalidTransition(f"Cannot {action} while in {self.step.name}")

    def start_quiz(self) -> None:
        self._require(PlayerStep.READING, "start the quiz")
        self.step = PlayerStep.QUIZ

    def select_answer(self, question_index: int, option_index: int) -> None:
        """Select (or change) the answer to one question.

        Raises:
            InvalidTransition: If not in the quiz step
            IndexError: If either index is out of range
        """
        self._require(PlayerStep.QUIZ, "select an answer")
        if not 0 <= question_index < len(self.quiz):
            raise IndexError(f"No question {question_index}")
        if not 0 <= option_index < len(self.quiz[question_index].options):
            raise IndexError(f"No option {option_index} for question {question_index}")
        self.answers[question_index] = option_index

    def submit(self) -> int:
        """Score the quiz, show the result, then record it.

        The result step is kept even when recording fails; `saved` tells
        whether the record reached the server.

        Returns:
            The integer percentage score
        """
        if not self.can_submit:
            raise InvalidTransition(
                f"Cannot submit from {self.step.name} with "
                f"{sum(a is None for a in self.answers)} unanswered question(s)"
            )

        self.score = score_answers(self.quiz, self.answers)
        self.step = PlayerStep.RESULT

        try:
            self.api.record_progress(
                self.student_id, self.lesson_id, self.score, answers=list(self.answers)
            )
        except ApiClientError as e:
            self.saved = False
            logger.error(
                "progress_not_saved",
                student_id=self.student_id,
                lesson_id=self.lesson_id,
                score=self.score,
                error=str(e),
            )
        else:
            self.saved = True

        return self.score
