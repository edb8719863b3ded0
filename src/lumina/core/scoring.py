"""Quiz scoring.

score = round(100 * correct / total), an integer percentage.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from lumina.db.lessons_repository import QuizQuestion

STRONG_THRESHOLD = 80
FAIR_THRESHOLD = 60


class ScoringError(ValueError):
    """Answers cannot be scored against the quiz."""

    pass


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def count_correct(quiz: Sequence[QuizQuestion], answers: Sequence[int | None]) -> int:
    """Count answers matching the quiz's answer key, position by position."""
    return sum(
        1
        for question, answer in zip(quiz, answers)
        if answer is not None and answer == question.correct_answer
    )


def score_percentage(correct: int, total: int) -> int:
    """Integer percentage of correct answers, halves rounded up.

    Raises:
        ScoringError: If total is not positive
    """
    if total <= 0:
        raise ScoringError("Cannot score a quiz with no questions")
    return _round_half_up(Decimal(100 * correct) / Decimal(total))


def score_answers(quiz: Sequence[QuizQuestion], answers: Sequence[int | None]) -> int:
    """Score a full answer vector against a quiz.

    Raises:
        ScoringError: If the quiz is empty or the answer count differs
    """
    if len(answers) != len(quiz):
        raise ScoringError(
            f"Expected {len(quiz)} answers, got {len(answers)}"
        )
    return score_percentage(count_correct(quiz, answers), len(quiz))


def average_score(scores: Sequence[int]) -> int:
    """Rounded mean of scores; 0 when there are none."""
    if not scores:
        return 0
    return _round_half_up(Decimal(sum(scores)) / Decimal(len(scores)))


def score_band(score: int) -> str:
    """Report band for a score: strong, fair or needs_work."""
    if score >= STRONG_THRESHOLD:
        return "strong"
    if score >= FAIR_THRESHOLD:
        return "fair"
    return "needs_work"


@dataclass
class ReportSummary:
    """Aggregate view of a student's results."""

    attempts: int
    average: int
    best: int

    @classmethod
    def from_scores(cls, scores: Sequence[int]) -> ReportSummary:
        return cls(
            attempts=len(scores),
            average=average_score(scores),
            best=max(scores) if scores else 0,
        )
