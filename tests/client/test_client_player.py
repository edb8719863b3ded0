"""Tests for the lesson player."""

from unittest.mock import MagicMock

import pytest

from lumina.client.api import ApiClientError, LuminaApiClient
from lumina.client.player import InvalidTransition, LessonPlayer, PlayerStep


@pytest.fixture
def lesson(sample_quiz):
    return {"id": 11, "title": "Fractions", "content": "# Fractions", "quiz_json": sample_quiz}


@pytest.fixture
def api():
    return MagicMock(spec=LuminaApiClient)


@pytest.fixture
def player(lesson, api):
    return LessonPlayer(lesson, student_id=3, api=api)


def _answer_all(player, answers):
    for idx, option in enumerate(answers):
        player.select_answer(idx, option)


class TestTransitions:
    """Tests for READING -> QUIZ -> RESULT."""

    def test_starts_reading(self, player):
        assert player.step is PlayerStep.READING
        assert not player.can_submit

    def test_start_quiz(self, player):
        player.start_quiz()
        assert player.step is PlayerStep.QUIZ

    def test_cannot_answer_while_reading(self, player):
        with pytest.raises(InvalidTransition):
            player.select_answer(0, 0)

    def test_cannot_restart_quiz(self, player):
        player.start_quiz()
        with pytest.raises(InvalidTransition):
            player.start_quiz()

    def test_submit_needs_every_answer(self, player):
        """Submit stays disabled until each question has a selection."""
        player.start_quiz()
        _answer_all(player, [0, 1, 2, 3])
        assert not player.can_submit
        with pytest.raises(InvalidTransition):
            player.submit()
        assert player.step is PlayerStep.QUIZ

        player.select_answer(4, 0)
        assert player.can_submit

    def test_result_is_terminal(self, player):
        player.start_quiz()
        _answer_all(player, [0, 1, 2, 3, 0])
        player.submit()

        with pytest.raises(InvalidTransition):
            player.select_answer(0, 1)
        with pytest.raises(InvalidTransition):
            player.submit()

    def test_out_of_range_selection(self, player):
        player.start_quiz()
        with pytest.raises(IndexError):
            player.select_answer(5, 0)
        with pytest.raises(IndexError):
            player.select_answer(0, 4)

    def test_changing_an_answer(self, player):
        player.start_quiz()
        player.select_answer(0, 3)
        player.select_answer(0, 0)
        assert player.answers[0] == 0

    def test_empty_quiz_cannot_submit(self, api):
        player = LessonPlayer({"id": 1, "quiz_json": []}, 3, api)
        player.start_quiz()
        assert not player.can_submit


class TestSubmit:
    """Tests for scoring and recording."""

    def test_four_of_five(self, player, api):
        """Score is computed locally and sent with the answers."""
        player.start_quiz()
        _answer_all(player, [0, 1, 2, 3, 1])

        assert player.submit() == 80
        assert player.step is PlayerStep.RESULT
        assert player.correct_count == 4
        assert player.saved is True
        api.record_progress.assert_called_once_with(3, 11, 80, answers=[0, 1, 2, 3, 1])

    def test_save_failure_keeps_result(self, player, api):
        """A failed save is recorded but the result stays on screen."""
        api.record_progress.side_effect = ApiClientError(500, "down")
        player.start_quiz()
        _answer_all(player, [0, 0, 0, 0, 0])

        assert player.submit() == 40
        assert player.step is PlayerStep.RESULT
        assert player.saved is False
