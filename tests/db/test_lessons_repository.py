"""Tests for the lessons and progress repositories."""

import pytest

from lumina.db.lessons_repository import (
    QuizQuestion,
    create_lesson,
    decode_quiz,
    encode_quiz,
    get_lesson,
    has_lessons_for_grade,
    list_lessons,
)
from lumina.db.progress_repository import create_progress, list_progress


class TestQuizEncoding:
    """Tests for quiz (de)serialization."""

    def test_wire_keys(self):
        """Encoded questions use the correctAnswer key."""
        text = encode_quiz([QuizQuestion("2+2?", ["3", "4"], 1)])
        assert '"correctAnswer": 1' in text

    def test_empty_text_decodes_to_empty_quiz(self):
        assert decode_quiz(None) == []
        assert decode_quiz("") == []

    def test_string_options_rejected(self):
        with pytest.raises(TypeError, match="must be a list"):
            QuizQuestion.from_dict({"question": "Q?", "options": "ABCD", "correctAnswer": 0})

    def test_missing_options_is_empty(self):
        assert QuizQuestion.from_dict({"question": "Q?"}).options == []


class TestLessons:
    """Tests for storing and listing lessons."""

    def test_round_trip_quiz(self, db, sample_quiz):
        """A fetched quiz matches the submitted one question by question."""
        lesson_id = create_lesson(db, "Water", "Science", "3", "# Water", sample_quiz)
        lesson = get_lesson(db, lesson_id)

        assert [q.to_dict() for q in lesson.quiz] == sample_quiz
        assert lesson.created_at

    def test_missing_lesson(self, db):
        assert get_lesson(db, 404) is None

    def test_scoped_listing(self, db, sample_quiz):
        """A student sees grade-wide lessons plus their own private ones."""
        wide = create_lesson(db, "Wide", "Math", "3", "...", sample_quiz)
        mine = create_lesson(db, "Mine", "Math", "3", "...", sample_quiz, student_id=7)
        create_lesson(db, "Theirs", "Math", "3", "...", sample_quiz, student_id=8)
        create_lesson(db, "Other grade", "Math", "4", "...", sample_quiz)

        assert {lesson.id for lesson in list_lessons(db, "3")} == {wide}
        assert {lesson.id for lesson in list_lessons(db, "3", 7)} == {wide, mine}

    @pytest.mark.parametrize("student_id", [1, 2, 3])
    def test_unscoped_is_subset_of_scoped(self, db, sample_quiz, student_id):
        """Grade-wide results are always included in a student's results."""
        for owner in (None, 1, 2, None, 3):
            create_lesson(db, "L", "Math", "5", "...", sample_quiz, student_id=owner)

        unscoped = {lesson.id for lesson in list_lessons(db, "5")}
        scoped = {lesson.id for lesson in list_lessons(db, "5", student_id)}
        assert unscoped <= scoped
        assert len(scoped) == len(unscoped) + 1

    def test_newest_first(self, db, sample_quiz):
        """Lessons created in the same second come back by descending id."""
        first = create_lesson(db, "First", "Math", "2", "...", sample_quiz)
        second = create_lesson(db, "Second", "Math", "2", "...", sample_quiz)

        assert [lesson.id for lesson in list_lessons(db, "2")] == [second, first]

    def test_listing_keeps_quiz_serialized(self, db, sample_quiz):
        """Listings return quiz_json as text."""
        create_lesson(db, "Water", "Science", "3", "...", sample_quiz)
        assert isinstance(list_lessons(db, "3")[0].to_dict()["quiz_json"], str)

    def test_has_lessons_for_grade(self, db, sample_quiz):
        assert not has_lessons_for_grade(db, "K")
        create_lesson(db, "Counting", "Math", "K", "...", sample_quiz, student_id=3)
        assert has_lessons_for_grade(db, "K")


class TestProgress:
    """Tests for progress records."""

    def test_joined_with_lesson(self, db, sample_quiz):
        """Progress rows carry the lesson's title and subject."""
        lesson_id = create_lesson(db, "Water", "Science", "3", "...", sample_quiz)
        create_progress(db, 5, lesson_id, 80)

        [record] = list_progress(db, 5)
        assert record.score == 80
        assert record.title == "Water"
        assert record.subject == "Science"

    def test_newest_first(self, db, sample_quiz):
        lesson_id = create_lesson(db, "Water", "Science", "3", "...", sample_quiz)
        create_progress(db, 5, lesson_id, 40)
        create_progress(db, 5, lesson_id, 100)

        assert [p.score for p in list_progress(db, 5)] == [100, 40]

    def test_score_stored_as_given(self, db, sample_quiz):
        """Scores are not range-checked."""
        lesson_id = create_lesson(db, "Water", "Science", "3", "...", sample_quiz)
        create_progress(db, 5, lesson_id, 150)

        assert list_progress(db, 5)[0].score == 150
