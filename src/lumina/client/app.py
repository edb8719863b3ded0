"""View-state machine for the Lumina client.

Views: LOGIN -> DASHBOARD <-> {CREATE, CURRICULUM, REPORT}, and
DASHBOARD -> LESSON -> REPORT. A parent can pick a student to assign work
to; that assigning-to context scopes the next create or curriculum pick
and is cleared on success or on return to the dashboard.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import structlog

from lumina.client.api import ApiClientError, LuminaApiClient
from lumina.client.player import InvalidTransition, LessonPlayer, PlayerStep
from lumina.core.curriculum import GRADES, pick_random_topic, topics_for_grade, visible_grades
from lumina.core.lesson_generator import GenerationError, LessonGenerator
from lumina.core.scoring import ReportSummary

logger = structlog.get_logger(__name__)


class View(Enum):
    """Top-level screens."""

    LOGIN = auto()
    DASHBOARD = auto()
    CREATE = auto()
    CURRICULUM = auto()
    REPORT = auto()
    LESSON = auto()


class NotAllowed(Exception):
    """Operation not permitted for the signed-in user."""

    pass


@dataclass
class AssignedLesson:
    """Outcome of a create, pick or auto-assign step."""

    lesson_id: int
    title: str
    grade: str
    student: dict[str, Any] | None = None

    @property
    def target(self) -> str:
        return self.student["name"] if self.student else f"Grade {self.grade}"


class LuminaApp:
    """Client state shared by every view.

    Args:
        api: API client
        generator: Optional local lesson generator. When omitted, lessons
            are generated through POST /api/lessons/generate.
    """

    def __init__(self, api: LuminaApiClient, generator: LessonGenerator | None = None):
        self.api = api
        self.generator = generator
        self._reset()

    def _reset(self) -> None:
        self.view = View.LOGIN
        self.user: dict[str, Any] | None = None
        self.students: list[dict[str, Any]] = []
        self.lessons: list[dict[str, Any]] = []
        self.progress: list[dict[str, Any]] = []
        self.selected_student: dict[str, Any] | None = None
        self.assigning_to: dict[str, Any] | None = None
        self.player: LessonPlayer | None = None

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    @property
    def is_parent(self) -> bool:
        return self.user is not None and self.user["role"] == "parent"

    def _require_user(self) -> dict[str, Any]:
        if self.user is None:
            raise InvalidTransition("Not signed in")
        return self.user

    def _require_parent(self, action: str) -> dict[str, Any]:
        user = self._require_user()
        if user["role"] != "parent":
            raise NotAllowed(f"Only parents can {action}")
        return user

    def _require_view(self, *views: View) -> None:
        if self.view not in views:
            names = ", ".join(v.name for v in views)
            raise InvalidTransition(f"Expected view {names}, current view is {self.view.name}")

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def login(self, identifier: str, role: str = "parent") -> dict[str, Any]:
        """Sign in (registering on first use) and load the dashboard data.

        The app stays on the login view if the dashboard data cannot be loaded.
        """
        self._require_view(View.LOGIN)
        user = self.api.login(identifier, role)
        self._load(user)
        self.user = user
        self.view = View.DASHBOARD
        logger.info("client.signed_in", user_id=user["id"], role=user["role"])
        return user

    def refresh(self) -> None:
        """Reload students (parent) or lessons and progress (student)."""
        self._load(self._require_user())

    def _load(self, user: dict[str, Any]) -> None:
        if user["role"] == "parent":
            self.students = self.api.list_students(user["id"])
            return

        # Self-registered students have no grade until a parent assigns one.
        grade = user.get("gradeLevel")
        lessons = self.api.list_lessons(grade, user["id"]) if grade else []
        progress = self.api.list_progress(user["id"])
        self.lessons = lessons
        self.progress = progress

    def sign_out(self) -> None:
        self._reset()

    def go_dashboard(self) -> None:
        self._require_user()
        self.assigning_to = None
        self.player = None
        self.view = View.DASHBOARD

    # -------------------------------------------------------------------------
    # Parent views
    # -------------------------------------------------------------------------

    def open_create(self) -> None:
        self._require_parent("create lessons")
        self.view = View.CREATE

    def open_curriculum(self) -> None:
        self._require_parent("browse the curriculum")
        self.view = View.CURRICULUM

    def assign_to(self, student: dict[str, Any], view: View) -> None:
        """Scope the next create or curriculum pick to one student."""
        self._require_parent("assign lessons")
        if view not in (View.CREATE, View.CURRICULUM):
            raise InvalidTransition(f"Cannot assign from {view.name}")
        self.assigning_to = student
        self.view = view

    @property
    def curriculum_grades(self) -> list[str]:
        """Grades listed in the curriculum view."""
        only = self.assigning_to.get("gradeLevel") if self.assigning_to else None
        return visible_grades(only)

    def add_student(self, name: str, grade_level: str, email: str | None = None) -> int:
        parent = self._require_parent("add students")
        student_id = self.api.add_student(name, grade_level, parent["id"], email=email)
        self.students = self.api.list_students(parent["id"])
        return student_id

    def remove_student(self, student_id: int) -> None:
        self._require_parent("remove students")
        self.api.delete_student(student_id)
        self.students = [s for s in self.students if s["id"] != student_id]
        if self.assigning_to and self.assigning_to["id"] == student_id:
            self.assigning_to = None
        if self.selected_student and self.selected_student["id"] == student_id:
            self.selected_student = None

    def _generate_and_store(
        self,
        subject: str,
        grade: str,
        topic: str,
        student: dict[str, Any] | None,
    ) -> AssignedLesson:
        student_id = student["id"] if student else None
        if self.generator is None:
            stored = self.api.generate_lesson(subject, grade, topic, student_id=student_id)
            return AssignedLesson(stored["id"], stored["title"], grade, student)

        content = self.generator(subject, grade, topic)
        lesson_id = self.api.create_lesson(
            title=content.title,
            subject=subject,
            grade_level=grade,
            content=content.content,
            quiz=[q.to_dict() for q in content.quiz],
            student_id=student_id,
        )
        return AssignedLesson(lesson_id, content.title, grade, student)

    def create_lesson(self, subject: str, grade: str, topic: str) -> AssignedLesson:
        """Generate a lesson from the create view.

        With an assigning-to student the lesson is private to them and uses
        their grade. Success returns to the dashboard.
        """
        self._require_parent("create lessons")
        self._require_view(View.CREATE)

        student = self.assigning_to
        if student is not None:
            grade = student.get("gradeLevel") or grade

        assigned = self._generate_and_store(subject, grade, topic, student)
        logger.info("client.lesson_assigned", lesson_id=assigned.lesson_id, target=assigned.target)
        self.assigning_to = None
        self.view = View.DASHBOARD
        return assigned

    def pick_curriculum(self, grade: str, index: int) -> AssignedLesson:
        """Generate the curriculum item at `index` for `grade`.

        Only an assigned pick returns to the dashboard; a grade-wide pick
        stays in the curriculum view.
        """
        self._require_parent("assign curriculum lessons")
        self._require_view(View.CURRICULUM)
        if grade not in self.curriculum_grades:
            raise NotAllowed(f"Grade {grade} is not listed in this curriculum view")

        item = topics_for_grade(grade)[index]
        student = self.assigning_to
        assigned = self._generate_and_store(item.subject, grade, item.topic, student)
        logger.info("client.lesson_assigned", lesson_id=assigned.lesson_id, target=assigned.target)

        if student is not None:
            self.assigning_to = None
            self.view = View.DASHBOARD
        return assigned

    def auto_assign_all_grades(self, rng: random.Random | None = None) -> list[AssignedLesson]:
        """Generate one grade-wide lesson per grade, one grade at a time.

        A failing grade is logged and skipped.
        """
        self._require_parent("auto-assign lessons")
        assigned: list[AssignedLesson] = []

        for grade in GRADES:
            item = pick_random_topic(grade, rng)
            try:
                assigned.append(self._generate_and_store(item.subject, grade, item.topic, None))
            except (GenerationError, ApiClientError) as e:
                logger.error("client.auto_assign_failed", grade=grade, error=str(e))

        logger.info("client.auto_assign_finished", assigned=len(assigned), grades=len(GRADES))
        return assigned

    # -------------------------------------------------------------------------
    # Reports and lessons
    # -------------------------------------------------------------------------

    def open_report(self, student: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Show progress for a parent's student, or for the signed-in student."""
        user = self._require_user()
        if student is not None:
            self._require_parent("view another student's report")
            self.selected_student = student
            target_id = student["id"]
        elif user["role"] == "student":
            self.selected_student = None
            target_id = user["id"]
        elif self.selected_student is not None:
            target_id = self.selected_student["id"]
        else:
            raise NotAllowed("Pick a student to view a report")

        self.progress = self.api.list_progress(target_id)
        self.view = View.REPORT
        return self.progress

    @property
    def report_summary(self) -> ReportSummary:
        return ReportSummary.from_scores([p["score"] for p in self.progress])

    def start_lesson(self, lesson_id: int) -> LessonPlayer:
        user = self._require_user()
        lesson = self.api.get_lesson(lesson_id)
        if lesson is None:
            raise LookupError(f"Lesson not found: {lesson_id}")
        self.player = LessonPlayer(lesson, user["id"], self.api)
        self.view = View.LESSON
        return self.player

    def finish_lesson(self) -> list[dict[str, Any]]:
        """Leave a completed lesson for the report view."""
        user = self._require_user()
        self._require_view(View.LESSON)
        if self.player is None or self.player.step is not PlayerStep.RESULT:
            raise InvalidTransition("Lesson is not finished")

        self.player = None
        self.selected_student = None
        self.progress = self.api.list_progress(user["id"])
        self.view = View.REPORT
        return self.progress

    def exit_lesson(self) -> None:
        """Close the player without finishing."""
        self._require_view(View.LESSON)
        self.player = None
        self.view = View.DASHBOARD
