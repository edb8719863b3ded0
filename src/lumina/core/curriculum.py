"""Grade list and the suggested curriculum topics per grade."""

from __future__ import annotations

import random
from dataclasses import dataclass

GRADES: tuple[str, ...] = ("K",) + tuple(str(g) for g in range(1, 13))

SUBJECTS: tuple[str, ...] = (
    "Math",
    "Reading",
    "Language arts",
    "Science",
    "Social studies",
)


@dataclass(frozen=True)
class CurriculumItem:
    """A suggested lesson for a grade."""

    subject: str
    topic: str


CURRICULUM_TOPICS: dict[str, tuple[CurriculumItem, ...]] = {
    "K": (
        CurriculumItem("Math", "Counting to 20"),
        CurriculumItem("Reading", "Letter Sounds and Phonics"),
        CurriculumItem("Science", "The Five Senses"),
    ),
    "1": (
        CurriculumItem("Math", "Basic Addition and Subtraction"),
        CurriculumItem("Reading", "Sight Words and Sentence Building"),
        CurriculumItem("Science", "Animal Habitats"),
    ),
    "2": (
        CurriculumItem("Math", "Place Value and Regrouping"),
        CurriculumItem("Language arts", "Parts of Speech: Nouns and Verbs"),
        CurriculumItem("Social studies", "Community Helpers"),
    ),
    "3": (
        CurriculumItem("Math", "Introduction to Fractions"),
        CurriculumItem("Science", "The Water Cycle"),
        CurriculumItem("Social studies", "Ancient Civilizations: Egypt"),
    ),
    "4": (
        CurriculumItem("Math", "Long Division"),
        CurriculumItem("Science", "Electricity and Circuits"),
        CurriculumItem("Language arts", "Writing Persuasive Essays"),
    ),
    "5": (
        CurriculumItem("Math", "Decimals and Percentages"),
        CurriculumItem("Science", "The Solar System"),
        CurriculumItem("Social studies", "The American Revolution"),
    ),
    "6": (
        CurriculumItem("Math", "Introduction to Ratios"),
        CurriculumItem("Science", "Cell Biology"),
        CurriculumItem("Language arts", "Analyzing Mythology"),
    ),
    "7": (
        CurriculumItem("Math", "Pre-Algebra: Variables"),
        CurriculumItem("Science", "Plate Tectonics"),
        CurriculumItem("Social studies", "The Renaissance"),
    ),
    "8": (
        CurriculumItem("Math", "Linear Equations"),
        CurriculumItem("Science", "Chemical Reactions"),
        CurriculumItem("Language arts", "Shakespearean Drama"),
    ),
    "9": (
        CurriculumItem("Math", "Algebra I: Quadratics"),
        CurriculumItem("Science", "Environmental Science"),
        CurriculumItem("Social studies", "World War I"),
    ),
    "10": (
        CurriculumItem("Math", "Geometry: Proofs"),
        CurriculumItem("Science", "Genetics and DNA"),
        CurriculumItem("Language arts", "Modern Literature Analysis"),
    ),
    "11": (
        CurriculumItem("Math", "Algebra II: Trigonometry"),
        CurriculumItem("Science", "Physics: Motion and Force"),
        CurriculumItem("Social studies", "The Cold War"),
    ),
    "12": (
        CurriculumItem("Math", "Calculus: Derivatives"),
        CurriculumItem("Science", "Organic Chemistry"),
        CurriculumItem("Language arts", "College Research Writing"),
    ),
}


def topics_for_grade(grade: str) -> tuple[CurriculumItem, ...]:
    """Suggested topics for a grade (empty for unknown grades)."""
    return CURRICULUM_TOPICS.get(grade, ())


def visible_grades(only_grade: str | None = None) -> list[str]:
    """Grades shown in the curriculum view, optionally narrowed to one."""
    if only_grade is None:
        return list(GRADES)
    return [g for g in GRADES if g == only_grade]


def pick_random_topic(grade: str, rng: random.Random | None = None) -> CurriculumItem:
    """Pick one suggested topic for a grade at random.

    Raises:
        KeyError: If the grade has no curriculum topics
    """
    topics = topics_for_grade(grade)
    if not topics:
        raise KeyError(grade)
    return (rng or random).choice(topics)


def placeholder_topic(subject: str, grade: str) -> str:
    """Generic topic used when seeding a grade with no curriculum pick."""
    return f"Introduction to {subject} for Grade {grade}"
