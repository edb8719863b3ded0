"""Core domain logic.

Modules:
- lesson_generator: lesson + quiz generation through the LLM client
- curriculum: grade list and suggested topics per grade
- scoring: quiz score formula and report aggregates
"""

__all__ = [
    "lesson_generator",
    "curriculum",
    "scoring",
]
