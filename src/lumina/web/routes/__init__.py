"""Route handlers for the Web API."""

from lumina.web.routes.auth import router as auth_router
from lumina.web.routes.health import router as health_router
from lumina.web.routes.lessons import router as lessons_router
from lumina.web.routes.progress import router as progress_router
from lumina.web.routes.students import router as students_router
from lumina.web.routes.tasks import router as tasks_router

__all__ = [
    "auth_router",
    "health_router",
    "lessons_router",
    "progress_router",
    "students_router",
    "tasks_router",
]
