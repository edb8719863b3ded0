"""FastAPI application factory.

Main entry point for the Lumina Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lumina.config.app_config import AppConfig, load_app_config
from lumina.core.lesson_generator import LessonGenerator, configured_generator
from lumina.db.database import Database
from lumina.web.errors import register_error_handlers
from lumina.web.routes import (
    auth_router,
    health_router,
    lessons_router,
    progress_router,
    students_router,
    tasks_router,
)
from lumina.web.tasks import TaskManager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the store and start the task manager; undo both at shutdown."""
    database: Database = app.state.database
    owns_database = not database.is_open
    if owns_database:
        database.open()

    app.state.tasks = TaskManager()
    logger.info(
        "api_startup",
        database=str(database.path),
        schema_version=database.schema_version(),
    )
    yield

    await app.state.tasks.shutdown()
    if owns_database:
        database.close()
    logger.info("api_shutdown")


def create_app(
    config: AppConfig | None = None,
    database: Database | None = None,
    generator: LessonGenerator | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: App config; loaded from file when omitted
        database: Store handle; built from config.database.path when omitted
        generator: Lesson generator for /api/lessons/generate; defaults to
            the configured LLM provider

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    app = FastAPI(
        title="Lumina API",
        description="Web API for the Lumina home-schooling app",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.database = database or Database(config.database.path)
    app.state.generator = generator or configured_generator(config)

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(lessons_router)
    app.include_router(progress_router)
    app.include_router(tasks_router)

    return app


# Default app instance for uvicorn
app = create_app()
