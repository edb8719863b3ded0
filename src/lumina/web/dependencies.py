"""Request dependencies resolving the per-app resources set up in the lifespan."""

from fastapi import Request

from lumina.config.app_config import AppConfig
from lumina.core.lesson_generator import LessonGenerator
from lumina.db.database import Database
from lumina.web.tasks import TaskManager


def get_database(request: Request) -> Database:
    """The open Database handle owned by the application."""
    return request.app.state.database


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_task_manager(request: Request) -> TaskManager:
    return request.app.state.tasks


def get_generator(request: Request) -> LessonGenerator:
    """The lesson generator used by the server-side generate endpoint."""
    return request.app.state.generator
