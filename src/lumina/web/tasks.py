"""Background task tracking for the Web API.

Work started from a request (such as seeding) runs as an asyncio task after
the response is sent. Each run gets a record whose status can be polled.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal

import structlog

logger = structlog.get_logger(__name__)

TaskStatus = Literal["pending", "running", "completed", "failed"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class BackgroundTaskRecord:
    """A tracked unit of background work."""

    task_id: str
    name: str
    status: TaskStatus = "pending"
    created_at: str = field(default_factory=_now)
    finished_at: str | None = None
    error: str | None = None
    handle: asyncio.Task | None = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.status in ("completed", "failed")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "task_id": self.task_id,
            "name": self.name,
            "status": self.status,
            "created_at": self.created_at,
            "finished_at": self.finished_at,
            "error": self.error,
        }


class TaskManager:
    """Starts background work and keeps its completion status.

    One instance lives on app.state for the lifetime of the application.
    """

    def __init__(self):
        self._tasks: dict[str, BackgroundTaskRecord] = {}
        self._lock = asyncio.Lock()

    async def submit(
        self,
        name: str,
        work: Callable[[], Awaitable[Any]],
    ) -> BackgroundTaskRecord:
        """Schedule work on the running loop and return its record.

        Args:
            name: Short label for logs and status responses
            work: Zero-argument coroutine function to run

        Returns:
            The pending BackgroundTaskRecord
        """
        record = BackgroundTaskRecord(task_id=uuid.uuid4().hex[:12], name=name)

        async with self._lock:
            self._tasks[record.task_id] = record

        record.handle = asyncio.create_task(self._run(record, work))
        logger.info("task_submitted", task_id=record.task_id, name=name)
        return record

    async def _run(
        self,
        record: BackgroundTaskRecord,
        work: Callable[[], Awaitable[Any]],
    ) -> None:
        record.status = "running"
        try:
            await work()
        except asyncio.CancelledError:
            record.status = "failed"
            record.error = "cancelled"
            raise
        except Exception as e:
            record.status = "failed"
            record.error = str(e)
            logger.error(
                "task_failed",
                task_id=record.task_id,
                name=record.name,
                error=str(e),
            )
        else:
            record.status = "completed"
            logger.info("task_completed", task_id=record.task_id, name=record.name)
        finally:
            record.finished_at = _now()

    async def get(self, task_id: str) -> BackgroundTaskRecord | None:
        """Get a task record by ID."""
        async with self._lock:
            return self._tasks.get(task_id)

    async def wait(self, task_id: str) -> BackgroundTaskRecord | None:
        """Wait for a task to finish and return its record."""
        record = await self.get(task_id)
        if record is None or record.handle is None:
            return record
        await asyncio.gather(record.handle, return_exceptions=True)
        return record

    async def list_tasks(self) -> list[BackgroundTaskRecord]:
        async with self._lock:
            return list(self._tasks.values())

    async def shutdown(self) -> None:
        """Cancel unfinished tasks. Called when the app stops."""
        async with self._lock:
            pending = [r.handle for r in self._tasks.values() if r.handle and not r.handle.done()]

        for handle in pending:
            handle.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info("tasks_cancelled", count=len(pending))
