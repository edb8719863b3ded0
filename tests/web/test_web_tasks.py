"""Tests for seeding and background task tracking."""

import asyncio
import time

import pytest

from lumina.web.tasks import TaskManager


def _wait_for_task(client, task_id, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        task = client.get(f"/api/tasks/{task_id}").json()
        if task["status"] in ("completed", "failed") or time.monotonic() > deadline:
            return task
        time.sleep(0.02)


class TestSeedEndpoint:
    """Tests for POST /api/seed."""

    def test_seed_acknowledges_immediately(self, client):
        response = client.post("/api/seed")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Seeding started in background"
        assert body["task_id"]

    def test_seed_completes_without_generating(self, client, generator):
        """The seed task finishes and never creates lessons."""
        task_id = client.post("/api/seed").json()["task_id"]

        task = _wait_for_task(client, task_id)
        assert task["status"] == "completed"
        assert task["name"] == "seed"
        assert task["finished_at"]
        assert generator.calls == []
        for grade in ("K", "3", "12"):
            assert client.get(f"/api/lessons/{grade}").json() == []


class TestTaskStatus:
    """Tests for GET /api/tasks/{task_id}."""

    def test_unknown_task(self, client):
        response = client.get("/api/tasks/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Task not found: nope"}


class TestTaskManager:
    """Tests for TaskManager."""

    @pytest.mark.asyncio
    async def test_completed_task(self):
        """Successful work ends as completed."""
        manager = TaskManager()

        async def work():
            await asyncio.sleep(0)

        record = await manager.submit("noop", work)
        finished = await manager.wait(record.task_id)
        assert finished.status == "completed"
        assert finished.done
        assert finished.error is None

    @pytest.mark.asyncio
    async def test_failed_task_records_error(self):
        """Exceptions are recorded on the task, not raised."""
        manager = TaskManager()

        async def work():
            raise RuntimeError("out of lessons")

        record = await manager.submit("broken", work)
        finished = await manager.wait(record.task_id)
        assert finished.status == "failed"
        assert finished.error == "out of lessons"

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending(self):
        """Unfinished tasks are cancelled at shutdown."""
        manager = TaskManager()

        async def work():
            await asyncio.sleep(60)

        record = await manager.submit("slow", work)
        await asyncio.sleep(0)
        await manager.shutdown()

        assert record.status == "failed"
        assert record.error == "cancelled"

    @pytest.mark.asyncio
    async def test_get_unknown(self):
        assert await TaskManager().get("missing") is None

    @pytest.mark.asyncio
    async def test_list_tasks(self):
        manager = TaskManager()

        async def work():
            return None

        await manager.submit("a", work)
        await manager.submit("b", work)
        assert sorted(t.name for t in await manager.list_tasks()) == ["a", "b"]
