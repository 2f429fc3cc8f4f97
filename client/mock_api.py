import asyncio
from typing import List

from application.use_cases import TaskService
from domain.entities import Task
from infrastructure.database import InMemoryTaskStore

# Simulated round-trip latency per call, in seconds.
LATENCY = {
    "list": 0.150,
    "create": 0.120,
    "toggle": 0.100,
    "remove": 0.080,
    "clear": 0.080,
}


class MockTodoApi:
    """In-process stand-in for ``TodoApiClient`` backed by an in-memory store.

    Raises the same ``TodoError`` classes the HTTP client does, so the UI
    state controller can run against it unchanged during local development.
    """

    def __init__(self, service: TaskService | None = None, simulate_latency: bool = True):
        self.service = service or TaskService(InMemoryTaskStore())
        self.simulate_latency = simulate_latency

    async def _delay(self, call: str) -> None:
        if self.simulate_latency:
            await asyncio.sleep(LATENCY[call])

    async def list_todos(self) -> List[Task]:
        await self._delay("list")
        return self.service.list_tasks()

    async def create_todo(self, title: str) -> Task:
        await self._delay("create")
        return self.service.create_task(title)

    async def toggle_todo(self, task_id: str) -> Task:
        await self._delay("toggle")
        return self.service.toggle_task(task_id)

    async def remove_todo(self, task_id: str) -> None:
        await self._delay("remove")
        self.service.remove_task(task_id)

    async def clear_completed(self) -> int:
        await self._delay("clear")
        return self.service.clear_completed()
