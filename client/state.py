"""Client-side state for the to-do screen.

Create, toggle and remove are optimistic: the local list changes first, the
request follows, and a failure undoes only the change to the task that
failed, so actions that overlapped with it keep their results.
Clear-completed waits for the server. Error messages clear themselves after
``error_dismiss_seconds`` through a cancellable timer, so a newer error is never
dismissed by an older error's timer.
"""
import asyncio
import logging
import uuid
from enum import Enum
from typing import Callable, List, Optional, Protocol

from config import Settings
from domain.entities import Task, TodoFilter, count_active, filter_tasks
from domain.errors import TodoError

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local-"
EMPTY_TITLE_MESSAGE = "Task title cannot be empty"


class TodoApi(Protocol):
    async def list_todos(self) -> List[Task]: ...
    async def create_todo(self, title: str) -> Task: ...
    async def toggle_todo(self, task_id: str) -> Task: ...
    async def remove_todo(self, task_id: str) -> None: ...
    async def clear_completed(self) -> int: ...


class Status(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR_TRANSIENT = "error-transient"


def is_pending(task: Task) -> bool:
    """True for a task inserted locally that the server has not confirmed yet."""
    return task.id.startswith(LOCAL_ID_PREFIX)


class TodoController:
    def __init__(self, api: TodoApi, error_dismiss_seconds: float = 3.0):
        self.api = api
        self.error_dismiss_seconds = error_dismiss_seconds
        self.todos: List[Task] = []
        self.filter: TodoFilter = TodoFilter.ALL
        self.loading: bool = False
        self.error: Optional[str] = None
        self._dismiss_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[["TodoController"], None]] = []

    @classmethod
    def from_settings(cls, api: TodoApi, settings: Settings) -> "TodoController":
        return cls(api, error_dismiss_seconds=settings.error_dismiss_seconds)

    # -------------------- derived state --------------------
    @property
    def status(self) -> Status:
        if self.loading:
            return Status.LOADING
        if self.error:
            return Status.ERROR_TRANSIENT
        return Status.READY

    @property
    def visible(self) -> List[Task]:
        return filter_tasks(self.todos, self.filter)

    @property
    def items_left(self) -> int:
        return count_active(self.todos)

    def find(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.todos if t.id == task_id), None)

    # -------------------- change notification --------------------
    def subscribe(self, listener: Callable[["TodoController"], None]) -> Callable[[], None]:
        """Register a render callback; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------- transient errors --------------------
    def _show_error(self, message: str) -> None:
        self._cancel_dismiss()
        self.error = message
        loop = asyncio.get_running_loop()
        self._dismiss_handle = loop.call_later(self.error_dismiss_seconds, self.dismiss_error)
        self._notify()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def dismiss_error(self) -> None:
        self._cancel_dismiss()
        if self.error is not None:
            self.error = None
            self._notify()

    def _report_failure(self, action: str, error: TodoError) -> None:
        logger.warning(f"{action} failed, rolling back: {error.message}")
        self._show_error(f"Could not {action}: {error.message}")

    # -------------------- intents --------------------
    async def load(self) -> None:
        self.loading = True
        self._notify()
        try:
            self.todos = await self.api.list_todos()
        except TodoError as e:
            logger.warning(f"Initial load failed, starting empty: {e.message}")
            self.todos = []
        finally:
            self.loading = False
            self._notify()

    def set_filter(self, value) -> None:
        self.filter = TodoFilter(value)
        self._notify()

    async def add(self, title: str) -> Optional[Task]:
        trimmed = (title or "").strip()
        if not trimmed:
            self._show_error(EMPTY_TITLE_MESSAGE)
            return None

        placeholder = Task(id=f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}", title=trimmed)
        self.todos = [placeholder] + self.todos
        self._notify()

        try:
            created = await self.api.create_todo(trimmed)
        except TodoError as e:
            self.todos = [t for t in self.todos if t.id != placeholder.id]
            self._report_failure("add task", e)
            return None

        self.todos = [created if t.id == placeholder.id else t for t in self.todos]
        self._notify()
        return created

    async def toggle(self, task_id: str) -> Optional[Task]:
        current = self.find(task_id)
        if current is None or is_pending(current):
            return None

        self.todos = [t.toggled() if t.id == task_id else t for t in self.todos]
        self._notify()

        try:
            updated = await self.api.toggle_todo(task_id)
        except TodoError as e:
            self.todos = [current if t.id == task_id else t for t in self.todos]
            self._report_failure("update task", e)
            return None

        self.todos = [updated if t.id == task_id else t for t in self.todos]
        self._notify()
        return updated

    async def remove(self, task_id: str) -> bool:
        current = self.find(task_id)
        if current is None or is_pending(current):
            return False

        index = self.todos.index(current)
        self.todos = [t for t in self.todos if t.id != task_id]
        self._notify()

        try:
            await self.api.remove_todo(task_id)
        except TodoError as e:
            if self.find(task_id) is None:
                index = min(index, len(self.todos))
                self.todos = self.todos[:index] + [current] + self.todos[index:]
            self._report_failure("delete task", e)
            return False
        return True

    async def clear_completed(self) -> int:
        try:
            removed = await self.api.clear_completed()
        except TodoError as e:
            logger.warning(f"Clear completed failed: {e.message}")
            self._show_error(f"Could not clear completed tasks: {e.message}")
            return 0

        self.todos = [t for t in self.todos if not t.completed]
        self._notify()
        return removed

    def close(self) -> None:
        self._cancel_dismiss()
