from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    completed: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def new(cls, title: str) -> "Task":
        """Fresh task with a server-assigned id, not yet completed."""
        return cls(id=str(uuid.uuid4()), title=title)

    def toggled(self) -> "Task":
        return replace(self, completed=not self.completed)


class TodoFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


def filter_tasks(tasks: Iterable[Task], todo_filter: TodoFilter = TodoFilter.ALL) -> List[Task]:
    todo_filter = TodoFilter(todo_filter)
    if todo_filter is TodoFilter.ACTIVE:
        return [t for t in tasks if not t.completed]
    if todo_filter is TodoFilter.COMPLETED:
        return [t for t in tasks if t.completed]
    return list(tasks)


def count_active(tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if not t.completed)
