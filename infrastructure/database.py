import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

from domain.entities import Task

logger = logging.getLogger(__name__)

Mutator = Callable[[Task], Task]
Predicate = Callable[[Task], bool]


class TaskStore(ABC):
    """Holder of the task collection, keyed by ``Task.id``.

    ``scan`` returns tasks ordered by ``created_at``, newest first, in every
    implementation.
    """

    @abstractmethod
    def insert(self, task: Task) -> Task: ...

    @abstractmethod
    def find(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    def update(self, task_id: str, mutator: Mutator) -> Optional[Task]:
        """Apply ``mutator`` to the stored task; None when the id is unknown."""

    @abstractmethod
    def delete(self, task_id: str) -> bool: ...

    @abstractmethod
    def scan(self) -> List[Task]: ...

    @abstractmethod
    def delete_where(self, predicate: Predicate) -> int:
        """Remove every task matching ``predicate`` and return how many went."""


class InMemoryTaskStore(TaskStore):
    def __init__(self, tasks: Optional[List[Task]] = None):
        self._tasks: List[Task] = list(tasks or [])

    def insert(self, task: Task) -> Task:
        if self.find(task.id) is not None:
            raise ValueError(f"Duplicate task id {task.id}")
        self._tasks.insert(0, task)
        return task

    def find(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def update(self, task_id: str, mutator: Mutator) -> Optional[Task]:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                self._tasks[idx] = mutator(task)
                return self._tasks[idx]
        return None

    def delete(self, task_id: str) -> bool:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        return len(self._tasks) < before

    def scan(self) -> List[Task]:
        # _tasks is newest insertion first; the stable sort keeps that for equal timestamps.
        return sorted(self._tasks, key=lambda t: t.created_at, reverse=True)

    def delete_where(self, predicate: Predicate) -> int:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if not predicate(t)]
        return before - len(self._tasks)


class SqliteTaskStore(TaskStore):
    def __init__(self, db_name: str = "todo.db"):
        self.db_name = db_name
        self._init_db()

    def _init_db(self):
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS todos (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
            """)
            conn.commit()

    @staticmethod
    def _row_to_task(row) -> Task:
        return Task(
            id=row[0],
            title=row[1],
            completed=bool(row[2]),
            created_at=datetime.fromisoformat(row[3])
        )

    def insert(self, task: Task) -> Task:
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO todos (id, title, completed, created_at) VALUES (?, ?, ?, ?)",
                    (task.id, task.title, 1 if task.completed else 0, task.created_at.isoformat(timespec="microseconds"))
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Duplicate task id {task.id}") from e
            conn.commit()
            return task

    def find(self, task_id: str) -> Optional[Task]:
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, title, completed, created_at FROM todos WHERE id = ?",
                (task_id,)
            )
            row = cursor.fetchone()
            if row:
                return self._row_to_task(row)
            return None

    def update(self, task_id: str, mutator: Mutator) -> Optional[Task]:
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, title, completed, created_at FROM todos WHERE id = ?",
                (task_id,)
            )
            row = cursor.fetchone()
            if not row:
                return None
            updated = mutator(self._row_to_task(row))
            cursor.execute(
                "UPDATE todos SET title = ?, completed = ? WHERE id = ?",
                (updated.title, 1 if updated.completed else 0, task_id)
            )
            conn.commit()
            return updated

    def delete(self, task_id: str) -> bool:
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM todos WHERE id = ?", (task_id,))
            conn.commit()
            return cursor.rowcount > 0

    def scan(self) -> List[Task]:
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, title, completed, created_at FROM todos ORDER BY created_at DESC, rowid DESC"
            )
            return [self._row_to_task(row) for row in cursor.fetchall()]

    def delete_where(self, predicate: Predicate) -> int:
        doomed = [task.id for task in self.scan() if predicate(task)]
        if not doomed:
            return 0
        with sqlite3.connect(self.db_name) as conn:
            cursor = conn.cursor()
            cursor.executemany("DELETE FROM todos WHERE id = ?", [(task_id,) for task_id in doomed])
            conn.commit()
            return len(doomed)


def build_store(settings) -> TaskStore:
    """Pick the store named by ``settings.store_backend``."""
    backend = settings.store_backend
    logger.info(f"Using {backend} task store")
    if backend == "memory":
        return InMemoryTaskStore()
    if backend == "sqlite":
        return SqliteTaskStore(settings.db_name)
    if backend == "dynamodb":
        from infrastructure.dynamodb import DynamoTaskStore
        return DynamoTaskStore(settings.table_name)
    raise ValueError(f"Unknown task store backend: {backend}")
