import logging
from typing import List

from domain.entities import Task
from domain.errors import NotFoundError, ValidationError
from infrastructure.database import TaskStore

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, store: TaskStore):
        self.store = store

    def list_tasks(self) -> List[Task]:
        return self.store.scan()

    def create_task(self, title: str) -> Task:
        trimmed = (title or "").strip()
        if not trimmed:
            raise ValidationError("title required")
        task = self.store.insert(Task.new(trimmed))
        logger.info(f"Created task {task.id}")
        return task

    def toggle_task(self, task_id: str) -> Task:
        updated = self.store.update(task_id, lambda task: task.toggled())
        if updated is None:
            raise NotFoundError(task_id)
        logger.info(f"Task {task_id} toggled to completed = {updated.completed}")
        return updated

    def remove_task(self, task_id: str) -> None:
        if not self.store.delete(task_id):
            raise NotFoundError(task_id)
        logger.info(f"Removed task {task_id}")

    def clear_completed(self) -> int:
        removed = self.store.delete_where(lambda task: task.completed)
        logger.info(f"Cleared {removed} completed tasks")
        return removed
