import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from domain.entities import Task
from infrastructure.database import Mutator, Predicate, TaskStore

logger = logging.getLogger(__name__)


def _parse_created_at(value: Any) -> datetime:
    # Older items carry epoch milliseconds as a number.
    if isinstance(value, (int, float, Decimal)):
        return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def item_to_task(item: Dict[str, Any]) -> Task:
    return Task(
        id=str(item["id"]),
        title=str(item.get("title") or item.get("text") or ""),
        completed=bool(item.get("completed", False)),
        created_at=_parse_created_at(item["createdAt"]),
    )


def task_to_item(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "completed": task.completed,
        "createdAt": task.created_at.isoformat(timespec="microseconds"),
    }


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoTaskStore(TaskStore):
    """Task store on a DynamoDB table with ``id`` as its partition key.

    Single-item reads and conditional writes give the consistency the
    toggle read-modify-write needs; bulk deletes are not transactional.
    """

    def __init__(self, table_name: str = "todo-app-tasks", table: Any = None):
        self.table_name = table_name
        self._table = table

    @property
    def table(self) -> Any:
        if self._table is None:
            self._table = boto3.resource("dynamodb").Table(self.table_name)
        return self._table

    def insert(self, task: Task) -> Task:
        try:
            self.table.put_item(
                Item=task_to_item(task),
                ConditionExpression=Attr("id").not_exists(),
            )
        except ClientError as e:
            if _is_conditional_failure(e):
                raise ValueError(f"Duplicate task id {task.id}") from e
            raise
        return task

    def find(self, task_id: str) -> Optional[Task]:
        response = self.table.get_item(Key={"id": task_id}, ConsistentRead=True)
        item = response.get("Item")
        return item_to_task(item) if item else None

    def update(self, task_id: str, mutator: Mutator) -> Optional[Task]:
        current = self.find(task_id)
        if current is None:
            return None
        updated = mutator(current)
        try:
            self.table.put_item(
                Item=task_to_item(updated),
                ConditionExpression=Attr("id").exists(),
            )
        except ClientError as e:
            if _is_conditional_failure(e):
                logger.warning(f"Task {task_id} vanished during update")
                return None
            raise
        return updated

    def delete(self, task_id: str) -> bool:
        try:
            self.table.delete_item(
                Key={"id": task_id},
                ConditionExpression=Attr("id").exists(),
            )
        except ClientError as e:
            if _is_conditional_failure(e):
                return False
            raise
        return True

    def _scan_items(self, **kwargs) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        while True:
            response = self.table.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def scan(self) -> List[Task]:
        tasks = [item_to_task(item) for item in self._scan_items()]
        tasks.sort(key=lambda t: t.created_at, reverse=True)
        return tasks

    def delete_where(self, predicate: Predicate) -> int:
        removed = 0
        for task in self.scan():
            if not predicate(task):
                continue
            # Skip items toggled since the scan.
            try:
                self.table.delete_item(
                    Key={"id": task.id},
                    ConditionExpression=Attr("completed").eq(task.completed),
                )
            except ClientError as e:
                if _is_conditional_failure(e):
                    logger.info(f"Task {task.id} changed since scan, keeping it")
                    continue
                raise
            removed += 1
        logger.info(f"Deleted {removed} items from {self.table_name}")
        return removed
