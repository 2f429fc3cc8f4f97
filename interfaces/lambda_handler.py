"""API Gateway proxy handler serving the /todos contract from DynamoDB."""
import json
import logging
import os
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from application.use_cases import TaskService
from domain.errors import TodoError
from infrastructure.dynamodb import DynamoTaskStore
from schemas.task import ClearCompletedResponse, TodoCreate, TodoResponse

logger = logging.getLogger()
logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
}

TOGGLE_PATH = re.compile(r"^/todos/([^/]+)/toggle$")
ITEM_PATH = re.compile(r"^/todos/([^/]+)$")

_service: Optional[TaskService] = None


def _get_service() -> TaskService:
    global _service
    if _service is None:
        _service = TaskService(DynamoTaskStore(os.getenv("TABLE_NAME", "todo-app-tasks")))
    return _service


def _response(status_code: int, body: Any = None) -> Dict[str, Any]:
    headers = dict(CORS_HEADERS)
    if body is None:
        return {"statusCode": status_code, "headers": headers, "body": ""}
    headers["Content-Type"] = "application/json"
    return {"statusCode": status_code, "headers": headers, "body": json.dumps(body)}


def _todo_json(task) -> Dict[str, Any]:
    return TodoResponse.from_task(task).model_dump(mode="json", by_alias=True)


def handle(event: Dict[str, Any], service: TaskService) -> Dict[str, Any]:
    method = (event.get("httpMethod") or "").upper()
    path = (event.get("path") or "").rstrip("/") or "/"

    try:
        if method == "OPTIONS":
            return _response(200)

        if path == "/todos":
            if method == "GET":
                return _response(200, [_todo_json(t) for t in service.list_tasks()])
            if method == "POST":
                try:
                    payload = TodoCreate.model_validate_json(event.get("body") or "{}")
                except PydanticValidationError:
                    return _response(400, {"error": "request body must be a JSON object with a string title"})
                return _response(201, _todo_json(service.create_task(payload.title)))
            if method == "DELETE":
                removed = service.clear_completed()
                return _response(200, ClearCompletedResponse(removed=removed).model_dump())

        toggle_match = TOGGLE_PATH.match(path)
        if toggle_match and method == "PUT":
            return _response(200, _todo_json(service.toggle_task(toggle_match.group(1))))

        item_match = ITEM_PATH.match(path)
        if item_match and method == "DELETE":
            service.remove_task(item_match.group(1))
            return _response(204)

        return _response(400, {"error": "Invalid request", "path": path, "method": method})
    except TodoError as e:
        logger.warning(f"{method} {path} failed: {e.message}")
        return _response(e.status_code, {"error": e.message})
    except Exception as e:
        logger.exception(f"Unhandled error for {method} {path}")
        return _response(500, {"error": "Internal Server Error", "detail": str(e)})


def lambda_handler(event, context):
    logger.info(f"Received {event.get('httpMethod')} {event.get('path')}")
    return handle(event, _get_service())
