"""HTTP adapter between the UI state controller and the /todos service."""
from typing import Any, List, Optional
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from config import Settings
from domain.entities import Task
from domain.errors import NetworkError, NotFoundError, ServerError, TodoError, ValidationError
from schemas.task import ClearCompletedResponse, TodoResponse

logger = logging.getLogger(__name__)


class TodoApiClient:
    """Typed calls over the to-do HTTP API.

    Every non-2xx status or transport failure becomes a ``TodoError``
    subclass. ``list_todos`` is the exception: it degrades to an empty list so
    an initial load failure never takes the UI down.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-Api-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "TodoApiClient":
        return cls(settings.api_base_url, api_key=settings.api_key, **kwargs)

    async def __aenter__(self) -> "TodoApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, task_id: Optional[str] = None, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed (request error): {e}")
            raise NetworkError(f"Could not reach the to-do service: {e}") from e

        if response.is_success:
            return response

        message = _error_message(response)
        logger.error(f"{method} {path} failed (HTTP error): {response.status_code} - {message}")
        if response.status_code == 400:
            raise ValidationError(message)
        if response.status_code == 404 and task_id is not None:
            raise NotFoundError(task_id)
        raise ServerError(message, status_code=response.status_code)

    @staticmethod
    def _parse(response: httpx.Response, model):
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise ServerError(f"Malformed response from to-do service: {e}", status_code=response.status_code) from e

    async def list_todos(self) -> List[Task]:
        try:
            response = await self._request("GET", "/todos")
            data = response.json()
            return [TodoResponse.model_validate(item).to_task() for item in data]
        except (TodoError, ValueError, TypeError, PydanticValidationError) as e:
            logger.warning(f"Listing todos failed, showing an empty list: {e}")
            return []

    async def create_todo(self, title: str) -> Task:
        trimmed = (title or "").strip()
        if not trimmed:
            raise ValidationError("title required")
        response = await self._request("POST", "/todos", json={"title": trimmed})
        return self._parse(response, TodoResponse).to_task()

    async def toggle_todo(self, task_id: str) -> Task:
        response = await self._request("PUT", f"/todos/{task_id}/toggle", task_id=task_id)
        return self._parse(response, TodoResponse).to_task()

    async def remove_todo(self, task_id: str) -> None:
        await self._request("DELETE", f"/todos/{task_id}", task_id=task_id)

    async def clear_completed(self) -> int:
        response = await self._request("DELETE", "/todos")
        return self._parse(response, ClearCompletedResponse).removed


def _error_message(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body.get("detail") or body)
    return str(body)
