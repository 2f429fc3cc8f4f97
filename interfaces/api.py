# interfaces/api.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from schemas.task import TodoCreate, TodoResponse, ClearCompletedResponse, ErrorResponse
from application.use_cases import TaskService
from typing import List
import logging
import secrets

logger = logging.getLogger(__name__)


def get_service(request: Request) -> TaskService:
    return request.app.state.task_service


async def require_api_key(request: Request, x_api_key: str | None = Header(default=None)):
    """Checks X-Api-Key when the server was configured with a key."""
    expected = request.app.state.settings.api_key
    if not expected:
        return
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        logger.warning("Rejected request with missing or invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")


router = APIRouter(
    prefix="/todos",
    tags=["todos"],
    dependencies=[Depends(require_api_key)],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("", response_model=List[TodoResponse])
async def list_todos(service: TaskService = Depends(get_service)):
    return [TodoResponse.from_task(task) for task in service.list_tasks()]


@router.post("", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(todo: TodoCreate, service: TaskService = Depends(get_service)):
    return TodoResponse.from_task(service.create_task(todo.title))


@router.put("/{todo_id}/toggle", response_model=TodoResponse)
async def toggle_todo(todo_id: str, service: TaskService = Depends(get_service)):
    return TodoResponse.from_task(service.toggle_task(todo_id))


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(todo_id: str, service: TaskService = Depends(get_service)):
    service.remove_task(todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", response_model=ClearCompletedResponse)
async def clear_completed(service: TaskService = Depends(get_service)):
    return ClearCompletedResponse(removed=service.clear_completed())
