from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from application.use_cases import TaskService
from domain.entities import TodoFilter, count_active, filter_tasks
from domain.errors import TodoError
from interfaces.api import get_service
import logging

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["web"])


def _back(todo_filter: str, message: str | None = None) -> RedirectResponse:
    params = {"filter": todo_filter}
    if message:
        params["message"] = message
    return RedirectResponse(url=f"/?{urlencode(params)}", status_code=303)


def _parse_filter(value: str) -> TodoFilter:
    try:
        return TodoFilter(value)
    except ValueError:
        return TodoFilter.ALL


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    view: str = Query("all", alias="filter"),
    message: str | None = None,
    service: TaskService = Depends(get_service),
):
    """Renders the list, the filter control and the input form."""
    todo_filter = _parse_filter(view)
    tasks = service.list_tasks()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "todos": filter_tasks(tasks, todo_filter),
            "filter": todo_filter.value,
            "filters": [f.value for f in TodoFilter],
            "items_left": count_active(tasks),
            "has_completed": any(t.completed for t in tasks),
            "message": message,
        },
    )


@router.post("/ui/todos")
async def add_todo(title: str = Form(""), view: str = Form("all", alias="filter"), service: TaskService = Depends(get_service)):
    try:
        service.create_task(title)
    except TodoError as e:
        return _back(view, e.message)
    return _back(view)


@router.post("/ui/todos/{todo_id}/toggle")
async def toggle_todo(todo_id: str, view: str = Form("all", alias="filter"), service: TaskService = Depends(get_service)):
    try:
        service.toggle_task(todo_id)
    except TodoError as e:
        return _back(view, e.message)
    return _back(view)


@router.post("/ui/todos/{todo_id}/delete")
async def delete_todo(todo_id: str, view: str = Form("all", alias="filter"), service: TaskService = Depends(get_service)):
    try:
        service.remove_task(todo_id)
    except TodoError as e:
        return _back(view, e.message)
    return _back(view)


@router.post("/ui/clear-completed")
async def clear_completed(view: str = Form("all", alias="filter"), service: TaskService = Depends(get_service)):
    removed = service.clear_completed()
    logger.debug(f"Web clear-completed removed {removed}")
    return _back(view)
