from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uvicorn

from application.use_cases import TaskService
from config import Settings
from domain.errors import TodoError
from infrastructure.database import TaskStore, build_store
from interfaces.api import router as todo_router
from interfaces.web import router as web_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Builds the app around an explicit store so tests and deployments choose its lifetime."""
    settings = settings or Settings.from_env()
    store = store if store is not None else build_store(settings)

    app = FastAPI(title="To-Do List")
    app.state.settings = settings
    app.state.task_service = TaskService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(TodoError)
    async def todo_error_handler(request: Request, exc: TodoError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    app.include_router(todo_router)
    app.include_router(web_router)

    logger.info(f"Store backend: {settings.store_backend}")
    logger.info(f"API key required: {bool(settings.api_key)}")
    return app


_settings = Settings.from_env()
logging.basicConfig(level=_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    uvicorn.run(app, host=_settings.host, port=_settings.port)
