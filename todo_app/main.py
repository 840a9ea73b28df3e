"""FastAPI entrypoint for the task service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from todo_app.config import AppConfig, load_config
from todo_app.errors import (
    ErrorResponse,
    NotFound,
    StorageFailure,
    TodoAppError,
    ValidationFailure,
    error_response,
)
from todo_app.logging_setup import setup_logging
from todo_app.routes import todo_router
from todo_app.service import TaskService
from todo_app.storage import TaskStorage

logger = logging.getLogger(__name__)

STORAGE_FAILURE_MESSAGE = "Data storage operation failed"


def _status_code_for(exc: TodoAppError) -> int:
    if isinstance(exc, ValidationFailure):
        return 400
    if isinstance(exc, NotFound):
        return 404
    return 500


def _public_error(exc: TodoAppError, expose_causes: bool) -> ErrorResponse:
    if not isinstance(exc, StorageFailure):
        return exc.error
    if not expose_causes:
        return ErrorResponse(code=exc.error.code, message=STORAGE_FAILURE_MESSAGE)
    details = dict(exc.error.details)
    if exc.cause is not None:
        details["cause"] = str(exc.cause)
    return ErrorResponse(code=exc.error.code, message=exc.error.message, details=details)


def create_app(config: AppConfig | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_config = config or load_config()
        setup_logging(app_config.log_level, app_config.log_format)
        storage = TaskStorage(app_config.data_file)
        app.state.config = app_config
        app.state.task_service = TaskService(storage)
        logger.info("Serving tasks from %s", storage.path)
        try:
            yield
        finally:
            storage.close()

    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(TodoAppError)
    def handle_todo_app_error(request: Request, exc: TodoAppError) -> JSONResponse:
        status_code = _status_code_for(exc)
        log_extra = {"error_code": exc.error.code, "status_code": status_code}
        if status_code >= 500:
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
                extra=log_extra,
            )
        else:
            logger.warning(
                "%s %s rejected: %s",
                request.method,
                request.url.path,
                exc,
                extra=log_extra,
            )
        app_config = getattr(request.app.state, "config", None)
        expose_causes = bool(getattr(app_config, "expose_error_causes", False))
        return JSONResponse(
            status_code=status_code,
            content=error_response(_public_error(exc, expose_causes)),
        )

    @app.get("/health", status_code=200)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(todo_router)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    config = load_config()
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    run()
