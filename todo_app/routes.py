"""HTTP endpoints for tasks."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request, Response

from todo_app.errors import ValidationFailure
from todo_app.query import build_filter_from_query
from todo_app.service import TaskService

todo_router = APIRouter(prefix="/api/todos")


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


@todo_router.get("")
def list_todos(request: Request) -> list[dict[str, Any]]:
    """List tasks, optionally filtered by status, priority, tags and search."""
    query = request.query_params
    filter_spec = build_filter_from_query(
        {
            "status": query.get("status"),
            "priority": query.get("priority"),
            "tags": query.getlist("tags") or None,
            "search": query.get("search"),
        }
    )
    tasks = get_task_service(request).list_tasks(filter_spec)
    return [task.to_dict() for task in tasks]


@todo_router.post("", status_code=201)
def create_todo(request: Request, payload: Any = Body(None)) -> dict[str, Any]:
    if not isinstance(payload, dict) or not payload:
        raise ValidationFailure(
            "Invalid request body",
            [
                {
                    "field": "body",
                    "message": "Request body is required and must be a valid object",
                }
            ],
        )
    return get_task_service(request).create_task(payload).to_dict()


@todo_router.get("/archive")
def get_archive(request: Request) -> list[dict[str, Any]]:
    """Completed tasks grouped by completion date."""
    return [group.to_dict() for group in get_task_service(request).archive()]


@todo_router.get("/tags")
def list_tags(request: Request) -> list[str]:
    return get_task_service(request).list_tags()


@todo_router.put("/{task_id}")
def update_todo(
    task_id: str, request: Request, payload: Any = Body(None)
) -> dict[str, Any]:
    return get_task_service(request).update_task(task_id, payload).to_dict()


@todo_router.delete("/{task_id}", status_code=204)
def delete_todo(task_id: str, request: Request) -> Response:
    get_task_service(request).delete_task(task_id)
    return Response(status_code=204)
