"""Task use cases on top of the storage, filter and archive layers."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from todo_app.archive import archive_tasks
from todo_app.errors import NotFound, StorageFailure, ValidationFailure
from todo_app.models import (
    UPDATABLE_FIELDS,
    ArchiveGroup,
    FilterSpec,
    Priority,
    TaskRecord,
    TaskUpdate,
)
from todo_app.query import filter_tasks
from todo_app.storage import TaskStorage
from todo_app.validation import (
    validate_create_input,
    validate_id,
    validate_update_input,
)

logger = logging.getLogger(__name__)

MAX_SEARCH_TEXT_LENGTH = 1000
MAX_FILTER_TAGS = 50
TASK_RESOURCE = "Task"


def generate_task_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _body_error(message: str) -> ValidationFailure:
    return ValidationFailure(
        "Invalid request body", [{"field": "body", "message": message}]
    )


class TaskService:
    """Validates task input and turns it into storage operations."""

    def __init__(
        self,
        storage: TaskStorage,
        *,
        clock: Callable[[], str] = utc_now,
        id_factory: Callable[[], str] = generate_task_id,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory

    @property
    def storage(self) -> TaskStorage:
        return self._storage

    def list_tasks(self, filter_spec: FilterSpec | None = None) -> list[TaskRecord]:
        """Return every task, or the tasks matching ``filter_spec``."""
        if filter_spec is None or filter_spec.is_empty():
            return self._storage.read_all()
        self.check_filter(filter_spec)
        return filter_tasks(self._storage.read_all(), filter_spec)

    def create_task(self, payload: Mapping[str, Any]) -> TaskRecord:
        if not isinstance(payload, Mapping):
            raise _body_error("Request body is required and must be a valid object")

        validation = validate_create_input(payload)
        if not validation.is_valid:
            raise ValidationFailure("Todo validation failed", validation.error_dicts())

        now = self._clock()
        record = TaskRecord(
            id=self._id_factory(),
            title=payload["title"].strip(),
            completed=False,
            priority=payload.get("priority") or Priority.MEDIUM.value,
            tags=list(payload.get("tags") or []),
            memo=payload.get("memo") or "",
            created_at=now,
            updated_at=now,
            completed_at=None,
        )
        self._storage.add(record)
        logger.info("Created task", extra={"task_id": record.id})
        return record

    def update_task(
        self, task_id: Any, changes: TaskUpdate | Mapping[str, Any]
    ) -> TaskRecord:
        """Apply a partial update and return the stored result.

        ``completedAt`` is stamped on the pending to completed transition and
        cleared on the reverse one; other updates leave it untouched.
        """
        self._check_id(task_id)

        if isinstance(changes, Mapping):
            changes = TaskUpdate.from_payload(changes)
        elif not isinstance(changes, TaskUpdate):
            raise _body_error("Request body is required and must be a valid object")

        if changes.is_empty():
            raise ValidationFailure(
                "No valid fields to update",
                [
                    {
                        "field": "body",
                        "message": "At least one of the following fields must be "
                        f"provided: {', '.join(UPDATABLE_FIELDS)}",
                    }
                ],
            )

        validation = validate_update_input(changes)
        if not validation.is_valid:
            raise ValidationFailure(
                "Todo update validation failed", validation.error_dicts()
            )

        existing = next(
            (record for record in self._storage.read_all() if record.id == task_id),
            None,
        )
        if existing is None:
            raise NotFound(TASK_RESOURCE, task_id)

        now = self._clock()
        updated = replace(existing, tags=list(existing.tags), updated_at=now)

        if changes.completed is not None:
            completed = bool(changes.completed.value)
            if completed and not existing.completed:
                updated.completed_at = now
            elif not completed and existing.completed:
                updated.completed_at = None
            updated.completed = completed
        if changes.title is not None:
            updated.title = changes.title.value.strip()
        if changes.priority is not None:
            updated.priority = changes.priority.value
        if changes.tags is not None:
            updated.tags = list(changes.tags.value)
        if changes.memo is not None:
            updated.memo = changes.memo.value

        if not self._storage.update(task_id, updated):
            raise StorageFailure(
                "Failed to update task in storage",
                code="STORAGE_UPDATE_FAILED",
                details={"id": task_id},
            )

        logger.info(
            "Updated task fields %s",
            ", ".join(changes.present_fields()),
            extra={"task_id": task_id},
        )
        return updated

    def delete_task(self, task_id: Any) -> None:
        self._check_id(task_id)
        if not self._storage.remove(task_id):
            raise NotFound(TASK_RESOURCE, task_id)
        logger.info("Deleted task", extra={"task_id": task_id})

    def archive(self) -> list[ArchiveGroup]:
        return archive_tasks(self._storage.read_all())

    def list_tags(self) -> list[str]:
        """Every distinct tag in use, sorted."""
        return sorted({tag for record in self._storage.read_all() for tag in record.tags})

    @staticmethod
    def check_filter(filter_spec: FilterSpec) -> None:
        """Reject filters whose search text or tag list is too large."""
        if filter_spec.search_text and len(filter_spec.search_text) > MAX_SEARCH_TEXT_LENGTH:
            raise ValidationFailure(
                "Invalid search parameters",
                [
                    {
                        "field": "search",
                        "message": "Search text cannot exceed "
                        f"{MAX_SEARCH_TEXT_LENGTH} characters",
                    }
                ],
            )
        if filter_spec.tags and len(filter_spec.tags) > MAX_FILTER_TAGS:
            raise ValidationFailure(
                "Invalid filter parameters",
                [
                    {
                        "field": "tags",
                        "message": f"Cannot filter by more than {MAX_FILTER_TAGS} "
                        "tags at once",
                    }
                ],
            )

    @staticmethod
    def _check_id(task_id: Any) -> None:
        validation = validate_id(task_id)
        if not validation.is_valid:
            raise ValidationFailure("Invalid todo ID", validation.error_dicts())
