"""JSON file storage for task records.

Every operation runs on a single worker thread fed by a FIFO queue, so a
read-modify-write sequence never interleaves with another one and each
sequence observes the writes of the sequences issued before it. The queue
only orders callers inside this process; two processes sharing one file are
not coordinated.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from todo_app.errors import MalformedStorageError, StorageFailure, StorageShapeError
from todo_app.file_utils import _atomic_write
from todo_app.models import TaskRecord
from todo_app.validation import validate_task_record

logger = logging.getLogger(__name__)

R = TypeVar("R")


class TaskStorage:
    """Serialized CRUD over a JSON array of task records."""

    def __init__(self, file_path: Path | str) -> None:
        self._path = Path(file_path)
        self._queue = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="task-storage"
        )

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> list[TaskRecord]:
        return self._run(self._read_records)

    def write_all(self, records: Iterable[TaskRecord]) -> None:
        self._run(self._write_records, list(records))

    def add(self, record: TaskRecord) -> None:
        self._run(self._add, record)

    def update(self, task_id: str, record: TaskRecord) -> bool:
        """Replace the record with ``task_id``; ``False`` when it does not exist."""
        return self._run(self._update, task_id, record)

    def remove(self, task_id: str) -> bool:
        """Delete the record with ``task_id``; ``False`` when it does not exist."""
        return self._run(self._remove, task_id)

    def close(self) -> None:
        """Finish queued operations and stop the worker."""
        self._queue.shutdown(wait=True)

    def __enter__(self) -> "TaskStorage":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run(self, job: Callable[..., R], *args: Any) -> R:
        try:
            future = self._queue.submit(job, *args)
        except RuntimeError as exc:
            raise StorageFailure("Task storage is closed", exc) from exc
        return future.result()

    # The methods below only ever run on the queue worker.

    def _add(self, record: TaskRecord) -> None:
        records = self._read_records()
        records.append(record)
        self._write_records(records)

    def _update(self, task_id: str, record: TaskRecord) -> bool:
        records = self._read_records()
        for index, existing in enumerate(records):
            if existing.id == task_id:
                records[index] = record
                self._write_records(records)
                return True
        return False

    def _remove(self, task_id: str) -> bool:
        records = self._read_records()
        remaining = [record for record in records if record.id != task_id]
        if len(remaining) == len(records):
            return False
        self._write_records(remaining)
        return True

    def _read_records(self) -> list[TaskRecord]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageFailure(
                f"Failed to read tasks from storage: {exc}",
                exc,
                details={"path": str(self._path)},
            ) from exc

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(
                "Storage file is not valid JSON: %s", exc, extra={"path": str(self._path)}
            )
            raise MalformedStorageError(
                "Invalid JSON format in storage file",
                exc,
                details={"path": str(self._path)},
            ) from exc

        if not isinstance(data, list):
            cause = TypeError(
                f"top-level JSON value is {type(data).__name__}, expected array"
            )
            logger.warning("Storage file has the wrong shape: %s", cause)
            raise StorageShapeError(
                "Invalid data format: expected array of task records",
                cause,
                details={"path": str(self._path)},
            ) from cause

        records: list[TaskRecord] = []
        for index, item in enumerate(data):
            if isinstance(item, dict):
                validation = validate_task_record(item)
                if not validation.is_valid:
                    cause = ValueError(
                        "; ".join(issue.message for issue in validation.errors)
                    )
                    raise StorageShapeError(
                        f"Invalid task record at index {index}",
                        cause,
                        details={
                            "path": str(self._path),
                            "index": index,
                            "errors": validation.error_dicts(),
                        },
                    ) from cause
            try:
                records.append(TaskRecord.from_dict(item))
            except (KeyError, TypeError) as exc:
                raise StorageShapeError(
                    f"Invalid task record at index {index}",
                    exc,
                    details={"path": str(self._path), "index": index},
                ) from exc

        logger.debug("Read %d task(s) from %s", len(records), self._path)
        return records

    def _write_records(self, records: list[TaskRecord]) -> None:
        content = json.dumps(
            [record.to_dict() for record in records], indent=2, ensure_ascii=False
        )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(self._path, content)
        except OSError as exc:
            raise StorageFailure(
                f"Failed to write tasks to storage: {exc}",
                exc,
                details={"path": str(self._path)},
            ) from exc
        logger.debug("Wrote %d task(s) to %s", len(records), self._path)
