"""Group completed tasks by completion day."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from todo_app.models import ArchiveGroup, TaskRecord
from todo_app.validation import parse_timestamp

logger = logging.getLogger(__name__)


def _completed_at_utc(record: TaskRecord) -> datetime | None:
    parsed = parse_timestamp(record.completed_at)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def archive_tasks(records: Iterable[TaskRecord]) -> list[ArchiveGroup]:
    """Return completed tasks bucketed by UTC completion date, newest first.

    Tasks inside a bucket are ordered by ``completedAt`` descending; tasks with
    identical timestamps keep their input order.
    """
    buckets: dict[str, list[tuple[datetime, TaskRecord]]] = {}
    for record in records:
        if not record.completed or record.completed_at is None:
            continue
        completed_at = _completed_at_utc(record)
        if completed_at is None:
            logger.warning(
                "Skipping task with unparseable completedAt",
                extra={"task_id": record.id},
            )
            continue
        buckets.setdefault(completed_at.date().isoformat(), []).append(
            (completed_at, record)
        )

    groups: list[ArchiveGroup] = []
    for day in sorted(buckets, reverse=True):
        entries = sorted(buckets[day], key=lambda entry: entry[0], reverse=True)
        tasks = [record for _, record in entries]
        groups.append(ArchiveGroup(date=day, tasks=tasks, count=len(tasks)))
    return groups
