"""Task filtering and query-parameter parsing."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from todo_app.models import (
    FILTER_STATUS_VALUES,
    PRIORITY_VALUES,
    FilterSpec,
    FilterStatus,
    Priority,
    TaskRecord,
)


def filter_tasks(records: Iterable[TaskRecord], spec: FilterSpec) -> list[TaskRecord]:
    """Return the records matching every predicate set on ``spec``."""
    return [record for record in records if matches(record, spec)]


def matches(record: TaskRecord, spec: FilterSpec) -> bool:
    if spec.status == FilterStatus.COMPLETED and not record.completed:
        return False
    if spec.status == FilterStatus.PENDING and record.completed:
        return False

    if spec.priority is not None and record.priority != spec.priority:
        return False

    if spec.tags:
        own_tags = [tag.lower() for tag in record.tags]
        if not any(
            needle.lower() in tag for needle in spec.tags for tag in own_tags
        ):
            return False

    if spec.search_text and spec.search_text.strip():
        term = spec.search_text.lower()
        if not (
            term in record.title.lower()
            or term in record.memo.lower()
            or any(term in tag.lower() for tag in record.tags)
        ):
            return False

    return True


def build_filter_from_query(params: Mapping[str, Any]) -> FilterSpec:
    """Build a filter from raw query parameters.

    Unknown status or priority values are dropped rather than rejected.
    ``tags`` may be a single string, a comma-separated string or a list.
    """
    status = params.get("status")
    priority = params.get("priority")

    tags: tuple[str, ...] | None = None
    raw_tags = params.get("tags")
    if isinstance(raw_tags, str):
        raw_tags = [raw_tags]
    if isinstance(raw_tags, (list, tuple)):
        split = [
            part.strip()
            for item in raw_tags
            if isinstance(item, str)
            for part in item.split(",")
        ]
        tags = tuple(part for part in split if part) or None

    search = params.get("search")
    search_text = search.strip() if isinstance(search, str) else None

    return FilterSpec(
        status=FilterStatus(status) if status in FILTER_STATUS_VALUES else None,
        priority=Priority(priority) if priority in PRIORITY_VALUES else None,
        tags=tags,
        search_text=search_text or None,
    )
