"""Task record, filter and archive data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FilterStatus(str, Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


PRIORITY_VALUES = tuple(item.value for item in Priority)
FILTER_STATUS_VALUES = tuple(item.value for item in FilterStatus)

UPDATABLE_FIELDS = ("completed", "title", "priority", "tags", "memo")

_RECORD_KEYS = (
    "id",
    "title",
    "completed",
    "priority",
    "tags",
    "memo",
    "createdAt",
    "updatedAt",
    "completedAt",
)


@dataclass
class TaskRecord:
    """A persisted task.

    ``completed_at`` is set exactly when ``completed`` is true.
    """

    id: str
    title: str
    completed: bool = False
    priority: str = Priority.MEDIUM.value
    tags: list[str] = field(default_factory=list)
    memo: str = ""
    created_at: str = ""
    updated_at: str = ""
    completed_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "tags": list(self.tags),
            "memo": self.memo,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TaskRecord":
        """Build a record from its persisted form.

        Raises ``TypeError`` for a non-mapping and ``KeyError`` when a
        persisted key is missing.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Task record must be an object, got {type(data).__name__}")
        missing = [key for key in _RECORD_KEYS if key not in data]
        if missing:
            raise KeyError(f"Task record is missing keys: {', '.join(missing)}")
        return cls(
            id=data["id"],
            title=data["title"],
            completed=data["completed"],
            priority=data["priority"],
            tags=list(data["tags"]),
            memo=data["memo"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
            completed_at=data["completedAt"],
        )


@dataclass(frozen=True)
class Given(Generic[T]):
    """Marks a field as present in a partial update, whatever its value."""

    value: T


@dataclass(frozen=True)
class TaskUpdate:
    """Partial update input; ``None`` means the field was not supplied."""

    title: Given[Any] | None = None
    completed: Given[Any] | None = None
    priority: Given[Any] | None = None
    tags: Given[Any] | None = None
    memo: Given[Any] | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TaskUpdate":
        return cls(
            **{
                name: Given(payload[name])
                for name in UPDATABLE_FIELDS
                if name in payload
            }
        )

    def present_fields(self) -> list[str]:
        return [name for name in UPDATABLE_FIELDS if getattr(self, name) is not None]

    def is_empty(self) -> bool:
        return not self.present_fields()


@dataclass(frozen=True)
class FilterSpec:
    status: FilterStatus | None = None
    priority: Priority | None = None
    tags: tuple[str, ...] | None = None
    search_text: str | None = None

    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.priority is None
            and self.tags is None
            and self.search_text is None
        )


@dataclass
class ArchiveGroup:
    date: str
    tasks: list[TaskRecord]
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "tasks": [task.to_dict() for task in self.tasks],
            "count": self.count,
        }
