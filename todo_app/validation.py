"""Field-level validation for task input and persisted records.

Validators never raise: they return a ``ValidationResult`` listing every
failed rule so callers can report all problems at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from todo_app.models import PRIORITY_VALUES, Given, TaskUpdate

TITLE_MAX_LENGTH = 200
TAG_MAX_LENGTH = 50


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_dicts(self) -> list[dict[str, str]]:
        return [issue.to_dict() for issue in self.errors]


VALID = ValidationResult()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning ``None`` when it is not one."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class Validator:
    """Fluent collection of rules evaluated against a single field."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        self._rules: list[tuple[Callable[[Any], bool], str]] = []

    def add_rule(self, check: Callable[[Any], bool], message: str) -> "Validator":
        self._rules.append((check, message))
        return self

    def required(self, message: str | None = None) -> "Validator":
        def check(value: Any) -> bool:
            if value is None:
                return False
            if isinstance(value, str) and not value.strip():
                return False
            return True

        return self.add_rule(check, message or f"{self.field_name} is required")

    def max_length(
        self, limit: int, message: str | None = None, *, trimmed: bool = False
    ) -> "Validator":
        def check(value: Any) -> bool:
            if not isinstance(value, str):
                return True
            return len(value.strip() if trimmed else value) <= limit

        return self.add_rule(
            check, message or f"{self.field_name} cannot exceed {limit} characters"
        )

    def min_length(self, limit: int, message: str | None = None) -> "Validator":
        def check(value: Any) -> bool:
            if not isinstance(value, str):
                return True
            return len(value) >= limit

        return self.add_rule(
            check, message or f"{self.field_name} must be at least {limit} characters"
        )

    def is_type(self, expected: type, message: str | None = None) -> "Validator":
        return self.add_rule(
            lambda value: isinstance(value, expected),
            message or f"{self.field_name} must be a {expected.__name__}",
        )

    def one_of(self, allowed: Iterable[Any], message: str | None = None) -> "Validator":
        choices = tuple(allowed)
        return self.add_rule(
            lambda value: value in choices,
            message
            or f"{self.field_name} must be one of: {', '.join(map(str, choices))}",
        )

    def is_list(self, message: str | None = None) -> "Validator":
        return self.add_rule(
            lambda value: isinstance(value, list),
            message or f"{self.field_name} must be an array",
        )

    def is_iso_date(self, message: str | None = None) -> "Validator":
        return self.add_rule(
            lambda value: parse_timestamp(value) is not None,
            message or f"{self.field_name} must be a valid ISO 8601 date string",
        )

    def is_boolean(self, message: str | None = None) -> "Validator":
        return self.add_rule(
            lambda value: isinstance(value, bool),
            message or f"{self.field_name} must be a boolean value",
        )

    def validate(self, value: Any) -> ValidationResult:
        return ValidationResult(
            tuple(
                ValidationIssue(self.field_name, message)
                for check, message in self._rules
                if not check(value)
            )
        )


def combine_results(*results: ValidationResult) -> ValidationResult:
    issues: list[ValidationIssue] = []
    for result in results:
        issues.extend(result.errors)
    return ValidationResult(tuple(issues))


def validate_if_present(
    given: Given[Any] | None, validator: Callable[[Any], ValidationResult]
) -> ValidationResult:
    if given is None:
        return VALID
    return validator(given.value)


def _failure(field_name: str, message: str) -> ValidationResult:
    return ValidationResult((ValidationIssue(field_name, message),))


_title_validator = (
    Validator("title")
    .is_type(str, "Title is required and must be a string")
    .required("Title cannot be empty")
    .max_length(
        TITLE_MAX_LENGTH,
        f"Title cannot exceed {TITLE_MAX_LENGTH} characters",
        trimmed=True,
    )
)

_id_validator = (
    Validator("id")
    .is_type(str, "ID is required and must be a string")
    .required("ID cannot be empty")
)

_completed_validator = Validator("completed").is_boolean(
    "Completed must be a boolean value"
)

_memo_validator = Validator("memo").is_type(str, "Memo must be a string")


def validate_title(title: Any) -> ValidationResult:
    return _title_validator.validate(title)


def validate_id(task_id: Any) -> ValidationResult:
    return _id_validator.validate(task_id)


def validate_completed(completed: Any) -> ValidationResult:
    return _completed_validator.validate(completed)


def validate_memo(memo: Any) -> ValidationResult:
    return _memo_validator.validate(memo)


def validate_priority(priority: Any) -> ValidationResult:
    if not isinstance(priority, str):
        return _failure("priority", "Priority is required and must be a string")
    if priority not in PRIORITY_VALUES:
        return _failure(
            "priority", f"Priority must be one of: {', '.join(PRIORITY_VALUES)}"
        )
    return VALID


def validate_tags(tags: Any) -> ValidationResult:
    if not isinstance(tags, list):
        return _failure("tags", "Tags must be an array")

    issues: list[ValidationIssue] = []
    for index, tag in enumerate(tags):
        if not isinstance(tag, str):
            issues.append(ValidationIssue("tags", f"Tag at index {index} must be a string"))
        elif not tag.strip():
            issues.append(ValidationIssue("tags", f"Tag at index {index} cannot be empty"))
        elif len(tag) > TAG_MAX_LENGTH:
            issues.append(
                ValidationIssue(
                    "tags",
                    f"Tag at index {index} cannot exceed {TAG_MAX_LENGTH} characters",
                )
            )

    string_tags = [tag for tag in tags if isinstance(tag, str)]
    if len({tag.strip().lower() for tag in string_tags}) != len(string_tags):
        issues.append(ValidationIssue("tags", "Tags must be unique (case-insensitive)"))

    return ValidationResult(tuple(issues))


def _validate_required_timestamp(value: Any, field_name: str) -> ValidationResult:
    label = field_name[0].upper() + field_name[1:]
    if not isinstance(value, str) or not value.strip():
        return _failure(field_name, f"{label} is required and must be a string")
    return (
        Validator(field_name)
        .is_iso_date(f"{label} must be a valid ISO 8601 date string")
        .validate(value)
    )


def validate_created_at(created_at: Any) -> ValidationResult:
    return _validate_required_timestamp(created_at, "createdAt")


def validate_updated_at(updated_at: Any) -> ValidationResult:
    return _validate_required_timestamp(updated_at, "updatedAt")


def validate_completed_at(completed_at: Any) -> ValidationResult:
    if completed_at is None:
        return VALID
    if not isinstance(completed_at, str):
        return _failure("completedAt", "CompletedAt must be a string or null")
    if parse_timestamp(completed_at) is None:
        return _failure(
            "completedAt", "CompletedAt must be a valid ISO 8601 date string"
        )
    return VALID


def validate_create_input(payload: Mapping[str, Any]) -> ValidationResult:
    """Validate create input: title is required, the rest only when supplied."""
    results = [validate_title(payload.get("title"))]
    if "priority" in payload:
        results.append(validate_priority(payload["priority"]))
    if "tags" in payload:
        results.append(validate_tags(payload["tags"]))
    if "memo" in payload:
        results.append(validate_memo(payload["memo"]))
    return combine_results(*results)


def validate_update_input(update: TaskUpdate) -> ValidationResult:
    """Validate only the fields present in a partial update."""
    return combine_results(
        validate_if_present(update.title, validate_title),
        validate_if_present(update.completed, validate_completed),
        validate_if_present(update.priority, validate_priority),
        validate_if_present(update.tags, validate_tags),
        validate_if_present(update.memo, validate_memo),
    )


def validate_task_record(record: Mapping[str, Any]) -> ValidationResult:
    """Validate every field of a full record in its persisted form."""
    return combine_results(
        validate_id(record.get("id")),
        validate_title(record.get("title")),
        validate_completed(record.get("completed")),
        validate_priority(record.get("priority")),
        validate_tags(record.get("tags")),
        validate_memo(record.get("memo")),
        validate_created_at(record.get("createdAt")),
        validate_updated_at(record.get("updatedAt")),
        validate_completed_at(record.get("completedAt")),
    )
