"""Structured error types for the task store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class ErrorResponse:
    """Serializable error payload returned to callers."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class TodoAppError(RuntimeError):
    """Exception carrying a structured error response."""

    def __init__(
        self, code: str, message: str, details: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.error = ErrorResponse(
            code=code, message=message, details=dict(details or {})
        )


class ValidationFailure(TodoAppError):
    """Caller-supplied data violated one or more field rules."""

    def __init__(self, message: str, errors: Iterable[Mapping[str, Any]]) -> None:
        self.errors = [dict(item) for item in errors]
        super().__init__("VALIDATION_ERROR", message, {"errors": self.errors})


class NotFound(TodoAppError):
    """A referenced record does not exist."""

    def __init__(self, resource: str, identifier: str | None = None) -> None:
        self.resource = resource
        self.identifier = identifier
        if identifier:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            "NOT_FOUND", message, {"resource": resource, "identifier": identifier}
        )


class StorageFailure(TodoAppError):
    """The backing file could not be read or written."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        *,
        code: str = "STORAGE_ERROR",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class MalformedStorageError(StorageFailure):
    """The storage file is not valid JSON."""


class StorageShapeError(StorageFailure):
    """The storage file is valid JSON but not an array of task records."""


def error_response(error: ErrorResponse) -> dict[str, Any]:
    """Wrap an error response in the standard envelope."""
    return {"ok": False, "error": error.to_dict()}
