"""Configuration loading for the task service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

ENVIRONMENTS = {"development", "production", "test"}
LOG_FORMATS = {"text", "json"}
DEFAULT_DATA_FILENAME = "tasks.json"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    data_file: Path
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = "127.0.0.1"
    port: int = 3001

    @property
    def expose_error_causes(self) -> bool:
        return self.environment != "production"


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        if "=" not in stripped:
            continue
        name, value = stripped.split("=", 1)
        name = name.strip()
        if name != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _lookup(dotenv_path: Path, key: str) -> str | None:
    raw_value = os.environ.get(key)
    if raw_value is None:
        raw_value = _read_dotenv_value(dotenv_path, key)
    if raw_value is None:
        return None
    return raw_value.strip() or None


def _read_choice(raw_value: str | None, *, default: str, key: str, choices: set[str]) -> str:
    if raw_value is None:
        return default
    normalized = raw_value.lower()
    if normalized not in choices:
        raise ConfigError(f"{key} must be one of: {', '.join(sorted(choices))}.")
    return normalized


def _read_port(raw_value: str | None, *, default: int, key: str) -> int:
    if raw_value is None:
        return default
    try:
        port = int(raw_value)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc
    if not 1 <= port <= 65535:
        raise ConfigError(f"{key} must be between 1 and 65535.")
    return port


def _resolve_data_file(dotenv_path: Path) -> Path:
    raw_file = _lookup(dotenv_path, "TODO_DATA_FILE")
    if raw_file:
        return Path(raw_file).resolve()
    raw_dir = _lookup(dotenv_path, "TODO_DATA_DIR")
    if raw_dir:
        return (Path(raw_dir) / DEFAULT_DATA_FILENAME).resolve()
    return (Path.cwd() / "data" / DEFAULT_DATA_FILENAME).resolve()


def load_config() -> AppConfig:
    """Load configuration from the environment, falling back to ./.env."""
    dotenv_path = Path.cwd() / ".env"

    environment = _read_choice(
        _lookup(dotenv_path, "TODO_APP_ENV"),
        default="development",
        key="TODO_APP_ENV",
        choices=ENVIRONMENTS,
    )

    log_level = (_lookup(dotenv_path, "TODO_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError("TODO_LOG_LEVEL must be a standard logging level name.")

    log_format = _read_choice(
        _lookup(dotenv_path, "TODO_LOG_FORMAT"),
        default="text",
        key="TODO_LOG_FORMAT",
        choices=LOG_FORMATS,
    )

    return AppConfig(
        data_file=_resolve_data_file(dotenv_path),
        environment=environment,
        log_level=log_level,
        log_format=log_format,
        host=_lookup(dotenv_path, "TODO_HOST") or "127.0.0.1",
        port=_read_port(_lookup(dotenv_path, "TODO_PORT"), default=3001, key="TODO_PORT"),
    )
