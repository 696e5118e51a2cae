from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (default: config/candidates.yml)
- Validate against config_schema.json (shipped next to this module)
- Apply defaults for the upload limits and error log directory
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "UploadConfig",
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/candidates.yml")

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
DEFAULT_MIME_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)
DEFAULT_EXTENSIONS = (".xlsx", ".xls")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback (environment variables take precedence)."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class UploadConfig:
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE
    allowed_mime_types: tuple[str, ...] = DEFAULT_MIME_TYPES
    allowed_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    error_log_dir: str = "./logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    up_raw = data.get("upload") or {}
    upload = UploadConfig(
        max_file_size_bytes=up_raw.get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE),
        allowed_mime_types=tuple(up_raw.get("allowed_mime_types", DEFAULT_MIME_TYPES)),
        allowed_extensions=tuple(
            ext.lower() for ext in up_raw.get("allowed_extensions", DEFAULT_EXTENSIONS)
        ),
    )
    return AppConfig(
        database=db,
        upload=upload,
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
