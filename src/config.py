"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting `ATTR2STORE_*` environment variables into strongly-typed Pydantic models.
- Validating required fields and providing actionable error messages.
"""

import os
from typing import Literal, TypeVar

import dotenv
from pydantic import BaseModel, Field, field_validator

from events.mapper import DEFAULT_ATTR_PREFIX, MapperConfig

_T = TypeVar("_T", int, float)

ENV_PREFIX = "ATTR2STORE_"


def _get_required_env(name: str) -> str:
    """Read a required env var or raise a helpful error."""
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"{name} is required. Please set it in your .env file.")
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"true", "1", "yes", "y", "on"}:
        return True
    if normalized in {"false", "0", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false). Got: {raw!r}")


def _get_env_number(name: str, default: _T, cast: type[_T]) -> _T:
    """Read an int/float env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a {cast.__name__}. Got: {raw!r}") from exc


class SinkConfig(BaseModel):
    """Configuration for the attribute-to-store sink."""

    table: str = Field(..., description="Destination table name")
    system_family: str | None = Field(default=None, description="Column family for system columns")
    write_body: bool = Field(default=True, description="Write the event body as a system column")
    attr_prefix: str = Field(default=DEFAULT_ATTR_PREFIX, description="Marker prefix for store-bound attributes")

    # Consumed by the table, never by the mapper.
    write_buffer_size: int = Field(default=0, description="Buffered bytes before inserting (0 = autoflush)")
    write_to_wal: bool = Field(default=True, description="Durability hint passed with each put")

    db_path: str = Field(default="attr2store.duckdb", description="DuckDB database file")

    @field_validator("table")
    def validate_table(cls, v: str) -> str:
        """Validate table name is set."""
        if not v or not v.strip():
            raise ValueError("ATTR2STORE_TABLE is required. Please set it in your .env file.")
        return v.strip()

    @field_validator("write_buffer_size")
    def validate_write_buffer_size(cls, v: int) -> int:
        """Reject negative buffer sizes."""
        if v < 0:
            raise ValueError(f"write_buffer_size must be >= 0. Got: {v}")
        return v

    @property
    def mapper_config(self) -> MapperConfig:
        """Build the immutable mapper configuration from the sink settings."""
        return MapperConfig(
            system_family=self.system_family,
            write_body=self.write_body,
            attr_prefix=self.attr_prefix,
        )


class LoggingConfig(BaseModel):
    """Structured logging settings."""

    level: str = Field(default="INFO", description="Root log level")
    format: Literal["json", "console"] = Field(default="json", description="Renderer")

    @field_validator("level")
    def validate_level(cls, v: str) -> str:
        """Normalize and validate the level name."""
        normalized = v.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be a standard level name. Got: {v!r}")
        return normalized


class Config(BaseModel):
    """Top-level application configuration."""

    sink: SinkConfig = Field(..., description="Sink configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - `ATTR2STORE_ATTR_PREFIX` set to an empty value selects the empty prefix;
      leaving it unset keeps the default.
    - Raises `ValueError` with actionable messages when required configuration is
      missing or malformed.
    """
    # Load variables from `.env` into the process environment (without overriding
    # already-set env vars).
    dotenv.load_dotenv()

    attr_prefix = os.getenv(f"{ENV_PREFIX}ATTR_PREFIX")
    system_family = os.getenv(f"{ENV_PREFIX}SYSTEM_FAMILY", "").strip() or None

    sink = SinkConfig(
        table=_get_required_env(f"{ENV_PREFIX}TABLE"),
        system_family=system_family,
        write_body=_get_env_bool(f"{ENV_PREFIX}WRITE_BODY", True),
        attr_prefix=DEFAULT_ATTR_PREFIX if attr_prefix is None else attr_prefix,
        write_buffer_size=_get_env_number(f"{ENV_PREFIX}WRITE_BUFFER_SIZE", 0, int),
        write_to_wal=_get_env_bool(f"{ENV_PREFIX}WRITE_TO_WAL", True),
        db_path=os.getenv(f"{ENV_PREFIX}DB_PATH", "") or "attr2store.duckdb",
    )
    logging = LoggingConfig(
        level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "") or "INFO",
        format=os.getenv(f"{ENV_PREFIX}LOG_FORMAT", "") or "json",  # type: ignore[arg-type]
    )
    return Config(sink=sink, logging=logging)
