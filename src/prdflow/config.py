"""Settings for prdflow.

Every section is a pydantic-settings model, so each value can come from a
TOML file, from a ``PRDFLOW_<SECTION>__<KEY>`` environment variable, or
from keyword arguments in code.

A minimal ``prdflow.toml``:

    [database]
    url = "sqlite+aiosqlite:///prdflow.db"

    [review]
    label_locale = "zh"

Switching the same install to PostgreSQL from the environment:

    PRDFLOW_DATABASE__URL="postgresql+asyncpg://prd:secret@db/prdflow"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomli
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = "prdflow.toml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]
LabelLocale = Literal["en", "zh"]


class DatabaseConfig(BaseSettings):
    """Where documents and versions are stored.

    Attributes:
        url: Async SQLAlchemy URL; SQLite (aiosqlite) unless overridden
        echo: Log every SQL statement
    """

    model_config = SettingsConfigDict(env_prefix="PRDFLOW_DATABASE__", extra="forbid")

    url: str = Field(
        default="sqlite+aiosqlite:///prdflow.db",
        description="Async SQLAlchemy connection URL",
    )
    echo: bool = False


class LoggingConfig(BaseSettings):
    """How structured log events are rendered and where they go.

    Attributes:
        level: Minimum level emitted; case-insensitive on input
        format: ``json`` for machines, ``console`` for people
        file: Write to this file (rotated by size) instead of stdout
        rotation_size_mb: Size at which the log file is rotated
        retention_count: Rotated files kept on disk
    """

    model_config = SettingsConfigDict(env_prefix="PRDFLOW_LOGGING__", extra="forbid")

    level: LogLevel = "INFO"
    format: LogFormat = "json"
    file: Path | None = None
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class ReviewConfig(BaseSettings):
    """Review workflow behaviour.

    Attributes:
        notify_second_reviewer: Return a notification effect when a
            document reaches second-level review
        label_locale: Language of status labels shown by the CLI
    """

    model_config = SettingsConfigDict(env_prefix="PRDFLOW_REVIEW__", extra="forbid")

    notify_second_reviewer: bool = True
    label_locale: LabelLocale = "en"

    @field_validator("label_locale", mode="before")
    @classmethod
    def _lower_locale(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class PrdflowConfig(BaseSettings):
    """All prdflow settings.

    Nested values are read from ``PRDFLOW_<SECTION>__<KEY>``; keyword
    arguments (including those produced from a TOML file) take precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix="PRDFLOW_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)


def config_search_paths() -> list[Path]:
    """Locations checked, in order, when no config file is given."""
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.home() / ".config" / "prdflow" / "config.toml",
    ]


def find_config_file(config_path: Path | None = None) -> Path | None:
    """Resolve the config file to read, if any.

    Raises:
        FileNotFoundError: If ``config_path`` is given but missing.
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path
    return next((p for p in config_search_paths() if p.exists()), None)


def load_config(config_path: Path | None = None) -> PrdflowConfig:
    """Build the configuration from a TOML file plus the environment.

    Args:
        config_path: File to read. When omitted, ``./prdflow.toml`` and then
            ``~/.config/prdflow/config.toml`` are tried; with neither present
            only the environment and defaults apply.

    Raises:
        FileNotFoundError: If ``config_path`` is given but missing.
        ValueError: If the file is not valid TOML or holds invalid settings.
    """
    source = find_config_file(config_path)
    data: dict[str, Any] = {}
    where = f" in {source}" if source is not None else ""

    if source is not None:
        try:
            data = tomli.loads(source.read_text(encoding="utf-8"))
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"Malformed TOML{where}: {e}") from e

    try:
        return PrdflowConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration{where}: {e}") from e
