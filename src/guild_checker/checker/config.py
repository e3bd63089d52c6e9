"""Configuration for the guild checker.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Command-line flags take precedence. The merged result is a `RunConfig` that is
built once in the CLI and passed explicitly to the runner and the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OutputFormat(str, Enum):
    """Report rendering formats."""

    PLAIN = "plain"
    JSON = "json"


class CheckerSettings(BaseSettings):
    """Settings for the guild checker.

    Environment variables:
    - CHECKER_API_BASE_URL     (optional)
    - CHECKER_CONCURRENCY      (optional)
    - CHECKER_INDEX_PATH       (optional)
    - CHECKER_REQUEST_TIMEOUT  (optional)
    - LOG_LEVEL                (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `CheckerSettings(_env_file=path_to_env)`.
    """

    api_base_url: str = Field(
        default="https://api.spy.pet",
        validation_alias="CHECKER_API_BASE_URL",
        description="Base URL of the lookup service",
    )

    concurrency: int = Field(
        default=1,
        ge=1,
        validation_alias="CHECKER_CONCURRENCY",
        description=(
            "Maximum number of concurrent requests. "
            "Setting this higher than 1 may get you rate limited."
        ),
    )

    index_path: Path = Field(
        default=Path("index.json"),
        validation_alias="CHECKER_INDEX_PATH",
        description="Path to index.json containing server names and IDs",
    )

    request_timeout: float | None = Field(
        default=None,
        gt=0,
        validation_alias="CHECKER_REQUEST_TIMEOUT",
        description="Per-request timeout in seconds (unset means no timeout)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("CHECKER_API_BASE_URL must not be empty")
        return value.rstrip("/")


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Immutable per-run configuration."""

    concurrency: int = 1
    index_path: Path = Path("index.json")
    output_format: OutputFormat = OutputFormat.PLAIN
    output_path: Path | None = None
    sort_results: bool = False
    include_absent: bool = False
    api_base_url: str = "https://api.spy.pet"
    request_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError(f"request timeout must be > 0, got {self.request_timeout}")
