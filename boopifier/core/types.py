"""Type definitions for configuration and dispatch results.

Configuration file shape (JSON):

    {
      "timeout": 15,
      "handlers": [
        {
          "name": "desktop-alert",
          "type": "desktop",
          "match_rules": {"hook_event_name": "Notification"},
          "config": {"title": "Claude", "message": "{{message}}"}
        }
      ],
      "overrides": [
        {"path_pattern": "~/work/**", "handlers": []}
      ]
    }
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _ensure_unique_names(handlers: list[HandlerConfig]) -> list[HandlerConfig]:
    seen: set[str] = set()
    for handler in handlers:
        if handler.name in seen:
            raise ValueError(f"duplicate handler name '{handler.name}'")
        seen.add(handler.name)
    return handlers


class HandlerConfig(BaseModel):
    """Configuration for a single handler.

    Attributes:
        name: Unique handler name, used in diagnostics.
        type: Registered adapter type (e.g. "desktop", "webhook").
        match_rules: Rule tree selecting events; ``None`` matches everything.
        config: Adapter-specific settings, templated before dispatch.
        timeout: Optional per-handler deadline in seconds, bounded by the
            global invocation timeout.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    match_rules: Any = None
    config: dict[str, Any] = Field(default_factory=dict)
    timeout: float | None = Field(default=None, gt=0)


class Override(BaseModel):
    """A handler list that replaces the base list when the cwd matches."""

    model_config = ConfigDict(extra="ignore")

    path_pattern: str = Field(min_length=1)
    handlers: list[HandlerConfig]

    @field_validator("handlers")
    @classmethod
    def check_unique_names(cls, handlers: list[HandlerConfig]) -> list[HandlerConfig]:
        return _ensure_unique_names(handlers)


class BoopifierConfig(BaseModel):
    """Top-level configuration file contents."""

    model_config = ConfigDict(extra="ignore")

    handlers: list[HandlerConfig]
    overrides: list[Override] = Field(default_factory=list)
    timeout: float | None = Field(default=None, gt=0)
    max_concurrency: int | None = Field(default=None, ge=1)
    secrets_file: str | None = None

    @field_validator("handlers")
    @classmethod
    def check_unique_names(cls, handlers: list[HandlerConfig]) -> list[HandlerConfig]:
        return _ensure_unique_names(handlers)


class ResolvedConfig(BaseModel):
    """The effective configuration for one invocation."""

    source_path: Path
    handlers: list[HandlerConfig]
    override_pattern: str | None = None
    timeout: float | None = None
    max_concurrency: int | None = None
    secrets_file: Path | None = None


class DispatchStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


class DispatchResult(BaseModel):
    """Outcome of dispatching one handler."""

    handler_name: str
    handler_type: str
    status: DispatchStatus
    reason: str | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == DispatchStatus.SUCCESS
