"""Process settings sourced from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONCURRENCY = 8

# Environment variables hook hosts set to point at the active project
PROJECT_DIR_ENV_VARS = (
    "BOOPIFIER_PROJECT_DIR",
    "CLAUDE_PROJECT_DIR",
    "OPENCODE_PROJECT_DIR",
)

SECRET_ENV_PREFIX = "BOOPIFIER_SECRET_"


class BoopifierSettings(BaseSettings):
    """Settings for one invocation, read from ``BOOPIFIER_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="BOOPIFIER_",
        extra="ignore",
    )

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)
    log_level: str = "WARNING"
    config: str | None = None

    def project_root_hints(self, environ: dict[str, str]) -> list[str]:
        """Return project-root hints in priority order, skipping unset ones."""
        return [environ[name] for name in PROJECT_DIR_ENV_VARS if environ.get(name)]
