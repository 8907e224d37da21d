"""Client settings using pydantic-settings.

Loads configuration from ``AGENTFLOW_*`` environment variables with .env
file support. Explicit arguments passed to ``AgentFlowClient`` take
precedence over anything loaded here.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RECURSION_LIMIT = 25
DEFAULT_TIMEOUT_SECONDS = 300.0


class Settings(BaseSettings):
    """AgentFlow client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AGENTFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the AgentFlow graph server",
    )
    auth_token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent as the Authorization header (unset = no auth)",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Per-request timeout in seconds (applies to each loop iteration)",
    )
    debug: bool = Field(
        default=False,
        description="Log request payloads and every stream chunk at DEBUG level",
    )
    recursion_limit: int = Field(
        default=DEFAULT_RECURSION_LIMIT,
        ge=1,
        description="Maximum request/tool-execution iterations per call",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
