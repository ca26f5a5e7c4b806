"""
Shared configuration management for splitify.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITIFY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Observability
    metrics_enabled: bool = Field(default=True)


class SplitifyConfig(BaseConfig):
    """Configuration for an application embedding the splitters."""

    service_name: str = Field(default="splitify")


def get_config(**overrides) -> SplitifyConfig:
    """Get configuration, environment first, keyword overrides last."""
    return SplitifyConfig(**overrides)
