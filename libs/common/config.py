"""Configuration management for repo search.

This module centralizes environment-driven configuration for the keyword
backend, the hybrid fusion engine, logging and snippet extraction. It builds
on ``pydantic_settings.BaseSettings`` so configuration can be provided via
environment variables, ``.env`` files, or defaults.

Highlights
- Strongly-typed settings with sensible defaults
- One place to discover commonly used environment variables
- Field names carry the ``rs_`` prefix so they map 1:1 onto ``RS_*`` vars

Usage
- ``settings = get_settings()``
- ``config = HybridConfig.from_settings(settings)``
"""


from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration shared by every component.

    Parameters are read from the process environment, matching the upper-cased
    field name (``rs_log_level`` <- ``RS_LOG_LEVEL``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    rs_env: str = Field(default="local")

    # Logging
    rs_log_level: str = Field(default="INFO")
    rs_log_format: str = Field(default="json")


class SearchSettings(BaseConfig):
    """Configuration for keyword, semantic and hybrid search.

    Numeric search knobs at or below zero are treated as "use the default" by
    the consumers, mirroring how per-call configuration is normalized.
    """

    # Keyword backend
    rs_ripgrep_path: str = Field(default="rg")
    rs_keyword_output: str = Field(default="json")

    # Fusion
    rs_keyword_limit: int = Field(default=20)
    rs_semantic_limit: int = Field(default=10)
    rs_keyword_weight: float = Field(default=0.6)
    rs_semantic_weight: float = Field(default=0.4)
    rs_semantic_timeout: float = Field(default=0.0)

    # Snippets
    rs_snippet_max_chars: int = Field(default=500)


def get_settings() -> SearchSettings:
    """Build settings from the current environment."""
    return SearchSettings()
