"""
Centralized configuration for versionaware.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (VERSIONAWARE_*)
3. .env file
4. Default values

Example:
    from versionaware.config import get_config

    config = get_config()
    print(config.log_format)  # From VERSIONAWARE_LOG_FORMAT or default

    # Override at runtime
    config = get_config(emit_span_events=False)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VersionAwareConfig(BaseSettings):
    """
    Central configuration for versionaware.

    All settings can be overridden via environment variables
    prefixed with VERSIONAWARE_.

    Example:
        export VERSIONAWARE_LOG_LEVEL=debug
        export VERSIONAWARE_LOG_FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="VERSIONAWARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    service_name: str = Field(
        default="versionaware",
        description="Service name for log and telemetry attribution",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for migration events",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Event log output format (json for aggregators, text for console)",
    )

    # Telemetry
    emit_span_events: bool = Field(
        default=True,
        description="Attach compatibility and migration events to the current OTel span",
    )

    # Schema files
    schema_dir: str = Field(
        default="./schemas",
        description="Default directory searched for *.schema.yaml files",
    )

    @field_validator("schema_dir")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))

    def get_schema_path(self, name: Optional[str] = None) -> Path:
        """Get the schema directory, or a schema file inside it."""
        base = Path(self.schema_dir)
        if name:
            return base / f"{name}.schema.yaml"
        return base


# Global singleton
_config: Optional[VersionAwareConfig] = None


def get_config(**overrides) -> VersionAwareConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = VersionAwareConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_log_level() -> str:
    """Get the configured log level."""
    return get_config().log_level
