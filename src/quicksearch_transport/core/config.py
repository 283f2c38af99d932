"""
Configuration schema and loading for the QuickSearch transport.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction. Durations are seconds.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, Field, ValidationError, field_validator

from quicksearch_transport.contracts.enums import LevelName
from quicksearch_transport.contracts.errors import ConfigurationError

# Single source of truth for defaults; TransportSettings fields reference these.
DEFAULTS: Final[dict[str, Any]] = {
    "application": "unknown",
    "batch_size": 100,
    "flush_interval": 2.0,
    "queue_size_limit": 10_000,
    "timeout": 30.0,
    "retry_attempts": 3,
    "retry_delay": 1.0,
    "minimum_level": LevelName.TRACE.value,
    "max_concurrent_sends": 32,
}

DEBUG_ENV_VAR: Final = "QUICKSEARCH_DEBUG"
ENV_PREFIX: Final = "QUICKSEARCH"


class TransportSettings(BaseModel):
    """Transport configuration.

    Only server_url is required. Everything else falls back to DEFAULTS.
    """

    model_config = {"frozen": True}

    server_url: str = Field(description="Collector base URL; events go to {server_url}/api/events")
    api_key: str | None = Field(default=None, description="Sent as 'Authorization: Bearer <api_key>' when set")
    application: str = Field(default=DEFAULTS["application"], description="Application tag for every event")
    batch_size: int = Field(default=DEFAULTS["batch_size"], gt=0, description="Buffer length that triggers a flush")
    flush_interval: float = Field(default=DEFAULTS["flush_interval"], gt=0, description="Seconds between timer flushes")
    queue_size_limit: int = Field(default=DEFAULTS["queue_size_limit"], gt=0, description="Buffer capacity (drop-oldest beyond)")
    timeout: float = Field(default=DEFAULTS["timeout"], gt=0, description="Per-attempt HTTP timeout in seconds")
    retry_attempts: int = Field(default=DEFAULTS["retry_attempts"], ge=0, description="Retries after the first attempt")
    retry_delay: float = Field(default=DEFAULTS["retry_delay"], ge=0, description="Initial backoff delay in seconds")
    minimum_level: str = Field(default=DEFAULTS["minimum_level"], description="Lowest level forwarded by the handler")
    max_concurrent_sends: int = Field(
        default=DEFAULTS["max_concurrent_sends"],
        gt=0,
        description="Upper bound on worker threads used by one flush",
    )

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Reject blank URLs and strip trailing slashes."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("server_url is required")
        return stripped.rstrip("/")

    @field_validator("minimum_level")
    @classmethod
    def validate_minimum_level(cls, v: str) -> str:
        """Normalize case and reject unknown level names."""
        normalized = v.strip().lower()
        valid = {level.value for level in LevelName}
        if normalized not in valid:
            raise ValueError(f"minimum_level must be one of {sorted(valid)}, got {v!r}")
        return normalized

    @property
    def endpoint(self) -> str:
        """Full delivery URL."""
        return f"{self.server_url}/api/events"


def build_settings(options: Mapping[str, Any]) -> TransportSettings:
    """Validate raw options into TransportSettings.

    Args:
        options: Mapping of setting name to value (unknown keys are ignored)

    Returns:
        Validated, frozen TransportSettings

    Raises:
        ConfigurationError: If a required setting is missing or a value is invalid.
            The first offending field is reported.
    """
    try:
        return TransportSettings(**dict(options))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "settings"
        raise ConfigurationError(field, first["msg"]) from e


def load_settings(config_path: Path | None = None) -> TransportSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (QUICKSEARCH_*) - highest priority
    2. Config file, when given
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Optional path to a YAML file with top-level setting keys

    Returns:
        Validated TransportSettings

    Raises:
        FileNotFoundError: If config_path is given but does not exist
        ConfigurationError: If the merged configuration is invalid
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENV_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    # QUICKSEARCH_DEBUG is a logging toggle, not a transport setting
    raw_config.pop("debug", None)

    return build_settings(raw_config)
