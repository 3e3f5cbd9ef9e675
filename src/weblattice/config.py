# weblattice/config.py
from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_PLATFORM, DEFAULT_TIMEOUT, WEBLATTICE_VERSION
from .exceptions import ConfigurationError
from .log_config import logger
from .types import PostRequestHook, PreRequestHook


class Environment(Enum):
    """Deployment tier. Encryption only activates automatically in PROD."""

    DEV = "DEV"
    UAT = "UAT"
    PROD = "PROD"


class EncryptionSettings(BaseModel):
    """Payload encryption switch and key material."""

    enabled: bool = False
    secret_key: str | None = None
    use_remote_keys: bool = False


class MetricsSettings(BaseModel):
    """Controls whether completed calls are recorded and where."""

    enabled: bool = True
    log_to_console: bool = True


class GraphQLSettings(BaseModel):
    endpoint: str | None = None


class NetworkConfig(BaseSettings):
    """
    Settings for a single WebLattice client, loaded from keyword arguments,
    environment variables (prefixed with 'WEBLATTICE_') or .env/secrets.env files.

    Nested sections can be set from the environment with a double underscore,
    e.g. ``WEBLATTICE_ENCRYPTION__ENABLED=true``.

    The instance is mutable: `update` merges a partial configuration into it in
    place, so everything holding a reference observes the new values on its
    next read.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),
        env_file_encoding="utf-8",
        env_prefix="WEBLATTICE_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
        arbitrary_types_allowed=True,  # Allow hook callables
    )

    # --- Transport ---
    base_url: str = Field(default="", description="Base URL prepended to relative paths")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, description="Default request timeout in seconds"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    max_retries: int = Field(
        default=0,
        description="Extra attempts on timeouts and network errors (0 disables retries)",
    )
    backoff_factor: float = Field(
        default=0.5, description="Backoff factor for transport retries (seconds)"
    )

    # --- Behaviour ---
    environment: Environment = Field(default=Environment.DEV)
    encryption: EncryptionSettings = Field(default_factory=EncryptionSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    graphql: GraphQLSettings = Field(default_factory=GraphQLSettings)

    # --- Identification headers ---
    client_version: str = Field(default=WEBLATTICE_VERSION)
    app_platform: str = Field(default=DEFAULT_PLATFORM)

    # --- Hook Settings ---
    pre_request_hooks: list[PreRequestHook] = Field(
        default_factory=list,
        description="List of hooks to call once request headers are built.",
    )
    post_request_hooks: list[PostRequestHook] = Field(
        default_factory=list,
        description="List of hooks to call after a successful response is decoded.",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def _normalise_environment(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_production_encrypted(self) -> bool:
        """True when requests must be encrypted: PROD tier with encryption enabled."""
        return self.environment is Environment.PROD and self.encryption.enabled

    def update(self, partial: Mapping[str, Any] | None = None, **changes: Any) -> None:
        """Shallow-merge a partial configuration into this instance.

        Every top-level key given replaces the current value wholesale: passing
        ``encryption={"enabled": True}`` resets ``secret_key`` to its default
        rather than keeping the old one. Keys that are not given are preserved.
        Values are coerced (e.g. mappings into their section model) but not
        range-checked.

        Raises:
            ConfigurationError: If a key is not a known setting or a value
                cannot be coerced to its type.
        """
        merged = {**(partial or {}), **changes}
        unknown = set(merged) - set(type(self).model_fields)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration key(s): {', '.join(sorted(unknown))}"
            )
        # Validate through a throwaway model so sections are coerced.
        try:
            validated = type(self).model_validate({**self._current_values(), **merged})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        for key in merged:
            setattr(self, key, getattr(validated, key))
        logger.debug(f"Network configuration updated: {sorted(merged)}")

    def _current_values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in type(self).model_fields}


@lru_cache
def get_settings() -> NetworkConfig:
    """
    Provides the configuration loaded from the environment.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached; clients take a copy of it so that updating one
    client never leaks into another.

    Returns:
        NetworkConfig: The environment-derived configuration.
    """
    return NetworkConfig()
