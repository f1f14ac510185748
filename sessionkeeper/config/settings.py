"""
Configuration management for sessionkeeper.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are read from SESSION_STORE_* environment variables
or .env files, or passed directly as keyword arguments.

All durations are integer milliseconds. A non-positive cleanup_interval
disables the background sweep and a non-positive touch_after refreshes the
expiry on every touch.
"""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionkeeper.errors.codes import ErrorCode
from sessionkeeper.errors.exceptions import AppException


DEFAULT_TTL_MS = 14 * 24 * 60 * 60 * 1000
DEFAULT_CLEANUP_INTERVAL_MS = 5 * 60 * 1000
DEFAULT_TOUCH_AFTER_MS = 10 * 1000

ENV_PREFIX = "SESSION_STORE_"


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the SESSION_STORE_ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get(f"{ENV_PREFIX}ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the .env files to load for the given environment.

    The base .env file is loaded first, then the environment-specific file
    overrides it.
    """
    return (".env", f".env.{environment.value}")


class StoreSettings(BaseSettings):
    """
    Session store settings.

    table_name is the only required value; construction fails before any
    asynchronous work starts when it is missing.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Keyspace
    table_name: str = Field(
        ...,
        description="Identity of the backing keyspace"
    )
    auto_create: bool = Field(
        default=False,
        description="Provision the keyspace if it does not exist"
    )

    # Expiry
    ttl: int = Field(
        default=DEFAULT_TTL_MS,
        ge=1,
        description="Default session lifetime in milliseconds"
    )
    cleanup_interval: int = Field(
        default=DEFAULT_CLEANUP_INTERVAL_MS,
        description="Sweep period in milliseconds, <= 0 disables sweeping"
    )
    touch_after: int = Field(
        default=DEFAULT_TOUCH_AFTER_MS,
        description="Minimum gap in milliseconds between expiry refreshes"
    )

    # Backing store
    store_type: str = Field(
        default="redis",
        description="Backing store type: 'redis' or 'memory'"
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL"
    )
    scan_page_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Rows inspected per scan page during a sweep"
    )
    connect_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made by the lifecycle hook to reach the store"
    )
    connect_retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial backoff in seconds between connect attempts"
    )
    connect_retry_max_delay: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound in seconds for a single connect backoff"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Validate that table_name is not empty."""
        if not v or not v.strip():
            raise ValueError("table_name cannot be empty")
        return v.strip()

    @field_validator("store_type")
    @classmethod
    def validate_store_type(cls, v: str) -> str:
        """Validate that store_type is either 'redis' or 'memory'."""
        v = v.strip().lower()
        if v not in {"redis", "memory"}:
            raise ValueError("store_type must be 'redis' or 'memory'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    def validate_backing_store(self) -> None:
        """
        Check the settings that only matter when a record store is built
        from them.

        Raises:
            ConfigurationError: If redis_url is missing outside development,
                or the memory store is selected in production.
        """
        if self.store_type == "redis" and not self.redis_url:
            if self.environment != Environment.DEVELOPMENT:
                raise ConfigurationError(
                    "redis_url is required when store_type is 'redis' "
                    "in non-development environments",
                    missing_fields=["redis_url"]
                )
        if self.store_type == "memory" and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Invalid session store configuration",
                invalid_fields={"store_type": "'memory' is not allowed in production"}
            )

    @property
    def cleanup_enabled(self) -> bool:
        return self.cleanup_interval > 0


class ConfigurationError(AppException):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(
            error_code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            details={
                "missing_fields": self.missing_fields,
                "invalid_fields": self.invalid_fields,
            }
        )
        # Show the full listing when the exception is printed
        self.args = (self.format_error_message(),)

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings(environment: Optional[Environment] = None, **overrides) -> StoreSettings:
    """
    Create validated settings, optionally overriding individual values.

    The environment is detected from SESSION_STORE_ENVIRONMENT when not given,
    and the matching .env files are loaded.

    Args:
        environment: Optional environment override.
        **overrides: Field values taking precedence over the environment.

    Returns:
        StoreSettings: Validated settings.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)
    existing_env_files = [f for f in env_files if Path(f).exists()]

    class EnvironmentSettings(StoreSettings):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX,
            env_file=tuple(existing_env_files) or None,
            env_file_encoding="utf-8",
            case_sensitive=False,
            extra="ignore"
        )

    overrides.setdefault("environment", environment)
    try:
        return EnvironmentSettings(**overrides)
    except ValidationError as e:
        missing, invalid = _classify_errors(e)
        raise ConfigurationError(
            f"Failed to load session store configuration for environment '{environment.value}'",
            missing_fields=missing,
            invalid_fields=invalid
        ) from e


def _classify_errors(exc: ValidationError) -> Tuple[List[str], dict]:
    """Split pydantic errors into missing field names and field -> message."""
    missing: List[str] = []
    invalid: dict = {}
    for error in exc.errors():
        # Model-level validators report an empty location
        name = ".".join(str(loc) for loc in error.get("loc", ())) or "settings"
        if error.get("type") == "missing":
            missing.append(name)
        else:
            invalid[name] = error.get("msg", str(error))
    return missing, invalid


_settings_cache: Optional[StoreSettings] = None


def get_settings() -> StoreSettings:
    """
    Get the settings singleton, loading it from the environment on first use.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings()

    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads."""
    global _settings_cache
    _settings_cache = None
