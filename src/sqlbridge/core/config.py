"""Configuration management for sqlbridge.

Handles the TOML config file, environment variables, named connection
profiles and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--engine, --timeout, --format)
2. --url flag
3. Environment variables (SQLBRIDGE_URL, SQLBRIDGE_ENGINE, SQLBRIDGE_TIMEOUT)
4. Named profile (--profile or SQLBRIDGE_PROFILE env var or default_profile)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sqlbridge.core.connection_string import describe, detect_engine, parse_connection_string
from sqlbridge.core.exceptions import ConfigError, SqlBridgeError
from sqlbridge.core.models import ConnectionDescriptor, Engine
from sqlbridge.drivers.base import DriverSettings

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sqlbridge" / "config.toml"

_ENV_VARS: dict[str, str] = {
    "SQLBRIDGE_URL": "url",
    "SQLBRIDGE_ENGINE": "engine",
    "SQLBRIDGE_TIMEOUT": "default_timeout",
}

_BUILTIN_DEFAULTS: dict[str, Any] = {
    "url": None,
    "engine": None,
    "default_timeout": 30.0,
    "default_format": "table",
    "page_limit": 50,
}


class ConnectionProfile(BaseModel):
    """A named connection in the config file."""

    url: str = Field(min_length=1, repr=False)
    engine: Engine | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        try:
            parse_connection_string(v)
        except SqlBridgeError as e:
            raise ValueError(e.message) from None
        return v


class CacheSettings(BaseModel):
    max_clients: int = Field(default=32, ge=1)
    idle_timeout: float = Field(default=300.0, gt=0)
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=5, ge=1)
    connect_timeout: float = Field(default=10.0, gt=0)

    def driver_settings(self) -> DriverSettings:
        return DriverSettings(
            connect_timeout=self.connect_timeout,
            pool_min_size=self.pool_min_size,
            pool_max_size=self.pool_max_size,
        )


class AppConfig(BaseModel):
    default_timeout: float = 30.0
    default_format: str = "table"
    default_profile: str | None = None
    page_limit: int = Field(default=50, ge=0)
    sentry_dsn: str | None = None
    cache: CacheSettings = CacheSettings()
    profiles: dict[str, ConnectionProfile] = {}


class ResolvedConfig(BaseModel):
    url: str | None = Field(default=None, repr=False)
    engine: Engine | None = None
    default_timeout: float = 30.0
    default_format: str = "table"
    page_limit: int = 50
    active_profile: str | None = None
    cache: CacheSettings = CacheSettings()
    sentry_dsn: str | None = None
    sources: dict[str, str] = {}

    def descriptor(self) -> ConnectionDescriptor:
        """Engine plus connection string for the resolved connection.

        Raises ConfigError when no URL was configured anywhere.
        """
        if not self.url:
            msg = (
                "No connection configured. Pass --url, set SQLBRIDGE_URL "
                "or define a profile in the config file"
            )
            raise ConfigError(msg)
        return describe(self.url, self.engine)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except PydanticValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _parse_engine(value: str, origin: str) -> Engine:
    try:
        return Engine(value.strip().lower())
    except ValueError:
        choices = ", ".join(e.value for e in Engine)
        msg = f"Invalid {origin} value: '{value}'. Must be one of: {choices}"
        raise ConfigError(msg) from None


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    url: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > URL > env > profile > config defaults > built-in defaults.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = dict(_BUILTIN_DEFAULTS)
    for key in resolved:
        sources[key] = "default"

    # Config file global defaults
    for key in ("default_timeout", "default_format", "page_limit"):
        if key in config.model_fields_set:
            resolved[key] = getattr(config, key)
            sources[key] = "config"

    # Named profile
    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get("SQLBRIDGE_PROFILE")
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        resolved["url"] = profile.url
        sources["url"] = f"profile: {effective_profile}"
        if profile.engine is not None:
            resolved["engine"] = profile.engine
            sources["engine"] = f"profile: {effective_profile}"

    # Environment variables
    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None or not value.strip():
            continue
        if field_name == "default_timeout":
            try:
                resolved[field_name] = float(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be a number"
                raise ConfigError(msg) from None
        elif field_name == "engine":
            resolved[field_name] = _parse_engine(value, env_var)
        else:
            resolved[field_name] = value
        sources[field_name] = f"env: {env_var}"

    # URL flag
    if url:
        resolved["url"] = url
        sources["url"] = "cli: --url"

    # CLI flags (highest priority)
    cli_to_field = {
        "engine": "engine",
        "timeout": "default_timeout",
        "format": "default_format",
        "limit": "page_limit",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            if field_name == "engine" and isinstance(value, str):
                value = _parse_engine(value, "--engine")
            resolved[field_name] = value
            sources[field_name] = f"cli: --{cli_name}"

    # An engine that was never set explicitly follows the URL scheme.
    if resolved["engine"] is None and resolved["url"]:
        detected = detect_engine(resolved["url"])
        if detected is not None:
            resolved["engine"] = detected
            sources["engine"] = "url scheme"

    resolved["active_profile"] = effective_profile
    resolved["cache"] = config.cache
    resolved["sentry_dsn"] = config.sentry_dsn
    resolved["sources"] = sources
    return ResolvedConfig(**resolved)
