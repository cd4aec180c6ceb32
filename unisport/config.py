"""Layered configuration: YAML < .env < CLI args, validated into :class:`Settings`."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from unisport.search.index import DEFAULT_THRESHOLD, DEFAULT_WEIGHTS
from unisport.views import DEFAULT_PAGE_SIZE

DEFAULT_CONFIG_PATH = Path("config/default.yaml")
DEFAULT_COURSES_URL = "https://api.unisport.berlin/classes"
DEFAULT_LOCATIONS_URL = "https://api.unisport.berlin/locations"
DEFAULT_CACHE_PATH = "./.cache/unisport-cache.json"

# Environment variable -> nested config key
ENV_MAPPINGS: dict[str, tuple[str, ...]] = {
    "UNISPORT_COURSES_URL": ("api", "courses_url"),
    "UNISPORT_LOCATIONS_URL": ("api", "locations_url"),
    "UNISPORT_CACHE_PATH": ("cache", "path"),
    "UNISPORT_LOG_LEVEL": ("logging", "level"),
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ApiSettings(BaseModel):
    courses_url: str = DEFAULT_COURSES_URL
    locations_url: str = DEFAULT_LOCATIONS_URL


class CacheSettings(BaseModel):
    path: Path = Path(DEFAULT_CACHE_PATH)
    ttl_hours: float = Field(default=24, gt=0)

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.ttl_hours)


class TimeoutSettings(BaseModel):
    connect: float = Field(default=10, gt=0)
    read: float = Field(default=30, gt=0)


class SearchSettings(BaseModel):
    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0, le=1)
    weights: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: dict[str, float]) -> dict[str, float]:
        unknown = set(value) - set(DEFAULT_WEIGHTS)
        if unknown:
            raise ValueError(f"unknown search fields: {', '.join(sorted(unknown))}")
        if any(weight < 0 for weight in value.values()):
            raise ValueError("search weights must be >= 0")
        return {**DEFAULT_WEIGHTS, **value}


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    file: Path | None = None

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


class Settings(BaseModel):
    """Validated runtime configuration.  Every key has a default."""

    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    user_agent: str = "unisport/0.1.0"
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    retries: int = Field(default=3, ge=0)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_config(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load the raw configuration dict with layered precedence.

    Priority (highest to lowest):
    1. CLI argument overrides (``None`` values are skipped, nested dicts
       are merged key by key)
    2. Environment variables (.env), see :data:`ENV_MAPPINGS`
    3. YAML config file

    Args:
        config_path: Path to YAML config file. Defaults to config/default.yaml
        cli_overrides: Dict of CLI argument overrides (e.g. {"page_size": 20})
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    load_dotenv()
    for env_var, keys in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value:
            _set_nested(config, keys, value)

    if cli_overrides:
        _merge(config, cli_overrides)

    return config


def load_settings(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Settings:
    """:func:`load_config` followed by validation.

    Raises:
        pydantic.ValidationError: If a value is out of range or mistyped.
    """
    return Settings.model_validate(load_config(config_path, cli_overrides))


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


def _set_nested(d: dict, keys: tuple[str, ...], value: Any) -> None:
    """Set a value in a nested dict using a tuple of keys."""
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value
