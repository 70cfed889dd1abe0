"""Configuration loading utilities for jwks-local."""
from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .paths import STORE_DIR_NAME, default_store_dir, runtime_config_dir
from .utils.duration import MAX_DURATION

DEFAULT_ISSUER = "https://jwks.local"
DEFAULT_TTL_SECONDS = 3600


class StoreConfig(BaseModel):
    default_dir: Optional[Path] = Field(
        default=None,
        description="Fallback store directory when no store is found in the working directory",
    )

    @field_validator("default_dir")
    @classmethod
    def _expand_default_dir(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return Path(value).expanduser()

    def resolved_default_dir(self) -> Path:
        return self.default_dir or default_store_dir()


class TokenConfig(BaseModel):
    issuer: str = Field(default=DEFAULT_ISSUER, description="Value of the iss claim")
    default_ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS, ge=1, le=int(MAX_DURATION.total_seconds())
    )

    def default_ttl(self) -> timedelta:
        return timedelta(seconds=self.default_ttl_seconds)


class LoggingConfig(BaseModel):
    level: str = Field(default="WARNING", description="Logging verbosity level")

    def normalized_level(self) -> str:
        return self.level.upper()


class AppConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    token: TokenConfig = Field(default_factory=TokenConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield Path.cwd() / STORE_DIR_NAME / "config.yaml"
    yield runtime_config_dir() / "config.yaml"


def load_config(path: Optional[Path] = None) -> AppConfig:
    for candidate in config_search_paths(path):
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
            try:
                return AppConfig.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid configuration in {candidate}: {exc}") from exc
    return DEFAULT_CONFIG.model_copy(deep=True)


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_ISSUER",
    "DEFAULT_TTL_SECONDS",
    "LoggingConfig",
    "StoreConfig",
    "TokenConfig",
    "config_search_paths",
    "load_config",
]
