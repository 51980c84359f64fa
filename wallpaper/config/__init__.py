"""
Configuration loading for the Universal Wallpaper API.

Configuration values are resolved using the following precedence:

1. Environment variables (e.g., MONGODB_URI, PORT)
2. `wallpaper.toml` (or the file named by WALLPAPER_CONFIG_FILE / the
   explicit path passed to `load_settings`)
3. Built-in defaults

`.env` files are not read here; the process entry point loads them with
python-dotenv before calling `load_settings`, so they behave exactly like
real environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "ConfigError",
    "DatabaseSettings",
    "LoggingSettings",
    "ServerSettings",
    "Settings",
    "load_settings",
]


DEFAULT_CONFIG_FILE = Path("wallpaper.toml")
DEFAULT_DB_NAME = "universal_wallpaper"
DEFAULT_PORT = 8080
DEFAULT_FRONTEND_URL = "http://localhost:3000"


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or validated."""


class DatabaseSettings(BaseModel):
    """MongoDB connection settings."""

    uri: Optional[str] = Field(None, description="MongoDB connection string")
    name: str = Field(DEFAULT_DB_NAME, description="Database name", min_length=1)
    max_pool_size: int = Field(10, description="Maximum sockets in the pool", ge=1)
    server_selection_timeout_ms: int = Field(
        30000, description="How long to wait for a usable server", ge=1
    )
    connect_timeout_ms: int = Field(
        30000,
        description="Bound for the startup connection attempt and socket connects",
        ge=1,
    )
    socket_timeout_ms: int = Field(
        45000, description="Close sockets after this much inactivity", ge=1
    )
    retry_writes: bool = Field(True, description="Enable retryable writes")
    write_concern: str = Field("majority", description="Default write concern")

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000.0

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments handed to `pymongo.MongoClient`."""

        return {
            "maxPoolSize": self.max_pool_size,
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "connectTimeoutMS": self.connect_timeout_ms,
            "socketTimeoutMS": self.socket_timeout_ms,
            "retryWrites": self.retry_writes,
            "w": self.write_concern,
        }


class ServerSettings(BaseModel):
    """HTTP listener settings."""

    host: str = Field("0.0.0.0", description="Interface to bind", min_length=1)
    port: int = Field(DEFAULT_PORT, description="TCP port to listen on", ge=1, le=65535)


class LoggingSettings(BaseModel):
    """Structured logging settings."""

    level: str = Field("INFO", description="Log level name")
    format: str = Field("console", description="Renderer: json or console")
    file: Optional[Path] = Field(None, description="Optional rotating log file")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return normalized

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"json", "console"}:
            raise ValueError(f"unknown log format: {value}")
        return normalized

    @field_validator("file", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Optional[Path]:
        if value in (None, ""):
            return None
        return Path(value) if not isinstance(value, Path) else value


class Settings(BaseModel):
    """Top-level settings object shared across the service."""

    environment: str = Field("development", description="development or production")
    frontend_url: str = Field(
        DEFAULT_FRONTEND_URL, description="Origin allowed by CORS", min_length=1
    )
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Origins accepted by the CORS middleware."""

        origins = [self.frontend_url]
        if not self.is_production:
            origins.extend(["http://localhost:3000", "http://localhost:3001"])
        return list(dict.fromkeys(origins))


def load_settings(config_path: Optional[Path | str] = None) -> Settings:
    """
    Load settings from environment/file/defaults.

    Args:
        config_path: Optional explicit path to a `wallpaper.toml` file.

    Returns:
        Settings populated with the resolved values.

    Raises:
        ConfigError: if the config file is missing or malformed, or a value
            fails validation.
    """

    raw_data = _load_toml_data(config_path)
    db_data = raw_data.get("database", {})
    server_data = raw_data.get("server", {})
    log_data = raw_data.get("logging", {})

    try:
        return Settings(
            environment=_env_or_value(
                "APP_ENV", raw_data.get("environment"), "development"
            ).strip().lower(),
            frontend_url=_env_or_value(
                "FRONTEND_URL", raw_data.get("frontend_url"), DEFAULT_FRONTEND_URL
            ),
            database=DatabaseSettings(
                uri=_env_or_none("MONGODB_URI", db_data.get("uri")),
                name=_env_or_value("MONGODB_DB_NAME", db_data.get("name"), DEFAULT_DB_NAME),
                connect_timeout_ms=_env_int(
                    "MONGODB_CONNECT_TIMEOUT_MS",
                    db_data.get("connect_timeout_ms"),
                    DatabaseSettings().connect_timeout_ms,
                ),
                **_passthrough(
                    db_data,
                    (
                        "max_pool_size",
                        "server_selection_timeout_ms",
                        "socket_timeout_ms",
                        "retry_writes",
                        "write_concern",
                    ),
                ),
            ),
            server=ServerSettings(
                host=_env_or_value("HOST", server_data.get("host"), "0.0.0.0"),
                port=_env_int("PORT", server_data.get("port"), DEFAULT_PORT),
            ),
            logging=LoggingSettings(
                level=_env_or_value("LOG_LEVEL", log_data.get("level"), "INFO"),
                format=_env_or_value("LOG_FORMAT", log_data.get("format"), "console"),
                file=_env_or_none("LOG_FILE", log_data.get("file")),
            ),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _load_toml_data(config_path: Optional[Path | str]) -> Dict[str, Any]:
    """Load data from a TOML file if one can be resolved."""

    resolved = _resolve_config_path(config_path)
    if resolved is None:
        return {}

    if not resolved.exists():
        raise ConfigError(f"Configuration file not found: {resolved}")

    try:
        with resolved.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed configuration file {resolved}: {exc}") from exc


def _resolve_config_path(config_path: Optional[Path | str]) -> Optional[Path]:
    """Resolve configuration path with environment fallback."""

    if config_path:
        return Path(config_path)

    env_path = os.getenv("WALLPAPER_CONFIG_FILE")
    if env_path:
        return Path(env_path)

    return DEFAULT_CONFIG_FILE if DEFAULT_CONFIG_FILE.exists() else None


def _passthrough(raw: Dict[str, Any], keys: tuple[str, ...]) -> Dict[str, Any]:
    """Pick file-only keys that are present so model defaults still apply."""

    return {key: raw[key] for key in keys if key in raw}


def _env_or_value(env_var: str, value: Any, default: Any) -> str:
    """Return environment variable value if set, otherwise fallback to provided/default values."""

    env_value = os.getenv(env_var)
    if env_value is not None:
        return env_value
    if value is not None:
        return str(value)
    return str(default)


def _env_or_none(env_var: str, value: Any) -> Optional[str]:
    """Like `_env_or_value` but keeps "unset" distinguishable."""

    env_value = os.getenv(env_var)
    if env_value:
        return env_value
    if value is not None and value != "":
        return str(value)
    return None


def _env_int(env_var: str, value: Any, default: int) -> int:
    """Resolve an integer from environment with fallback."""

    raw = _env_or_value(env_var, value, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {env_var}: {raw}") from exc
