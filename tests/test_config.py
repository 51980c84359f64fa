"""
Tests for settings resolution: environment > wallpaper.toml > defaults.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from wallpaper.config import (
    ConfigError,
    DatabaseSettings,
    LoggingSettings,
    Settings,
    load_settings,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_file_or_environment():
    settings = load_settings()

    assert settings.environment == "development"
    assert settings.database.uri is None
    assert settings.database.name == "universal_wallpaper"
    assert settings.database.connect_timeout_ms == 30000
    assert settings.server.host == "0.0.0.0"
    assert settings.server.port == 8080
    assert settings.logging.level == "INFO"
    assert settings.logging.format == "console"
    assert settings.logging.file is None


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb+srv://cluster.example.net")
    monkeypatch.setenv("MONGODB_DB_NAME", "wallpapers")
    monkeypatch.setenv("MONGODB_CONNECT_TIMEOUT_MS", "1500")
    monkeypatch.setenv("PORT", "5000")
    monkeypatch.setenv("APP_ENV", " Production ")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    settings = load_settings()

    assert settings.database.uri == "mongodb+srv://cluster.example.net"
    assert settings.database.name == "wallpapers"
    assert settings.database.connect_timeout_seconds == 1.5
    assert settings.server.port == 5000
    assert settings.is_production
    assert settings.logging.level == "DEBUG"
    assert settings.logging.format == "json"


def test_default_file_in_working_directory_is_read(tmp_path):
    _write_config(
        tmp_path / "wallpaper.toml",
        """
environment = "staging"

[database]
uri = "mongodb://file-host:27017"
max_pool_size = 25
retry_writes = false

[server]
port = 9000

[logging]
file = "logs/wallpaper.log"
""",
    )

    settings = load_settings()

    assert settings.environment == "staging"
    assert settings.database.uri == "mongodb://file-host:27017"
    assert settings.database.max_pool_size == 25
    assert settings.database.retry_writes is False
    assert settings.server.port == 9000
    assert settings.logging.file == Path("logs/wallpaper.log")


def test_config_file_named_by_environment(monkeypatch, tmp_path):
    path = _write_config(tmp_path / "custom.toml", '[database]\nname = "from_env_file"\n')
    monkeypatch.setenv("WALLPAPER_CONFIG_FILE", str(path))

    assert load_settings().database.name == "from_env_file"


def test_environment_wins_over_file(monkeypatch, tmp_path):
    path = _write_config(
        tmp_path / "settings.toml",
        '[database]\nuri = "mongodb://file-host:27017"\n\n[server]\nport = 9000\n',
    )
    monkeypatch.setenv("MONGODB_URI", "mongodb://env-host:27017")
    monkeypatch.setenv("PORT", "9100")

    settings = load_settings(path)

    assert settings.database.uri == "mongodb://env-host:27017"
    assert settings.server.port == 9100


def test_empty_connection_string_counts_as_unset(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "")

    assert load_settings().database.uri is None


def test_non_numeric_port_is_rejected(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")

    with pytest.raises(ConfigError, match="PORT"):
        load_settings()


def test_out_of_range_port_is_rejected(monkeypatch):
    monkeypatch.setenv("PORT", "70000")

    with pytest.raises(ConfigError):
        load_settings()


def test_unknown_log_level_is_rejected(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(ConfigError):
        load_settings()


def test_missing_explicit_file_is_rejected(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "absent.toml")


def test_malformed_file_is_rejected(tmp_path):
    path = _write_config(tmp_path / "broken.toml", "[database\nuri = ")

    with pytest.raises(ConfigError, match="Malformed"):
        load_settings(path)


class TestSettingsModel:
    def test_cors_origins_in_development(self):
        settings = Settings(frontend_url="https://wallpapers.example.com")

        assert settings.cors_origins == [
            "https://wallpapers.example.com",
            "http://localhost:3000",
            "http://localhost:3001",
        ]

    def test_cors_origins_deduplicated(self):
        assert Settings().cors_origins == ["http://localhost:3000", "http://localhost:3001"]

    def test_cors_origins_in_production(self):
        settings = Settings(
            environment="production", frontend_url="https://wallpapers.example.com"
        )

        assert settings.cors_origins == ["https://wallpapers.example.com"]

    def test_client_options_use_driver_names(self):
        options = DatabaseSettings(max_pool_size=5, write_concern="1").client_options()

        assert options == {
            "maxPoolSize": 5,
            "serverSelectionTimeoutMS": 30000,
            "connectTimeoutMS": 30000,
            "socketTimeoutMS": 45000,
            "retryWrites": True,
            "w": "1",
        }

    def test_blank_log_file_means_no_file(self):
        assert LoggingSettings(file="").file is None
