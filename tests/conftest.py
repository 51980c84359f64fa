"""
Global pytest configuration for the Universal Wallpaper API.

Provides shared fixtures (settings, an in-memory database handle backed by
mongomock, the FastAPI app) and enforces the Python version requirement.
"""

from __future__ import annotations

import sys
from typing import Any, Iterator, List

import mongomock
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from wallpaper.api import create_app
from wallpaper.config import DatabaseSettings, Settings
from wallpaper.database import DatabaseClient

_MIN_PY_VERSION = (3, 11)

_SETTINGS_ENV_VARS = (
    "MONGODB_URI",
    "MONGODB_DB_NAME",
    "MONGODB_CONNECT_TIMEOUT_MS",
    "PORT",
    "HOST",
    "APP_ENV",
    "FRONTEND_URL",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
    "WALLPAPER_CONFIG_FILE",
)


def _verify_python_version() -> str:
    """Return the interpreter version string or exit if <3.11."""
    version_info = sys.version_info
    version_str = ".".join(map(str, version_info[:3]))
    if version_info < _MIN_PY_VERSION:
        pytest.exit(
            f"ERROR: pytest must run on Python 3.11+ (detected {version_str}).",
            returncode=1,
        )
    return version_str


def pytest_report_header(config: pytest.Config) -> str:
    version_str = _verify_python_version()
    return f"Python interpreter verified for pytest: {version_str}"


def pytest_configure(config: pytest.Config) -> None:
    """Register project markers to prevent unknown marker warnings."""
    markers = {
        "unit": "Unit tests that should execute quickly.",
        "integration": "Tests driving the full HTTP stack.",
    }
    for name, description in markers.items():
        config.addinivalue_line("markers", f"{name}: {description}")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shells from leaking settings into tests."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class UnreachableMongoClient:
    """Client double whose server never answers `ping`."""

    instances: List["UnreachableMongoClient"] = []

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.args = args
        self.kwargs = kwargs
        self.closed = False
        UnreachableMongoClient.instances.append(self)

    @property
    def admin(self) -> "UnreachableMongoClient":
        return self

    def command(self, name: str) -> dict:
        raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def unreachable_client() -> Iterator[type]:
    UnreachableMongoClient.instances = []
    yield UnreachableMongoClient
    UnreachableMongoClient.instances = []


@pytest.fixture
def database_settings() -> DatabaseSettings:
    return DatabaseSettings(
        uri="mongodb://localhost:27017",
        name="wallpaper_test",
        connect_timeout_ms=2000,
    )


@pytest.fixture
def settings(database_settings: DatabaseSettings) -> Settings:
    return Settings(database=database_settings)


@pytest.fixture
def database(database_settings: DatabaseSettings) -> DatabaseClient:
    """Unopened handle that connects to an in-memory mongomock server."""
    return DatabaseClient(database_settings, client_factory=mongomock.MongoClient)


@pytest.fixture
def app(settings: Settings, database: DatabaseClient) -> FastAPI:
    return create_app(settings, database)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan (and so the database) running."""
    with TestClient(app) as test_client:
        yield test_client
