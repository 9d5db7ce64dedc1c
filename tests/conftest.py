from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mattodo_api.db import DatabaseInitializer, SQLiteTaskStore, SqliteConnectionFactory
from mattodo_api.main import app
from mattodo_api.settings import Settings, get_settings


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a fresh SQLite file per test, auth disabled.
    """
    return Settings(
        connection_string=f"Data Source={tmp_path / 'mattodo.db'}",
        cors_allow_origins=["*"],
        enable_api_key_auth=False,
        api_key=None,
        log_level="DEBUG",
    )


@pytest.fixture()
def connection_factory(settings: Settings) -> SqliteConnectionFactory:
    factory = SqliteConnectionFactory.from_connection_string(settings.connection_string)
    DatabaseInitializer(factory).initialize()
    return factory


@pytest.fixture()
def store(connection_factory: SqliteConnectionFactory) -> SQLiteTaskStore:
    return SQLiteTaskStore(connection_factory)


@pytest.fixture()
def client(settings: Settings, connection_factory: SqliteConnectionFactory):
    """
    TestClient whose routes read the per-test settings (and therefore the
    per-test database). The lifespan hook is not entered.
    """
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
