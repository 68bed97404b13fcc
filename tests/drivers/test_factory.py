"""Tests for the config-driven driver factory."""

import pytest

from driftsql.core.config import HttpConfig, LibSQLConfig
from driftsql.core.exceptions import ConnectionError
from driftsql.drivers import HttpDriver, LibSQLDriver, SqliteDriver, create_driver


@pytest.mark.unit
async def test_local_libsql_gets_sqlite_driver():
    driver = await create_driver(LibSQLConfig(url=":memory:"))
    assert isinstance(driver, SqliteDriver)
    assert driver.driver_type == "sqlite"
    await driver.close()


@pytest.mark.unit
async def test_remote_libsql_gets_libsql_driver(monkeypatch):
    created = {}

    class FakeClient:
        async def close(self):
            pass

    def fake_create_client(url, auth_token=None):
        created.update(url=url, auth_token=auth_token)
        return FakeClient()

    monkeypatch.setattr("libsql_client.create_client", fake_create_client)
    config = LibSQLConfig(
        url="libsql://db.turso.io", auth_token="tok", use_alternate_serverless_client=True
    )
    driver = await create_driver(config)
    assert isinstance(driver, LibSQLDriver)
    assert created == {"url": "https://db.turso.io", "auth_token": "tok"}
    await driver.close()


@pytest.mark.unit
async def test_http_config():
    driver = await create_driver(HttpConfig(url="https://sql.example.com"))
    assert isinstance(driver, HttpDriver)
    assert driver.driver_type == "http"
    await driver.close()


@pytest.mark.unit
async def test_unopenable_sqlite_file_raises_connection_error(temp_dir):
    config = LibSQLConfig(url=str(temp_dir / "missing-dir" / "app.db"))
    with pytest.raises(ConnectionError, match="Failed to connect to sqlite"):
        await create_driver(config)


@pytest.mark.unit
async def test_unknown_config_type():
    with pytest.raises(TypeError, match="Unsupported driver config"):
        await create_driver(object())
