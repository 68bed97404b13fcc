"""Shared test fixtures for driftsql."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from driftsql.cli.main import app
from driftsql.core.config import LibSQLConfig
from driftsql.drivers.sqlite import SqliteDriver

USERS_DDL = "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)"


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's environment out of config resolution."""
    for var in ("DATABASE_URL", "DRIFTSQL_PROFILE", "DRIFTSQL_SENTRY_DSN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
async def sqlite_driver():
    """In-memory SQLite driver, closed after the test."""
    driver = await SqliteDriver.connect(LibSQLConfig(url=":memory:"))
    yield driver
    await driver.close()


@pytest.fixture
async def users_driver(sqlite_driver):
    """In-memory SQLite driver with an empty ``users`` table."""
    await sqlite_driver.query(USERS_DDL)
    return sqlite_driver


@pytest.fixture
def sqlite_file(temp_dir):
    """Path to a SQLite file holding a small users/posts schema."""
    import sqlite3

    path = temp_dir / "app.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        f"""
        {USERS_DDL};
        CREATE TABLE posts (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL,
            title VARCHAR(200) NOT NULL,
            body TEXT,
            published BOOLEAN,
            created_at DATETIME
        );
        INSERT INTO users (name, email) VALUES ('Ada', 'ada@example.com');
        INSERT INTO users (name, email) VALUES ('Grace', NULL);
        """
    )
    conn.commit()
    conn.close()
    return path
