"""Tests for the query command against a SQLite file."""

import json

import pytest

from driftsql.cli.main import app
from driftsql.core.exceptions import QueryError


@pytest.fixture
def url_args(sqlite_file):
    return ["--url", str(sqlite_file)]


@pytest.mark.unit
def test_query_help(runner):
    result = runner.invoke(app, ["query", "--help"])
    assert result.exit_code == 0
    assert "--execute" in result.stdout
    assert "--param" in result.stdout


@pytest.mark.unit
def test_inline_json(runner, url_args):
    result = runner.invoke(
        app,
        [*url_args, "--format", "json", "query", "-e", "SELECT name FROM users ORDER BY id"],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [{"name": "Ada"}, {"name": "Grace"}]


@pytest.mark.unit
def test_params(runner, url_args):
    result = runner.invoke(
        app,
        [
            *url_args,
            "-f",
            "csv",
            "query",
            "-e",
            "SELECT name FROM users WHERE id = ? AND name = ?",
            "-p",
            "2",
            "-p",
            "Grace",
        ],
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["name", "Grace"]


@pytest.mark.unit
def test_query_from_file(runner, url_args, temp_dir):
    sql_file = temp_dir / "count.sql"
    sql_file.write_text("SELECT count(*) AS n FROM users")
    result = runner.invoke(app, [*url_args, "-f", "csv", "query", str(sql_file)])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["n", "2"]


@pytest.mark.unit
def test_query_from_stdin(runner, url_args):
    result = runner.invoke(
        app, [*url_args, "-f", "csv", "query"], input="SELECT 7 AS seven"
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["seven", "7"]


@pytest.mark.unit
def test_write_statement_table_output(runner, url_args):
    result = runner.invoke(
        app, [*url_args, "-f", "table", "query", "-e", "DELETE FROM users"]
    )
    assert result.exit_code == 0, result.output
    assert "DELETE 2" in result.stdout


@pytest.mark.unit
def test_missing_file_is_input_error(runner, url_args):
    result = runner.invoke(app, [*url_args, "query", "/nonexistent/q.sql"])
    assert result.exit_code == 3
    assert "Query file not found" in result.output


@pytest.mark.unit
def test_bad_sql_raises_query_error(runner, url_args):
    result = runner.invoke(app, [*url_args, "query", "-e", "SELECT * FROM nope"])
    assert isinstance(result.exception, QueryError)


@pytest.mark.unit
def test_database_url_env(runner, sqlite_file, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", str(sqlite_file))
    result = runner.invoke(app, ["-f", "csv", "query", "-e", "SELECT count(*) AS n FROM users"])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["n", "2"]
