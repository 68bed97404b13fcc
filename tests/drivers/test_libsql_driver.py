"""Tests for the remote libSQL driver using a fake libsql_client."""

from types import SimpleNamespace

import pytest

from driftsql.core.exceptions import QueryError
from driftsql.drivers.libsql import LibSQLDriver, convert_result_set, serverless_url


def _result_set(columns, rows, rows_affected=0, last_insert_rowid=None):
    return SimpleNamespace(
        columns=columns,
        rows=rows,
        rows_affected=rows_affected,
        last_insert_rowid=last_insert_rowid,
    )


class FakeExecutor:
    """Stands in for libsql_client's Client and Transaction."""

    def __init__(self, fail_on=None):
        self.statements = []
        self.fail_on = fail_on
        self.committed = False
        self.rolled_back = False
        self.closed = False
        self.commit_error = None
        self.tx = None

    async def execute(self, sql, params):
        self.statements.append((sql, params))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError("SQLITE_ERROR: no such table")
        if sql.startswith("INSERT"):
            return _result_set([], [], rows_affected=1, last_insert_rowid=7)
        if "rowid" in sql:
            return _result_set(["id", "name"], [(7, "Ada")])
        return _result_set(["n"], [(1,)])

    def transaction(self):
        self.tx = FakeExecutor(self.fail_on)
        self.tx.commit_error = self.commit_error
        return self.tx

    async def commit(self):
        if self.commit_error is not None:
            raise self.commit_error
        self.committed = True

    async def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.mark.unit
@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("libsql://db.turso.io", "https://db.turso.io"),
        ("wss://db.turso.io", "https://db.turso.io"),
        ("ws://127.0.0.1:8080", "http://127.0.0.1:8080"),
        ("https://db.turso.io", "https://db.turso.io"),
    ],
)
def test_serverless_url(url, expected):
    assert serverless_url(url) == expected


@pytest.mark.unit
def test_convert_result_set():
    result = convert_result_set(_result_set(["id", "name"], [(1, "Ada"), (2, "Bo")]))
    assert result.rows == [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Bo"}]
    assert result.row_count == 2
    assert result.column_names() == ["id", "name"]


@pytest.mark.unit
def test_convert_write_result_set():
    result = convert_result_set(_result_set([], [], rows_affected=3, last_insert_rowid=9))
    assert result.rows == []
    assert result.row_count == 3
    assert result.last_insert_id == 9


@pytest.mark.unit
class TestLibSQLDriver:
    async def test_query(self):
        executor = FakeExecutor()
        driver = LibSQLDriver(executor)
        result = await driver.query("SELECT 1 AS n")
        assert result.rows == [{"n": 1}]
        assert executor.statements == [("SELECT 1 AS n", [])]

    async def test_errors_wrapped(self):
        driver = LibSQLDriver(FakeExecutor(fail_on="missing"))
        with pytest.raises(QueryError, match="no such table"):
            await driver.query("SELECT * FROM missing")

    async def test_insert_reselects_by_rowid(self):
        executor = FakeExecutor()
        driver = LibSQLDriver(executor)
        result = await driver.insert("users", {"name": "Ada"})
        assert result.rows == [{"id": 7, "name": "Ada"}]
        assert executor.statements[1] == ('SELECT * FROM "users" WHERE rowid = ?', [7])

    async def test_transaction_commits(self):
        executor = FakeExecutor()
        driver = LibSQLDriver(executor)

        async def work(tx):
            await tx.query("UPDATE t SET x = 1")
            return 42

        assert await driver.transaction(work) == 42
        assert executor.tx.committed
        assert executor.tx.closed
        assert executor.tx.statements == [("UPDATE t SET x = 1", [])]

    async def test_transaction_rolls_back(self):
        executor = FakeExecutor(fail_on="boom")
        driver = LibSQLDriver(executor)

        async def work(tx):
            await tx.query("SELECT boom")

        with pytest.raises(QueryError):
            await driver.transaction(work)
        assert executor.tx.rolled_back
        assert not executor.tx.committed

    async def test_commit_failure_rolls_back_and_raises(self):
        executor = FakeExecutor()
        executor.commit_error = RuntimeError("SQLITE_CONSTRAINT: FOREIGN KEY")
        driver = LibSQLDriver(executor)

        async def work(tx):
            await tx.query("INSERT INTO children (parent_id) VALUES (99)")

        with pytest.raises(QueryError, match="FOREIGN KEY") as exc_info:
            await driver.transaction(work)
        assert exc_info.value.sql == "COMMIT"
        assert isinstance(exc_info.value.original_error, RuntimeError)
        assert executor.tx.rolled_back
        assert not executor.tx.committed
        assert executor.tx.closed

    async def test_nested_transaction_rejected(self):
        driver = LibSQLDriver(FakeExecutor())

        async def inner(tx):
            return None

        async def outer(tx):
            await tx.transaction(inner)

        with pytest.raises(QueryError, match="Nested transactions"):
            await driver.transaction(outer)

    async def test_close_only_when_owned(self):
        executor = FakeExecutor()
        await LibSQLDriver(executor, owns_client=False).close()
        assert not executor.closed
        await LibSQLDriver(executor).close()
        assert executor.closed
