"""Local SQLite driver (files and :memory:) on aiosqlite."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

import aiosqlite

from driftsql.core.dialect import SQLITE
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver, StatementTransactionMixin

if TYPE_CHECKING:
    from driftsql.core.config import LibSQLConfig


def _database_target(url: str, readonly: bool) -> tuple[str, bool]:
    """Map a driver URL to (sqlite3 database argument, uri flag)."""
    if url == ":memory:":
        return url, False
    if url.startswith("file:"):
        target = url
    else:
        target = f"file:{url}"
    if readonly:
        target += "&mode=ro" if "?" in target else "?mode=ro"
    return target, True


def is_unbound_parameter_error(error: BaseException | None) -> bool:
    """True when compiling succeeded and only the parameter count was off."""
    return error is not None and "binding" in str(error)


class SqliteDriver(StatementTransactionMixin, CrudMixin, Driver):
    """SQLite through aiosqlite.

    The connection runs in autocommit mode; ``transaction`` issues explicit
    BEGIN/COMMIT and nests with SAVEPOINTs.
    """

    driver_type = "sqlite"
    dialect = SQLITE

    def __init__(
        self,
        connection: aiosqlite.Connection,
        *,
        owns_connection: bool = True,
        depth: int = 0,
        driver_type: str | None = None,
    ) -> None:
        self._connection = connection
        self._owns_connection = owns_connection
        self._depth = depth
        if driver_type is not None:
            self.driver_type = driver_type

    @classmethod
    async def connect(cls, config: LibSQLConfig) -> SqliteDriver:
        target, uri = _database_target(config.url, config.readonly)
        try:
            connection = await aiosqlite.connect(target, uri=uri, isolation_level=None)
        except sqlite3.Error as e:
            raise ConnectionError(cls.driver_type, e) from e
        connection.row_factory = aiosqlite.Row
        return cls(connection)

    def _scoped(self, depth: int) -> SqliteDriver:
        return SqliteDriver(
            self._connection,
            owns_connection=False,
            depth=depth,
            driver_type=self.driver_type,
        )

    async def _execute(self, sql: str, params: list[Any] | None) -> QueryResult:
        command = sql.split(None, 1)[0].upper() if sql.strip() else None
        async with self._connection.execute(sql, params or []) as cur:
            if cur.description:
                fetched = await cur.fetchall()
                rows = [dict(row) for row in fetched]
                fields = [QueryField(name=d[0]) for d in cur.description]
                row_count = len(rows)
            else:
                rows = []
                fields = []
                row_count = max(cur.rowcount, 0)
            return QueryResult(
                rows=rows,
                row_count=row_count,
                command=command,
                fields=fields,
                last_insert_id=(
                    cur.lastrowid or None if command in ("INSERT", "REPLACE") else None
                ),
            )

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                result = await self._execute(sql, params)
            except (sqlite3.Error, ValueError) as e:
                raise QueryError(self.driver_type, sql, e) from e
            span.set_data("row_count", result.row_count)
            return result

    async def prepare(self, sql: str) -> SqlitePreparedStatement:
        """Compile ``sql`` once and return a reusable statement.

        The statement is compiled through ``EXPLAIN`` so syntax errors and
        unknown tables fail here. sqlite3 keeps compiled statements in the
        connection's statement cache, so repeated execution reuses them.
        """
        try:
            async with self._connection.execute(f"EXPLAIN {sql}"):
                pass
        except sqlite3.ProgrammingError as e:
            # placeholders are left unbound; the statement itself compiled
            if not is_unbound_parameter_error(e):
                raise QueryError(self.driver_type, sql, e) from e
        except (sqlite3.Error, ValueError) as e:
            raise QueryError(self.driver_type, sql, e) from e
        return SqlitePreparedStatement(self, sql)

    async def exec_script(self, script: str) -> None:
        """Run several semicolon-separated statements at once."""
        with query_span(self.driver_type, script):
            try:
                await self._connection.executescript(script)
            except sqlite3.Error as e:
                raise QueryError(self.driver_type, script, e) from e

    async def pragma(self, pragma: str) -> list[dict[str, Any]]:
        result = await self.query(f"PRAGMA {pragma}")
        return result.rows

    async def backup(self, filename: str) -> None:
        """Copy the whole database into ``filename``."""
        try:
            async with aiosqlite.connect(filename) as target:
                await self._connection.backup(target)
        except sqlite3.Error as e:
            raise QueryError(self.driver_type, f"backup to {filename}", e) from e

    async def close(self) -> None:
        if not self._owns_connection:
            return
        try:
            await self._connection.close()
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))


class SqlitePreparedStatement:
    """Statement compiled by ``prepare``; execution goes through the driver."""

    def __init__(self, driver: Driver, sql: str) -> None:
        self._driver = driver
        self.sql = sql
        self._finalized = False

    async def execute(self, params: list[Any] | None = None) -> QueryResult:
        if self._finalized:
            raise QueryError(
                self._driver.driver_type,
                self.sql,
                message=f"Prepared statement already finalized: {self.sql}",
            )
        return await self._driver.query(self.sql, params)

    async def finalize(self) -> None:
        # sqlite3 has no explicit finalize step; the cache owns the handle.
        self._finalized = True
