"""PostgreSQL drivers on psycopg v3.

Wraps a psycopg AsyncConnection in autocommit mode. Queries go through
AsyncRawCursor so statements use PostgreSQL's native ``$1, $2`` placeholders,
and rows come back as dicts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import psycopg
from psycopg.rows import dict_row

from driftsql.core.dialect import POSTGRES
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from driftsql.core.config import NeonConfig, PostgresConfig
    from driftsql.drivers.base import T


class PostgresDriver(CrudMixin, Driver):
    """PostgreSQL over one psycopg AsyncConnection.

    ``transaction`` uses psycopg transaction blocks; calling it again on the
    transaction-scoped driver opens a SAVEPOINT. Prepared statements use
    psycopg's server-side preparation.
    """

    driver_type = "postgres"
    dialect = POSTGRES

    def __init__(
        self,
        connection: psycopg.AsyncConnection[Any],
        *,
        owns_connection: bool = True,
    ) -> None:
        self._connection = connection
        self._owns_connection = owns_connection

    @classmethod
    async def connect(cls, config: PostgresConfig | NeonConfig) -> PostgresDriver:
        kwargs: dict[str, Any] = {}
        if config.statement_timeout_ms is not None:
            kwargs["options"] = f"-c statement_timeout={int(config.statement_timeout_ms)}"
        kwargs.update(cls._connect_options())
        try:
            connection = await psycopg.AsyncConnection.connect(
                config.connection_string or "",
                autocommit=True,
                row_factory=dict_row,
                cursor_factory=psycopg.AsyncRawCursor,
                **kwargs,
            )
        except psycopg.Error as e:
            raise ConnectionError(cls.driver_type, e) from e
        return cls(connection)

    @classmethod
    def _connect_options(cls) -> dict[str, Any]:
        return {}

    def _scoped(self) -> PostgresDriver:
        return type(self)(self._connection, owns_connection=False)

    async def _execute(
        self, sql: str, params: list[Any] | None, *, prepare: bool | None = None
    ) -> QueryResult:
        async with self._connection.cursor() as cur:
            await cur.execute(sql, params or None, prepare=prepare)

            rows: list[dict[str, Any]] = []
            fields: list[QueryField] = []
            if cur.description:
                fields = [
                    QueryField(name=desc.name, data_type_id=desc.type_code)
                    for desc in cur.description
                ]
                rows = await cur.fetchall()
                row_count = len(rows)
            else:
                row_count = max(cur.rowcount, 0)

            status = cur.statusmessage or ""
            return QueryResult(
                rows=rows,
                row_count=row_count,
                command=status.split(" ", 1)[0] or None,
                fields=fields,
            )

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                result = await self._execute(sql, params)
            except psycopg.Error as e:
                raise QueryError(self.driver_type, sql, e) from e
            span.set_data("row_count", result.row_count)
            return result

    async def transaction(self, callback: Callable[[Driver], Awaitable[T]]) -> T:
        try:
            async with self._connection.transaction():
                return await callback(self._scoped())
        except psycopg.Error as e:
            # Failures from BEGIN/COMMIT themselves; callback errors are
            # already QueryErrors or the caller's own exceptions.
            raise QueryError(self.driver_type, "COMMIT", e) from e

    async def prepare(self, sql: str) -> PostgresPreparedStatement:
        return PostgresPreparedStatement(self, sql)

    async def close(self) -> None:
        if not self._owns_connection:
            return
        try:
            await self._connection.close()
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))


class PostgresPreparedStatement:
    """Statement prepared server-side on first execute and reused after."""

    def __init__(self, driver: PostgresDriver, sql: str) -> None:
        self._driver = driver
        self.sql = sql
        self._finalized = False

    async def execute(self, params: list[Any] | None = None) -> QueryResult:
        driver = self._driver
        if self._finalized:
            raise QueryError(
                driver.driver_type,
                self.sql,
                message=f"Prepared statement already finalized: {self.sql}",
            )
        with query_span(driver.driver_type, self.sql):
            try:
                return await driver._execute(self.sql, params, prepare=True)
            except psycopg.Error as e:
                raise QueryError(driver.driver_type, self.sql, e) from e

    async def finalize(self) -> None:
        # psycopg owns the server-side handle and evicts it from its cache.
        self._finalized = True


class NeonDriver(PostgresDriver):
    """Neon serverless PostgreSQL; always connects over TLS."""

    driver_type = "neon"

    @classmethod
    def _connect_options(cls) -> dict[str, Any]:
        return {"sslmode": "require"}
