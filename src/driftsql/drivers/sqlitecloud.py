"""SQLite Cloud driver on the vendor's sqlitecloud client.

The client is a blocking DB-API connection over one socket, so each call
runs in a worker thread and calls on one driver are serialised.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import sqlitecloud

from driftsql.core.dialect import SQLITE
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver
from driftsql.drivers.sqlite import (
    SqlitePreparedStatement,
    is_unbound_parameter_error,
)

if TYPE_CHECKING:
    from driftsql.core.config import SqliteCloudConfig


class SqliteCloudDriver(CrudMixin, Driver):
    driver_type = "sqlitecloud"
    dialect = SQLITE

    def __init__(self, connection: Any, *, lock: asyncio.Lock | None = None) -> None:
        self._connection = connection
        self._lock = lock or asyncio.Lock()

    @classmethod
    async def connect(cls, config: SqliteCloudConfig) -> SqliteCloudDriver:
        try:
            connection = await asyncio.to_thread(
                sqlitecloud.connect, config.connection_string
            )
        except Exception as e:
            raise ConnectionError(cls.driver_type, e) from e
        return cls(connection)

    def _execute_blocking(self, sql: str, params: list[Any] | None) -> QueryResult:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, tuple(params or ()))
            command = sql.split(None, 1)[0].upper() if sql.strip() else None
            if cursor.description:
                names = [d[0] for d in cursor.description]
                rows = [dict(zip(names, row, strict=False)) for row in cursor.fetchall()]
                fields = [QueryField(name=name) for name in names]
                row_count = len(rows)
            else:
                rows = []
                fields = []
                row_count = max(cursor.rowcount or 0, 0)
            return QueryResult(
                rows=rows,
                row_count=row_count,
                command=command,
                fields=fields,
                last_insert_id=(
                    cursor.lastrowid or None
                    if command in ("INSERT", "REPLACE")
                    else None
                ),
            )
        finally:
            cursor.close()

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                async with self._lock:
                    result = await asyncio.to_thread(self._execute_blocking, sql, params)
            except Exception as e:
                raise QueryError(self.driver_type, sql, e) from e
            span.set_data("row_count", result.row_count)
            return result

    async def prepare(self, sql: str) -> SqlitePreparedStatement:
        """Compile ``sql`` on the server through ``EXPLAIN``.

        Syntax errors and unknown tables raise QueryError here rather than on
        the first ``execute``.
        """
        try:
            await self.query(f"EXPLAIN {sql}")
        except QueryError as e:
            if not is_unbound_parameter_error(e.original_error):
                raise QueryError(self.driver_type, sql, e.original_error) from e
        return SqlitePreparedStatement(self, sql)

    async def close(self) -> None:
        try:
            async with self._lock:
                await asyncio.to_thread(self._connection.close)
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))
