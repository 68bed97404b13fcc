"""Remote libSQL / Turso driver on libsql_client.

Local SQLite targets never reach this module; ``create_driver`` hands them
to SqliteDriver.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

import libsql_client

from driftsql.core.dialect import SQLITE
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from driftsql.core.config import LibSQLConfig
    from driftsql.drivers.base import T

_SERVERLESS_SCHEMES = {"libsql": "https", "wss": "https", "ws": "http"}


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def serverless_url(url: str) -> str:
    """Rewrite a websocket/libsql URL to the HTTP transport."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{_SERVERLESS_SCHEMES.get(scheme.lower(), scheme)}://{rest}"


def _values(row: Any) -> tuple[Any, ...]:
    if hasattr(row, "astuple"):
        return row.astuple()
    return tuple(row)


def convert_result_set(result_set: Any) -> QueryResult:
    columns = list(result_set.columns)
    rows = [dict(zip(columns, _values(row), strict=False)) for row in result_set.rows]
    return QueryResult(
        rows=rows,
        row_count=result_set.rows_affected or len(rows),
        fields=[QueryField(name=col) for col in columns],
        last_insert_id=result_set.last_insert_rowid,
    )


class LibSQLDriver(CrudMixin, Driver):
    """libSQL server client.

    ``use_alternate_serverless_client`` switches the connection to the
    stateless HTTP transport.
    """

    driver_type = "libsql"
    dialect = SQLITE

    def __init__(self, executor: Any, *, owns_client: bool = True) -> None:
        # executor is a libsql_client Client, or a Transaction inside transaction()
        self._executor = executor
        self._owns_client = owns_client

    @classmethod
    async def connect(cls, config: LibSQLConfig) -> LibSQLDriver:
        url = config.url
        if config.use_alternate_serverless_client:
            url = serverless_url(url)
        try:
            client = libsql_client.create_client(url, auth_token=config.auth_token)
        except Exception as e:
            raise ConnectionError(cls.driver_type, e) from e
        return cls(client)

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                result_set = await self._executor.execute(sql, params or [])
            except Exception as e:
                raise QueryError(self.driver_type, sql, e) from e
            result = convert_result_set(result_set)
            span.set_data("row_count", result.row_count)
            return result

    async def transaction(self, callback: Callable[[Driver], Awaitable[T]]) -> T:
        if not self._owns_client:
            msg = "Nested transactions are not supported by the libSQL client"
            raise QueryError(self.driver_type, "BEGIN", message=msg)
        try:
            tx = self._executor.transaction()
        except Exception as e:
            raise QueryError(self.driver_type, "BEGIN", e) from e
        try:
            result = await callback(LibSQLDriver(tx, owns_client=False))
            try:
                await tx.commit()
            except Exception as e:
                raise QueryError(self.driver_type, "COMMIT", e) from e
        except BaseException:
            try:
                await tx.rollback()
            except Exception as e:
                get_logger(self.driver_type).error("rollback failed", error=str(e))
            raise
        finally:
            await _maybe_await(tx.close())
        return result

    async def close(self) -> None:
        if not self._owns_client:
            return
        try:
            await _maybe_await(self._executor.close())
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))
