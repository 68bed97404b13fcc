"""MySQL / MariaDB driver on aiomysql.

One aiomysql connection per driver in autocommit mode. MySQL has no
RETURNING clause, so ``insert`` re-selects the row through the table's
auto-increment column.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import aiomysql
import pymysql

from driftsql.core.config import parse_mysql_url
from driftsql.core.dialect import MYSQL
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver, StatementTransactionMixin

if TYPE_CHECKING:
    from driftsql.core.config import MySQLConfig

_AUTO_INCREMENT_SQL = """
SELECT COLUMN_NAME AS column_name
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = DATABASE()
AND TABLE_NAME = %s
AND EXTRA LIKE '%%auto_increment%%'
"""


class MySQLDriver(StatementTransactionMixin, CrudMixin, Driver):
    """MySQL through a single aiomysql connection.

    Statements on one connection cannot overlap, so calls are serialised
    with a lock shared by the driver and its transaction-scoped copies.
    """

    driver_type = "mysql"
    dialect = MYSQL
    _begin_sql = "START TRANSACTION"

    def __init__(
        self,
        connection: aiomysql.Connection,
        *,
        lock: asyncio.Lock | None = None,
        owns_connection: bool = True,
        depth: int = 0,
    ) -> None:
        self._connection = connection
        self._lock = lock or asyncio.Lock()
        self._owns_connection = owns_connection
        self._depth = depth

    @classmethod
    async def connect(cls, config: MySQLConfig) -> MySQLDriver:
        log = get_logger(cls.driver_type)
        log.warning(
            "MySQL driver is experimental; CRUD helpers re-select inserted rows "
            "through the auto-increment column"
        )
        kwargs = parse_mysql_url(config.connection_string)
        try:
            connection = await aiomysql.connect(autocommit=True, **kwargs)
        except (pymysql.err.MySQLError, OSError) as e:
            raise ConnectionError(cls.driver_type, e) from e
        return cls(connection)

    def _scoped(self, depth: int) -> MySQLDriver:
        return MySQLDriver(
            self._connection,
            lock=self._lock,
            owns_connection=False,
            depth=depth,
        )

    async def _execute(self, sql: str, params: list[Any] | None) -> QueryResult:
        async with self._lock, self._connection.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(sql, params or None)
            rows: list[dict[str, Any]] = []
            fields: list[QueryField] = []
            if cur.description:
                fields = [
                    QueryField(name=desc[0], data_type_id=desc[1])
                    for desc in cur.description
                ]
                rows = list(await cur.fetchall())
                row_count = len(rows)
            else:
                row_count = max(cur.rowcount, 0)
            return QueryResult(
                rows=rows,
                row_count=row_count,
                command=sql.split(None, 1)[0].upper() if sql.strip() else None,
                fields=fields,
                last_insert_id=cur.lastrowid or None,
            )

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                result = await self._execute(sql, params)
            except (pymysql.err.MySQLError, OSError) as e:
                raise QueryError(self.driver_type, sql, e) from e
            span.set_data("row_count", result.row_count)
            return result

    async def _insert_key_column(self, table: str) -> str | None:
        name = table.rsplit(".", 1)[-1]
        result = await self.query(_AUTO_INCREMENT_SQL, [name])
        row = result.first()
        return row["column_name"] if row else None

    async def current_database(self) -> str | None:
        result = await self.query("SELECT DATABASE() AS db_name")
        row = result.first()
        return row["db_name"] if row else None

    async def close(self) -> None:
        if not self._owns_connection:
            return
        try:
            await self._connection.ensure_closed()
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))
            self._connection.close()
