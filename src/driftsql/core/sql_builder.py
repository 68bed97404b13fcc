"""Shared SQL building for the CRUD helpers.

Every driver supplies a Dialect and a ``query`` coroutine; the statements
themselves are built here once. WHERE and SET clauses are equality-only and
joined with AND: no OR, no ranges, no NULL-aware comparison. Values are
always bound as parameters. Table and column names are validated and quoted
by the dialect.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from driftsql.core.dialect import ReturningStrategy
from driftsql.core.exceptions import InputError, NoDataReturnedError
from driftsql.core.models import QueryResult

if TYPE_CHECKING:
    from collections.abc import Mapping

    from driftsql.core.dialect import Dialect

Statement = tuple[str, list[Any]]


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class SqlBuilder:
    """Builds parametrized statements for one dialect."""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def _conditions(
        self, entries: Mapping[str, Any], start: int, joiner: str
    ) -> tuple[str, list[Any]]:
        clauses = []
        params: list[Any] = []
        for offset, (column, value) in enumerate(entries.items()):
            clauses.append(
                f"{self.dialect.quote(column)} = {self.dialect.param(start + offset)}"
            )
            params.append(value)
        return joiner.join(clauses), params

    def select(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Statement:
        sql = f"SELECT * FROM {self.dialect.quote(table)}"
        params: list[Any] = []
        if where:
            clause, params = self._conditions(where, 1, " AND ")
            sql += f" WHERE {clause}"
        if _is_positive_int(limit):
            params.append(limit)
            sql += f" LIMIT {self.dialect.param(len(params))}"
        if _is_positive_int(offset):
            if not _is_positive_int(limit) and self.dialect.unbounded_limit:
                sql += f" LIMIT {self.dialect.unbounded_limit}"
            params.append(offset)
            sql += f" OFFSET {self.dialect.param(len(params))}"
        return sql, params

    def insert(self, table: str, data: Mapping[str, Any]) -> Statement:
        if not data:
            msg = "No data provided for insert"
            raise InputError(msg)
        columns = ", ".join(self.dialect.quote(c) for c in data)
        placeholders = ", ".join(self.dialect.param(i) for i in range(1, len(data) + 1))
        sql = f"INSERT INTO {self.dialect.quote(table)} ({columns}) VALUES ({placeholders})"
        if self.dialect.returning is ReturningStrategy.RETURNING:
            sql += " RETURNING *"
        return sql, list(data.values())

    def update(
        self, table: str, data: Mapping[str, Any], where: Mapping[str, Any]
    ) -> Statement:
        if not data:
            msg = "No data provided for update"
            raise InputError(msg)
        if not where:
            msg = "No conditions provided for update"
            raise InputError(msg)
        set_clause, set_params = self._conditions(data, 1, ", ")
        where_clause, where_params = self._conditions(where, len(data) + 1, " AND ")
        sql = f"UPDATE {self.dialect.quote(table)} SET {set_clause} WHERE {where_clause}"
        if self.dialect.returning is ReturningStrategy.RETURNING:
            sql += " RETURNING *"
        return sql, set_params + where_params

    def delete(self, table: str, where: Mapping[str, Any]) -> Statement:
        if not where:
            msg = "No conditions provided for delete"
            raise InputError(msg)
        where_clause, params = self._conditions(where, 1, " AND ")
        return f"DELETE FROM {self.dialect.quote(table)} WHERE {where_clause}", params


class CrudMixin:
    """find_first / find_many / insert / update / delete on top of ``query``.

    The host class provides ``dialect``, ``driver_type`` and ``query``.
    Dialects without RETURNING re-select the inserted row: SQLite by rowid,
    MySQL through ``_insert_key_column`` (the table's auto-increment column).
    """

    dialect: Dialect
    driver_type: str

    if TYPE_CHECKING:

        async def query(
            self, sql: str, params: list[Any] | None = None
        ) -> QueryResult: ...

    @property
    def sql_builder(self) -> SqlBuilder:
        return SqlBuilder(self.dialect)

    async def find_first(
        self, table: str, where: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """First row matching ``where``, or None when nothing matches."""
        sql, params = self.sql_builder.select(table, where, limit=1)
        result = await self.query(sql, params)
        return result.first()

    async def find_many(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryResult:
        sql, params = self.sql_builder.select(table, where, limit=limit, offset=offset)
        return await self.query(sql, params)

    async def insert(self, table: str, data: Mapping[str, Any]) -> QueryResult:
        """Insert one row and return it."""
        sql, params = self.sql_builder.insert(table, data)
        result = await self.query(sql, params)

        if self.dialect.returning is ReturningStrategy.RETURNING:
            rows = result.rows
        else:
            rows = await self._select_inserted(table, sql, result)

        if not rows:
            raise NoDataReturnedError(
                self.driver_type, sql, message="Insert failed: No data returned"
            )
        return QueryResult(
            rows=rows[:1],
            row_count=1,
            command="INSERT",
            fields=result.fields,
            last_insert_id=result.last_insert_id,
        )

    async def update(
        self, table: str, data: Mapping[str, Any], where: Mapping[str, Any]
    ) -> QueryResult:
        """Update matching rows. Rows come back only where the dialect has RETURNING."""
        sql, params = self.sql_builder.update(table, data, where)
        return await self.query(sql, params)

    async def delete(self, table: str, where: Mapping[str, Any]) -> int:
        """Delete matching rows and return how many were affected."""
        sql, params = self.sql_builder.delete(table, where)
        result = await self.query(sql, params)
        return result.row_count

    async def _select_inserted(
        self, table: str, insert_sql: str, result: QueryResult
    ) -> list[dict[str, Any]]:
        if not result.last_insert_id:
            raise NoDataReturnedError(
                self.driver_type,
                insert_sql,
                message="Insert failed: No data returned and no insert id available",
            )
        quoted = self.dialect.quote(table)
        if self.dialect.returning is ReturningStrategy.ROWID:
            key = "rowid"
        else:
            column = await self._insert_key_column(table)
            if column is None:
                raise NoDataReturnedError(
                    self.driver_type,
                    insert_sql,
                    message=f"Insert failed: table {table!r} has no auto-increment column",
                )
            key = self.dialect.quote(column)
        sql = f"SELECT * FROM {quoted} WHERE {key} = {self.dialect.param(1)}"
        selected = await self.query(sql, [result.last_insert_id])
        return selected.rows

    async def _insert_key_column(self, table: str) -> str | None:
        return None
