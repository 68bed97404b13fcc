"""Schema inspection ("pull").

Reads table and column metadata from a live backend and renders one row
type per table plus an aggregate ``Database`` type, in table-name order so
regenerated files diff cleanly.

Per-table failures are logged and the table is skipped. Failing to list the
tables or to write the output file aborts the run.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from driftsql.core.exceptions import (
    DriftSQLError,
    InputError,
    OutputError,
    TimeoutError,
)
from driftsql.core.logging import get_logger
from driftsql.core.models import ColumnSchema, SchemaDocument, TableSchema

if TYPE_CHECKING:
    from driftsql.core.client import DriftClient
    from driftsql.core.dialect import Dialect
    from driftsql.core.models import QueryResult
    from driftsql.drivers.base import Driver
    from driftsql.emitters.base import Emitter

TABLES_TIMEOUT = 30.0
COLUMNS_TIMEOUT = 15.0
MAX_ATTEMPTS = 3
BASE_DELAY = 1.0


class TypeCategory(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"
    JSON = "json"
    ARRAY = "array"
    BINARY = "binary"
    UNKNOWN = "unknown"


# Lower-cased backend type name -> category. Anything missing is UNKNOWN.
_TYPE_CATEGORIES: dict[str, TypeCategory] = {
    **dict.fromkeys(
        (
            "uuid",
            "character varying",
            "varchar",
            "text",
            "char",
            "character",
            "bpchar",
            "citext",
            "name",
            "longtext",
            "mediumtext",
            "tinytext",
            "nvarchar",
            "nchar",
            "clob",
            "enum",
            "set",
        ),
        TypeCategory.STRING,
    ),
    **dict.fromkeys(
        (
            "integer",
            "int",
            "int2",
            "int4",
            "int8",
            "smallint",
            "bigint",
            "tinyint",
            "mediumint",
            "serial",
            "bigserial",
            "smallserial",
            "numeric",
            "decimal",
            "real",
            "float",
            "float4",
            "float8",
            "double",
            "double precision",
            "money",
        ),
        TypeCategory.NUMBER,
    ),
    **dict.fromkeys(("boolean", "bool", "bit"), TypeCategory.BOOLEAN),
    **dict.fromkeys(
        (
            "timestamp",
            "timestamp with time zone",
            "timestamp without time zone",
            "timestamptz",
            "date",
            "time",
            "time with time zone",
            "time without time zone",
            "timetz",
            "interval",
            "datetime",
            "year",
        ),
        TypeCategory.TEMPORAL,
    ),
    **dict.fromkeys(("json", "jsonb"), TypeCategory.JSON),
    "array": TypeCategory.ARRAY,
    **dict.fromkeys(
        (
            "bytea",
            "binary",
            "varbinary",
            "blob",
            "longblob",
            "mediumblob",
            "tinyblob",
        ),
        TypeCategory.BINARY,
    ),
}

_TYPE_MODIFIER_RE = re.compile(r"\s*\(.*?\)")


@dataclass(frozen=True)
class MappedType:
    category: TypeCategory
    nullable: bool = False


def _normalize_type_name(data_type: str) -> str:
    name = _TYPE_MODIFIER_RE.sub("", data_type or "").strip().lower()
    if name.endswith(" unsigned"):
        name = name.removesuffix(" unsigned").strip()
    return name


def map_database_type(
    data_type: str, nullable: bool = False, driver_type: str = "postgres"
) -> MappedType:
    """Map a backend type name onto a TypeCategory. Never raises."""
    category = _TYPE_CATEGORIES.get(_normalize_type_name(data_type))
    if category is None:
        get_logger("inspector").warning(
            "unknown column type, using untyped fallback",
            driver=driver_type,
            data_type=data_type,
        )
        category = TypeCategory.UNKNOWN
    return MappedType(category=category, nullable=nullable)


def dedupe_columns(columns: list[ColumnSchema]) -> list[ColumnSchema]:
    """Keep the first occurrence of each column name, preserving order."""
    seen: dict[str, ColumnSchema] = {}
    for col in columns:
        seen.setdefault(col.column_name, col)
    return list(seen.values())


class SchemaInspector:
    """Introspects the backend behind a driver or a DriftClient."""

    def __init__(
        self,
        target: Driver | DriftClient,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY,
        tables_timeout: float = TABLES_TIMEOUT,
        columns_timeout: float = COLUMNS_TIMEOUT,
    ) -> None:
        self.target = target
        get_driver = getattr(target, "get_driver", None)
        self.driver: Driver = get_driver() if get_driver is not None else target
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.tables_timeout = tables_timeout
        self.columns_timeout = columns_timeout

    @property
    def dialect(self) -> Dialect:
        return self.driver.dialect

    @property
    def driver_type(self) -> str:
        return self.driver.driver_type

    async def _run(
        self, sql: str, params: list[Any], timeout: float
    ) -> QueryResult:
        """Run one metadata query with retries, all within ``timeout``."""
        log = get_logger("inspector")

        def before_sleep(retry_state: Any) -> None:
            log.warning(
                "metadata query failed, retrying",
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
            )

        try:
            async with asyncio.timeout(timeout):
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.max_attempts),
                    wait=wait_exponential(multiplier=self.base_delay),
                    before_sleep=before_sleep,
                    reraise=True,
                ):
                    with attempt:
                        return await self.target.query(sql, params)
        except asyncio.TimeoutError as e:
            msg = f"Query timeout after {timeout}s"
            raise TimeoutError(self.driver_type, e, message=msg) from e
        msg = "Metadata query was never attempted"
        raise DriftSQLError(msg, self.driver_type)

    async def _schema_filter(self) -> str | None:
        name = self.dialect.name
        if name == "postgres":
            return "public"
        if name == "mysql":
            result = await self._run(
                "SELECT DATABASE() AS db_name", [], self.tables_timeout
            )
            row = result.first()
            database = row.get("db_name") if row else None
            if not database:
                msg = "Could not determine current MySQL database name"
                raise DriftSQLError(msg, self.driver_type)
            get_logger("inspector").info("using MySQL database", database=database)
            return str(database)
        return None

    def _tables_query(self, schema: str | None) -> tuple[str, list[Any]]:
        p = self.dialect.param
        name = self.dialect.name
        if name == "postgres":
            sql = f"""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = {p(1)}
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """
            return sql, [schema]
        if name == "mysql":
            sql = f"""
            SELECT TABLE_NAME AS table_name
            FROM information_schema.tables
            WHERE TABLE_SCHEMA = {p(1)}
            AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """
            return sql, [schema]
        sql = """
        SELECT name AS table_name
        FROM sqlite_master
        WHERE type = 'table'
        AND name NOT LIKE 'sqlite_%'
        ORDER BY name
        """
        return sql, []

    def _columns_query(self, table: str, schema: str | None) -> tuple[str, list[Any]]:
        p = self.dialect.param
        name = self.dialect.name
        if name == "postgres":
            sql = f"""
            SELECT column_name, data_type, is_nullable, column_default
            FROM information_schema.columns
            WHERE table_name = {p(1)}
            AND table_schema = {p(2)}
            ORDER BY ordinal_position
            """
            return sql, [table, schema]
        if name == "mysql":
            sql = f"""
            SELECT
                COLUMN_NAME AS column_name,
                DATA_TYPE AS data_type,
                IS_NULLABLE AS is_nullable,
                COLUMN_DEFAULT AS column_default
            FROM information_schema.columns
            WHERE TABLE_NAME = {p(1)}
            AND TABLE_SCHEMA = {p(2)}
            ORDER BY ORDINAL_POSITION
            """
            return sql, [table, schema]
        sql = f"""
        SELECT
            name AS column_name,
            type AS data_type,
            CASE WHEN "notnull" = 0 THEN 'YES' ELSE 'NO' END AS is_nullable,
            dflt_value AS column_default
        FROM pragma_table_info({p(1)})
        ORDER BY cid
        """
        return sql, [table]

    async def list_tables(self, schema: str | None) -> list[str]:
        sql, params = self._tables_query(schema)
        result = await self._run(sql, params, self.tables_timeout)
        return sorted(str(row["table_name"]) for row in result.rows)

    async def describe_table(self, table: str, schema: str | None) -> list[ColumnSchema]:
        sql, params = self._columns_query(table, schema)
        result = await self._run(sql, params, self.columns_timeout)
        columns = [
            ColumnSchema(
                column_name=str(row["column_name"]),
                data_type=str(row["data_type"] or ""),
                is_nullable=str(row["is_nullable"]),
                column_default=row.get("column_default"),
            )
            for row in result.rows
        ]
        return dedupe_columns(columns)

    async def inspect(self) -> SchemaDocument:
        """Describe every base table; unhealthy tables are skipped."""
        log = get_logger("inspector")
        schema = await self._schema_filter()
        tables = await self.list_tables(schema)
        log.info("tables found", driver=self.driver_type, tables=", ".join(tables))

        described: list[TableSchema] = []
        total = len(tables)
        for index, table in enumerate(tables, start=1):
            log.info("inspecting table", table=table, progress=f"{index}/{total}")
            try:
                columns = await self.describe_table(table, schema)
            except Exception as e:
                log.error("failed to inspect table, skipping", table=table, error=str(e))
                continue
            if not columns:
                log.info("no columns found, skipping", table=table)
                continue
            described.append(TableSchema(name=table, columns=columns))

        return SchemaDocument(driver_type=self.driver_type, tables=described)

    def _emitter(self, lang: str) -> Emitter:
        from driftsql.emitters import get_emitter

        try:
            return get_emitter(lang)
        except KeyError as e:
            raise InputError(str(e.args[0]), self.driver_type) from e

    def render(self, document: SchemaDocument, lang: str = "python") -> str:
        return self._emitter(lang).render(document)

    async def pull(self, output: Path | str | None = None, lang: str = "python") -> Path:
        """Inspect, render and overwrite ``output``; returns the path written."""
        emitter = self._emitter(lang)
        document = await self.inspect()
        text = emitter.render(document)
        path = Path(output) if output is not None else Path(emitter.default_filename)
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write {path}: {e}"
            raise OutputError(msg, self.driver_type, e) from e
        get_logger("inspector").info(
            "types written", path=str(path), tables=len(document.tables)
        )
        return path


async def inspect_db(
    target: Driver | DriftClient,
    output: Path | str | None = None,
    lang: str = "python",
) -> Path:
    """Convenience wrapper: pull ``target``'s schema into ``output``."""
    return await SchemaInspector(target).pull(output, lang=lang)
