"""Result and metadata models for driftsql.

Pydantic models shared by every driver, the client and the schema inspector.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class QueryField(BaseModel):
    """Column metadata for one result column.

    data_type_id is backend specific and has no meaning across drivers.
    """

    name: str
    data_type_id: int = 0


class QueryResult(BaseModel):
    """Normalized result of one statement.

    row_count is the number of rows returned for reads and the number of
    rows affected for writes, so rows may be empty while row_count > 0.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rows: list[dict[str, Any]] = []
    row_count: int = 0
    command: str | None = None
    fields: list[QueryField] | None = None
    last_insert_id: int | None = None

    def column_names(self) -> list[str]:
        if self.fields:
            return [f.name for f in self.fields]
        if self.rows:
            return list(self.rows[0])
        return []

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


class HttpStatus(BaseModel):
    """Liveness probe answer from a SQL-over-HTTP endpoint."""

    ok: bool
    ping: float


class ColumnSchema(BaseModel):
    """One column as reported by the backend's metadata tables."""

    column_name: str
    data_type: str
    is_nullable: str = "YES"
    column_default: Any = None

    @property
    def nullable(self) -> bool:
        return str(self.is_nullable).upper() == "YES"


class TableSchema(BaseModel):
    name: str
    columns: list[ColumnSchema]


class SchemaDocument(BaseModel):
    """Tables (in name order) that the inspector could describe."""

    driver_type: str
    tables: list[TableSchema] = []
