"""Tests for result and schema models."""

import pytest

from driftsql.core.models import ColumnSchema, HttpStatus, QueryField, QueryResult


@pytest.mark.unit
class TestQueryResult:
    def test_defaults(self):
        result = QueryResult()
        assert result.rows == []
        assert result.row_count == 0
        assert result.fields is None
        assert result.first() is None

    def test_write_result_has_count_without_rows(self):
        result = QueryResult(rows=[], row_count=3, command="UPDATE")
        assert result.row_count == 3
        assert result.first() is None

    def test_column_names_prefer_fields(self):
        result = QueryResult(
            rows=[{"b": 1, "a": 2}],
            row_count=1,
            fields=[QueryField(name="a"), QueryField(name="b")],
        )
        assert result.column_names() == ["a", "b"]

    def test_column_names_from_first_row(self):
        result = QueryResult(rows=[{"id": 1, "name": "Ada"}], row_count=1)
        assert result.column_names() == ["id", "name"]

    def test_first(self):
        result = QueryResult(rows=[{"id": 1}, {"id": 2}], row_count=2)
        assert result.first() == {"id": 1}


@pytest.mark.unit
class TestColumnSchema:
    @pytest.mark.parametrize(("flag", "expected"), [("YES", True), ("yes", True), ("NO", False)])
    def test_nullable(self, flag, expected):
        col = ColumnSchema(column_name="id", data_type="integer", is_nullable=flag)
        assert col.nullable is expected


@pytest.mark.unit
def test_http_status_parses_payload():
    status = HttpStatus.model_validate({"ok": True, "ping": 12.5})
    assert status.ok is True
    assert status.ping == 12.5
