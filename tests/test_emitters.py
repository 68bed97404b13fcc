"""Tests for the Python and TypeScript schema emitters."""

import pytest

from driftsql.core.models import ColumnSchema, SchemaDocument, TableSchema
from driftsql.emitters import (
    Emitter,
    PythonEmitter,
    TypeScriptEmitter,
    get_emitter,
    record_type_names,
)


def _document(*tables):
    return SchemaDocument(driver_type="postgres", tables=list(tables))


def _table(name, *columns):
    return TableSchema(
        name=name,
        columns=[
            ColumnSchema(column_name=c, data_type=t, is_nullable="YES" if n else "NO")
            for c, t, n in columns
        ],
    )


USERS = _table("users", ("id", "integer", False), ("name", "character varying(255)", True))


@pytest.mark.unit
class TestRecordTypeNames:
    def test_capitalises_first_character(self):
        assert record_type_names(["users", "orderItems"]) == {
            "users": "Users",
            "orderItems": "OrderItems",
        }

    def test_invalid_characters_and_leading_digit(self):
        assert record_type_names(["order-items", "1st place"]) == {
            "order-items": "Order_items",
            "1st place": "T1st_place",
        }

    def test_clashes_get_suffix(self):
        assert record_type_names(["users", "Users", "database"]) == {
            "users": "Users",
            "Users": "Users2",
            "database": "Database2",
        }


@pytest.mark.unit
class TestPythonEmitter:
    def test_render(self):
        text = PythonEmitter().render(_document(USERS))
        assert text.endswith(
            "from typing import Any, TypedDict\n"
            "\n\n"
            "class Users(TypedDict):\n"
            "    id: float\n"
            "    name: str | None\n"
            "\n\n"
            "class Database(TypedDict):\n"
            "    users: Users\n"
        )

    def test_unknown_type_is_any(self):
        table = _table("t", ("x", "made_up_type_xyz", True))
        text = PythonEmitter().render(_document(table))
        assert "    x: Any | None" in text

    def test_functional_syntax_for_non_identifiers(self):
        table = _table("order-items", ("first name", "text", False), ("class", "int", False))
        text = PythonEmitter().render(_document(table))
        assert "Order_items = TypedDict(\n    'Order_items',\n" in text
        assert "        'first name': str," in text
        assert "        'class': float," in text
        assert "        'order-items': Order_items," in text

    def test_generated_code_compiles(self):
        table = _table("order-items", ("first name", "bytea", True), ("tags", "ARRAY", False))
        text = PythonEmitter().render(_document(USERS, table))
        namespace = {}
        exec(compile(text, "db_types.py", "exec"), namespace)
        assert set(namespace["Database"].__annotations__) == {"users", "order-items"}

    def test_empty_schema(self):
        text = PythonEmitter().render(_document())
        assert text.endswith("class Database(TypedDict):\n    pass\n")


@pytest.mark.unit
class TestTypeScriptEmitter:
    def test_render(self):
        text = TypeScriptEmitter().render(_document(USERS))
        assert text == (
            "// Database row types generated by `driftsql pull`. Do not edit by hand.\n"
            "\n"
            "export interface Users {\n"
            "  id: number;\n"
            "  name: string | null;\n"
            "}\n"
            "\n"
            "export interface Database {\n"
            "  users: Users;\n"
            "}\n"
        )

    def test_quotes_non_identifier_properties(self):
        table = _table("order-items", ("first name", "timestamp", False), ("data", "json", True))
        text = TypeScriptEmitter().render(_document(table))
        assert '  "first name": Date;' in text
        assert "  data: any | null;" in text
        assert '  "order-items": Order_items;' in text


@pytest.mark.unit
def test_registry():
    assert isinstance(get_emitter("python"), Emitter)
    assert get_emitter("typescript").default_filename == "db-types.ts"
    with pytest.raises(KeyError, match="Unknown language"):
        get_emitter("cobol")
