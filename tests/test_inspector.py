"""Tests for schema inspection against SQLite and scripted drivers."""

import asyncio

import pytest

from driftsql.core.client import DriftClient
from driftsql.core.config import LibSQLConfig
from driftsql.core.dialect import SQLITE
from driftsql.core.exceptions import InputError, OutputError, QueryError, TimeoutError
from driftsql.core.inspector import (
    MappedType,
    SchemaInspector,
    TypeCategory,
    dedupe_columns,
    inspect_db,
    map_database_type,
)
from driftsql.core.models import ColumnSchema
from driftsql.drivers.base import Driver
from driftsql.drivers.sqlite import SqliteDriver


@pytest.fixture
async def app_driver(sqlite_file):
    driver = await SqliteDriver.connect(LibSQLConfig(url=str(sqlite_file)))
    yield driver
    await driver.close()


class ScriptedDriver(Driver):
    """Delegates to a real driver but fails or stalls on chosen statements."""

    dialect = SQLITE

    def __init__(self, inner, fail_table=None, fail_times=None, delay=0.0):
        self.inner = inner
        self.driver_type = inner.driver_type
        self.fail_table = fail_table
        self.fail_times = fail_times
        self.delay = delay
        self.failures = 0

    async def query(self, sql, params=None):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_table and params == [self.fail_table]:
            if self.fail_times is None or self.failures < self.fail_times:
                self.failures += 1
                raise QueryError(self.driver_type, sql, message="table is locked")
        return await self.inner.query(sql, params)

    async def close(self):
        await self.inner.close()


@pytest.mark.unit
class TestMapDatabaseType:
    @pytest.mark.parametrize(
        ("data_type", "category"),
        [
            ("integer", TypeCategory.NUMBER),
            ("BIGINT", TypeCategory.NUMBER),
            ("double precision", TypeCategory.NUMBER),
            ("int unsigned", TypeCategory.NUMBER),
            ("decimal(10,2)", TypeCategory.NUMBER),
            ("character varying", TypeCategory.STRING),
            ("VARCHAR(200)", TypeCategory.STRING),
            ("uuid", TypeCategory.STRING),
            ("enum", TypeCategory.STRING),
            ("boolean", TypeCategory.BOOLEAN),
            ("timestamp with time zone", TypeCategory.TEMPORAL),
            ("DATETIME", TypeCategory.TEMPORAL),
            ("jsonb", TypeCategory.JSON),
            ("ARRAY", TypeCategory.ARRAY),
            ("bytea", TypeCategory.BINARY),
            ("made_up_type_xyz", TypeCategory.UNKNOWN),
            ("", TypeCategory.UNKNOWN),
        ],
    )
    def test_categories(self, data_type, category):
        assert map_database_type(data_type).category is category

    def test_nullable_is_carried(self):
        assert map_database_type("text", True) == MappedType(TypeCategory.STRING, True)


@pytest.mark.unit
def test_dedupe_keeps_first_occurrence():
    columns = [
        ColumnSchema(column_name="id", data_type="integer"),
        ColumnSchema(column_name="name", data_type="text"),
        ColumnSchema(column_name="id", data_type="bigint"),
    ]
    deduped = dedupe_columns(columns)
    assert [(c.column_name, c.data_type) for c in deduped] == [
        ("id", "integer"),
        ("name", "text"),
    ]


@pytest.mark.unit
class TestInspect:
    async def test_tables_in_name_order(self, app_driver):
        document = await SchemaInspector(app_driver).inspect()
        assert document.driver_type == "sqlite"
        assert [t.name for t in document.tables] == ["posts", "users"]

    async def test_columns(self, app_driver):
        document = await SchemaInspector(app_driver).inspect()
        users = document.tables[1]
        assert [(c.column_name, c.data_type, c.nullable) for c in users.columns] == [
            ("id", "INTEGER", True),
            ("name", "TEXT", False),
            ("email", "TEXT", True),
        ]

    async def test_failing_table_is_skipped(self, app_driver):
        driver = ScriptedDriver(app_driver, fail_table="posts")
        inspector = SchemaInspector(driver, base_delay=0)
        document = await inspector.inspect()
        assert [t.name for t in document.tables] == ["users"]
        assert driver.failures == 3

    async def test_transient_failure_is_retried(self, app_driver):
        driver = ScriptedDriver(app_driver, fail_table="posts", fail_times=2)
        document = await SchemaInspector(driver, base_delay=0).inspect()
        assert [t.name for t in document.tables] == ["posts", "users"]

    async def test_table_listing_timeout_is_fatal(self, app_driver):
        driver = ScriptedDriver(app_driver, delay=0.5)
        inspector = SchemaInspector(driver, tables_timeout=0.05)
        with pytest.raises(TimeoutError, match="Query timeout"):
            await inspector.inspect()

    async def test_empty_database(self, sqlite_driver):
        document = await SchemaInspector(sqlite_driver).inspect()
        assert document.tables == []

    async def test_client_target_uses_primary_dialect(self, app_driver):
        client = DriftClient(app_driver)
        document = await SchemaInspector(client).inspect()
        assert len(document.tables) == 2


@pytest.mark.unit
class TestPull:
    async def test_writes_python_types(self, app_driver, temp_dir):
        path = await inspect_db(app_driver, temp_dir / "db_types.py")
        text = path.read_text()
        assert "class Users(TypedDict):" in text
        assert "    email: str | None" in text
        assert "    created_at: datetime.datetime | None" in text
        assert "class Database(TypedDict):" in text
        assert "    posts: Posts" in text

    async def test_output_is_deterministic(self, app_driver, temp_dir):
        first = await inspect_db(app_driver, temp_dir / "a.py")
        second = await inspect_db(app_driver, temp_dir / "b.py")
        assert first.read_bytes() == second.read_bytes()

    async def test_generated_module_is_valid_python(self, app_driver, temp_dir):
        path = await inspect_db(app_driver, temp_dir / "db_types.py")
        namespace = {}
        exec(compile(path.read_text(), str(path), "exec"), namespace)
        assert set(namespace["Database"].__annotations__) == {"posts", "users"}

    async def test_typescript(self, app_driver, temp_dir):
        path = await inspect_db(app_driver, temp_dir / "db-types.ts", lang="typescript")
        text = path.read_text()
        assert "export interface Users {" in text
        assert "  email: string | null;" in text

    async def test_overwrites_existing_file(self, app_driver, temp_dir):
        target = temp_dir / "db_types.py"
        target.write_text("stale")
        await inspect_db(app_driver, target)
        assert "stale" not in target.read_text()

    async def test_unwritable_output(self, app_driver, temp_dir):
        with pytest.raises(OutputError, match="Failed to write"):
            await inspect_db(app_driver, temp_dir / "missing" / "db_types.py")

    async def test_unknown_language(self, app_driver, temp_dir):
        with pytest.raises(InputError, match="Unknown language 'rust'"):
            await inspect_db(app_driver, temp_dir / "x.rs", lang="rust")

    async def test_default_filename(self, app_driver, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        path = await SchemaInspector(app_driver).pull()
        assert path.name == "db_types.py"
        assert (temp_dir / "db_types.py").exists()
