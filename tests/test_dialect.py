"""Tests for per-backend dialect policy."""

import pytest

from driftsql.core.dialect import (
    MYSQL,
    POSTGRES,
    SQLITE,
    ReturningStrategy,
    get_dialect,
)
from driftsql.core.exceptions import InputError


@pytest.mark.unit
class TestPlaceholders:
    def test_postgres_is_numbered(self):
        assert [POSTGRES.param(i) for i in (1, 2, 3)] == ["$1", "$2", "$3"]

    def test_sqlite_is_qmark(self):
        assert SQLITE.param(5) == "?"

    def test_mysql_is_format(self):
        assert MYSQL.param(2) == "%s"


@pytest.mark.unit
class TestQuote:
    def test_double_quotes(self):
        assert POSTGRES.quote("users") == '"users"'

    def test_backticks(self):
        assert MYSQL.quote("users") == "`users`"

    def test_schema_qualified(self):
        assert POSTGRES.quote("public.users") == '"public"."users"'

    @pytest.mark.parametrize(
        "name",
        [
            "users; DROP TABLE users",
            'us"ers',
            "1users",
            "",
            "a.b.c",
            "user name",
            "users\n",
            "public.users\n",
        ],
    )
    def test_rejects_invalid_identifiers(self, name):
        with pytest.raises(InputError, match="Invalid SQL identifier"):
            SQLITE.quote(name)


@pytest.mark.unit
def test_returning_strategies():
    assert POSTGRES.returning is ReturningStrategy.RETURNING
    assert SQLITE.returning is ReturningStrategy.ROWID
    assert MYSQL.returning is ReturningStrategy.LAST_INSERT_ID


@pytest.mark.unit
def test_get_dialect():
    assert get_dialect("mysql") is MYSQL
    with pytest.raises(KeyError, match="Unknown dialect 'oracle'"):
        get_dialect("oracle")
