"""Backend drivers and the config-driven driver factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from driftsql.core.config import (
    HttpConfig,
    LibSQLConfig,
    MySQLConfig,
    NeonConfig,
    PostgresConfig,
    SqliteCloudConfig,
)
from driftsql.drivers.base import (
    CrudCapable,
    Driver,
    PreparedStatement,
    PreparedStatementCapable,
    TransactionCapable,
    has_crud_support,
    has_prepared_statement_support,
    has_transaction_support,
)
from driftsql.drivers.http import HttpDriver
from driftsql.drivers.libsql import LibSQLDriver
from driftsql.drivers.mysql import MySQLDriver
from driftsql.drivers.postgres import NeonDriver, PostgresDriver
from driftsql.drivers.sqlite import SqliteDriver
from driftsql.drivers.sqlitecloud import SqliteCloudDriver

if TYPE_CHECKING:
    from driftsql.core.config import DriverConfig

__all__ = [
    "CrudCapable",
    "Driver",
    "HttpDriver",
    "LibSQLDriver",
    "MySQLDriver",
    "NeonDriver",
    "PostgresDriver",
    "PreparedStatement",
    "PreparedStatementCapable",
    "SqliteCloudDriver",
    "SqliteDriver",
    "TransactionCapable",
    "create_driver",
    "has_crud_support",
    "has_prepared_statement_support",
    "has_transaction_support",
]


async def create_driver(config: DriverConfig) -> Driver:
    """Connect the driver matching ``config``.

    Local libSQL URLs get a SqliteDriver; an HTTP PostgreSQL config gets an
    HttpDriver tagged ``postgres-http`` (no transaction support).
    Raises ConnectionError when the native client cannot be created.
    """
    if isinstance(config, PostgresConfig):
        if config.http is not None:
            return await HttpDriver.connect(config.http, driver_type="postgres-http")
        return await PostgresDriver.connect(config)
    if isinstance(config, NeonConfig):
        return await NeonDriver.connect(config)
    if isinstance(config, MySQLConfig):
        return await MySQLDriver.connect(config)
    if isinstance(config, LibSQLConfig):
        if config.is_local:
            return await SqliteDriver.connect(config)
        return await LibSQLDriver.connect(config)
    if isinstance(config, SqliteCloudConfig):
        return await SqliteCloudDriver.connect(config)
    if isinstance(config, HttpConfig):
        return await HttpDriver.connect(config)
    msg = f"Unsupported driver config: {type(config).__name__}"
    raise TypeError(msg)
