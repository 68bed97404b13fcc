"""driftsql: one async query interface over several SQL backends."""

from driftsql.__about__ import __version__
from driftsql.core.client import DriftClient
from driftsql.core.config import (
    HttpConfig,
    LibSQLConfig,
    MySQLConfig,
    NeonConfig,
    PostgresConfig,
    PostgresHttpConfig,
    SqliteCloudConfig,
)
from driftsql.core.exceptions import (
    CapabilityError,
    ConnectionError,
    DriftSQLError,
    InputError,
    NoDataReturnedError,
    QueryError,
    TimeoutError,
)
from driftsql.core.inspector import SchemaInspector, inspect_db
from driftsql.core.models import HttpStatus, QueryField, QueryResult
from driftsql.drivers import (
    Driver,
    HttpDriver,
    LibSQLDriver,
    MySQLDriver,
    NeonDriver,
    PostgresDriver,
    SqliteCloudDriver,
    SqliteDriver,
    create_driver,
)

__all__ = [
    "CapabilityError",
    "ConnectionError",
    "DriftClient",
    "DriftSQLError",
    "Driver",
    "HttpConfig",
    "HttpDriver",
    "HttpStatus",
    "InputError",
    "LibSQLConfig",
    "LibSQLDriver",
    "MySQLConfig",
    "MySQLDriver",
    "NeonConfig",
    "NeonDriver",
    "NoDataReturnedError",
    "PostgresConfig",
    "PostgresDriver",
    "PostgresHttpConfig",
    "QueryError",
    "QueryField",
    "QueryResult",
    "SchemaInspector",
    "SqliteCloudConfig",
    "SqliteCloudDriver",
    "SqliteDriver",
    "TimeoutError",
    "__version__",
    "create_driver",
    "inspect_db",
]
