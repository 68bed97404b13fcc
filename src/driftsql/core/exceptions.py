"""Exception hierarchy for driftsql.

Every error carries the tag of the driver that produced it (when one did)
and the native error it wraps, plus an exit_code for the CLI.
"""

from __future__ import annotations

from driftsql.core.exit_codes import ExitCode


class DriftSQLError(Exception):
    """Base exception for all driftsql errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        driver_type: str | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        self.message = message
        self.driver_type = driver_type
        self.original_error = original_error
        super().__init__(message)
        if original_error is not None and self.__cause__ is None:
            self.__cause__ = original_error


class ConnectionError(DriftSQLError):
    """The native client could not be created or validated."""

    exit_code: int = ExitCode.NETWORK_ERROR

    def __init__(
        self,
        driver_type: str,
        original_error: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"Failed to connect to {driver_type}"
            if original_error is not None:
                message = f"{message}: {original_error}"
        super().__init__(message, driver_type, original_error)


class TimeoutError(ConnectionError):
    """An operation did not finish within its timeout."""

    exit_code: int = ExitCode.TIMEOUT


class QueryError(DriftSQLError):
    """A specific SQL statement failed to execute."""

    def __init__(
        self,
        driver_type: str,
        sql: str,
        original_error: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        self.sql = sql
        if message is None:
            message = f"Query failed: {sql}"
            if original_error is not None:
                message = f"{message} ({original_error})"
        super().__init__(message, driver_type, original_error)


class NoDataReturnedError(QueryError):
    """An insert neither returned the row nor exposed an insert id."""


class CapabilityError(DriftSQLError):
    """The driver does not implement the requested operation."""

    exit_code: int = ExitCode.USAGE_ERROR

    def __init__(self, driver_type: str, capability: str) -> None:
        self.capability = capability
        super().__init__(
            f"Driver '{driver_type}' does not support {capability}", driver_type
        )


class InputError(DriftSQLError):
    """Empty data or conditions, invalid identifiers, missing query source."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(DriftSQLError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR


class OutputError(DriftSQLError):
    """Generated output could not be written."""

    exit_code: int = ExitCode.OUTPUT_ERROR
