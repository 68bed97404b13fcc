"""Application-facing client composing a primary driver and fallbacks.

``query`` tries the primary, then each fallback in order, and raises the
last driver's error when all of them fail. Only read-only statements fall
back unless ``fallback_writes`` is set. Transactions, prepared statements
and CRUD helpers run on the primary only.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING, Any

from driftsql.core.exceptions import CapabilityError, DriftSQLError
from driftsql.core.inspector import SchemaInspector
from driftsql.core.logging import get_logger
from driftsql.drivers import create_driver
from driftsql.drivers.base import (
    has_crud_support,
    has_prepared_statement_support,
    has_transaction_support,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence
    from pathlib import Path

    from driftsql.core.config import ResolvedConfig
    from driftsql.core.models import HttpStatus, QueryResult
    from driftsql.drivers.base import Driver, PreparedStatement, T

_READ_ONLY_KEYWORDS = frozenset(
    {"SELECT", "WITH", "SHOW", "EXPLAIN", "PRAGMA", "VALUES", "DESCRIBE", "TABLE"}
)
_LEADING_KEYWORD_RE = re.compile(r"^[\s(]*([A-Za-z]+)")


def is_read_only(sql: str) -> bool:
    """Classify a statement by its leading keyword."""
    match = _LEADING_KEYWORD_RE.match(sql)
    return bool(match) and match.group(1).upper() in _READ_ONLY_KEYWORDS


class DriftClient:
    """Unified query / CRUD / transaction surface over one or more drivers.

    The client owns every driver it is given and is the only one that
    closes them. There is no reconnect after ``close``.
    """

    def __init__(
        self,
        primary: Driver,
        fallbacks: Sequence[Driver] = (),
        *,
        fallback_writes: bool = False,
    ) -> None:
        self._primary = primary
        self._fallbacks = list(fallbacks)
        self._fallback_writes = fallback_writes
        self._closed = False
        self._supports_transactions = has_transaction_support(primary)
        self._supports_prepared = has_prepared_statement_support(primary)
        self._supports_crud = has_crud_support(primary)

    @classmethod
    async def from_config(cls, resolved: ResolvedConfig, **kwargs: Any) -> DriftClient:
        """Connect the primary and fallback drivers described by ``resolved``."""
        primary = await create_driver(resolved.primary)
        fallbacks: list[Driver] = []
        try:
            for config in resolved.fallbacks:
                fallbacks.append(await create_driver(config))
        except DriftSQLError:
            await asyncio.gather(
                *(d.close() for d in [primary, *fallbacks]), return_exceptions=True
            )
            raise
        return cls(primary, fallbacks, **kwargs)

    async def __aenter__(self) -> DriftClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- introspection ------------------------------------------------------

    def get_driver(self) -> Driver:
        return self._primary

    @property
    def fallback_drivers(self) -> list[Driver]:
        return list(self._fallbacks)

    def supports_transactions(self) -> bool:
        return self._supports_transactions

    def supports_prepared_statements(self) -> bool:
        return self._supports_prepared

    def supports_crud(self) -> bool:
        return self._supports_crud

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Client is closed"
            raise DriftSQLError(msg, self._primary.driver_type)

    # -- queries ------------------------------------------------------------

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        """Run ``sql`` on the primary, then on each fallback in order."""
        self._ensure_open()
        drivers = [self._primary]
        if self._fallbacks and (self._fallback_writes or is_read_only(sql)):
            drivers.extend(self._fallbacks)

        log = get_logger("client")
        for driver, next_driver in zip(drivers, drivers[1:], strict=False):
            try:
                return await driver.query(sql, params)
            except Exception as e:
                log.warning(
                    "driver failed, trying fallback",
                    driver=driver.driver_type,
                    next_driver=next_driver.driver_type,
                    error=str(e),
                )
        # The final attempt's error is the one the caller sees.
        return await drivers[-1].query(sql, params)

    async def transaction(self, callback: Callable[[Driver], Awaitable[T]]) -> T:
        """Run ``callback`` inside a primary-driver transaction."""
        self._ensure_open()
        if not self._supports_transactions:
            raise CapabilityError(self._primary.driver_type, "transactions")
        return await self._primary.transaction(callback)  # type: ignore[attr-defined]

    async def prepare(self, sql: str) -> PreparedStatement:
        self._ensure_open()
        if not self._supports_prepared:
            raise CapabilityError(self._primary.driver_type, "prepared statements")
        return await self._primary.prepare(sql)  # type: ignore[attr-defined]

    def _crud_driver(self, operation: str) -> Any:
        self._ensure_open()
        if not self._supports_crud:
            raise CapabilityError(self._primary.driver_type, operation)
        return self._primary

    async def find_first(
        self, table: str, where: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None:
        return await self._crud_driver("find_first").find_first(table, where)

    async def find_many(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryResult:
        return await self._crud_driver("find_many").find_many(
            table, where, limit=limit, offset=offset
        )

    async def insert(self, table: str, data: Mapping[str, Any]) -> QueryResult:
        return await self._crud_driver("insert").insert(table, data)

    async def update(
        self, table: str, data: Mapping[str, Any], where: Mapping[str, Any]
    ) -> QueryResult:
        return await self._crud_driver("update").update(table, data, where)

    async def delete(self, table: str, where: Mapping[str, Any]) -> int:
        return await self._crud_driver("delete").delete(table, where)

    async def status(self) -> HttpStatus:
        """Liveness probe; only SQL-over-HTTP primaries answer it."""
        self._ensure_open()
        status = getattr(self._primary, "status", None)
        if status is None:
            raise CapabilityError(self._primary.driver_type, "status checks")
        return await status()

    async def inspect(
        self, output: Path | None = None, lang: str = "python"
    ) -> Path:
        """Generate row type declarations for the primary's schema."""
        self._ensure_open()
        return await SchemaInspector(self._primary).pull(output, lang=lang)

    # -- lifecycle ----------------------------------------------------------

    async def close(self) -> None:
        """Close every owned driver concurrently; failures are only logged."""
        if self._closed:
            return
        self._closed = True
        drivers = [self._primary, *self._fallbacks]

        async def close_one(driver: Driver) -> None:
            await driver.close()

        results = await asyncio.gather(
            *(close_one(driver) for driver in drivers), return_exceptions=True
        )
        log = get_logger("client")
        for driver, outcome in zip(drivers, results, strict=True):
            if isinstance(outcome, BaseException):
                log.error(
                    "error closing driver",
                    driver=driver.driver_type,
                    error=str(outcome),
                )
