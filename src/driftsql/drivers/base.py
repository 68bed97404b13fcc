"""Driver contract and capability protocols.

Every driver implements ``query`` and ``close``. Optional behaviour is
expressed as runtime-checkable protocols and discovered structurally, so
callers must probe (``has_transaction_support`` and friends) before use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from driftsql.core.dialect import POSTGRES, Dialect
from driftsql.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from driftsql.core.models import QueryResult

T = TypeVar("T")


class Driver(ABC):
    """Adapter between one native client and the normalized query contract.

    A driver owns its native handle exclusively. Transaction-scoped drivers
    share the parent's handle and never close it.
    """

    driver_type: str = "base"
    dialect: Dialect = POSTGRES

    @abstractmethod
    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        """Execute ``sql`` with bound ``params``.

        Raises QueryError on any execution failure.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release native resources. Errors are logged, never raised."""

    async def __aenter__(self) -> Driver:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.driver_type}>"


@runtime_checkable
class PreparedStatement(Protocol):
    """A backend-side compiled statement; unusable after ``finalize``."""

    async def execute(self, params: list[Any] | None = None) -> QueryResult: ...

    async def finalize(self) -> None: ...


@runtime_checkable
class TransactionCapable(Protocol):
    async def transaction(self, callback: Callable[[Driver], Awaitable[T]]) -> T: ...


@runtime_checkable
class PreparedStatementCapable(Protocol):
    async def prepare(self, sql: str) -> PreparedStatement: ...


@runtime_checkable
class CrudCapable(Protocol):
    async def find_first(
        self, table: str, where: Mapping[str, Any] | None = None
    ) -> dict[str, Any] | None: ...

    async def find_many(
        self,
        table: str,
        where: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> QueryResult: ...

    async def insert(self, table: str, data: Mapping[str, Any]) -> QueryResult: ...

    async def update(
        self, table: str, data: Mapping[str, Any], where: Mapping[str, Any]
    ) -> QueryResult: ...

    async def delete(self, table: str, where: Mapping[str, Any]) -> int: ...


def has_transaction_support(driver: Any) -> bool:
    return isinstance(driver, TransactionCapable)


def has_prepared_statement_support(driver: Any) -> bool:
    return isinstance(driver, PreparedStatementCapable)


def has_crud_support(driver: Any) -> bool:
    return isinstance(driver, CrudCapable)


class StatementTransactionMixin:
    """Transactions driven by plain BEGIN / COMMIT / ROLLBACK statements.

    ``transaction`` on a transaction-scoped driver opens a SAVEPOINT instead,
    so nesting rolls back only the inner block. The host class provides
    ``query`` and ``_scoped(depth)``.
    """

    _depth: int = 0
    _begin_sql: str = "BEGIN"

    if TYPE_CHECKING:

        async def query(
            self, sql: str, params: list[Any] | None = None
        ) -> QueryResult: ...

        def _scoped(self, depth: int) -> Driver: ...

    async def transaction(self, callback: Callable[[Driver], Awaitable[T]]) -> T:
        depth = self._depth
        if depth == 0:
            begin, commit, rollback = self._begin_sql, ["COMMIT"], ["ROLLBACK"]
        else:
            name = f"driftsql_sp_{depth}"
            begin = f"SAVEPOINT {name}"
            commit = [f"RELEASE SAVEPOINT {name}"]
            rollback = [f"ROLLBACK TO SAVEPOINT {name}", f"RELEASE SAVEPOINT {name}"]

        await self.query(begin)
        try:
            result = await callback(self._scoped(depth + 1))
            for sql in commit:
                await self.query(sql)
        except BaseException:
            try:
                for sql in rollback:
                    await self.query(sql)
            except Exception as e:
                get_logger("transaction").error("rollback failed", error=str(e))
            raise
        return result
