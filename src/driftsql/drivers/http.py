"""SQL-over-HTTP driver.

Wire contract: POST ``<url>/query`` with JSON ``{"query", "params"}`` and a
bearer token; a 2xx answer is ``{"rows": [...], "rowCount": n}``, any other
status turns the response body into the error message. ``GET <url>/status``
answers ``{"ok": bool, "ping": number}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from driftsql.core.dialect import get_dialect
from driftsql.core.exceptions import ConnectionError, QueryError
from driftsql.core.logging import get_logger
from driftsql.core.models import HttpStatus, QueryField, QueryResult
from driftsql.core.monitoring import query_span
from driftsql.core.sql_builder import CrudMixin
from driftsql.drivers.base import Driver

if TYPE_CHECKING:
    from driftsql.core.config import HttpConfig, PostgresHttpConfig


class HttpError(Exception):
    """Non-2xx answer from the SQL endpoint."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP Error: {status_code} - {body}")


class HttpDriver(CrudMixin, Driver):
    """Stateless SQL endpoint client; has no transaction support."""

    driver_type = "http"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        driver_type: str | None = None,
        dialect: str = "postgres",
    ) -> None:
        self._client = client
        if driver_type is not None:
            self.driver_type = driver_type
        self.dialect = get_dialect(dialect)

    @classmethod
    async def connect(
        cls,
        config: HttpConfig | PostgresHttpConfig,
        *,
        driver_type: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpDriver:
        tag = driver_type or cls.driver_type
        headers = {"Authorization": f"Bearer {config.api_key or ''}"}
        try:
            client = httpx.AsyncClient(
                base_url=config.url.rstrip("/") + "/",
                headers=headers,
                timeout=config.timeout_ms / 1000,
                transport=transport,
            )
        except (httpx.InvalidURL, ValueError, TypeError) as e:
            raise ConnectionError(tag, e) from e
        dialect = getattr(config, "dialect", "postgres")
        return cls(client, driver_type=tag, dialect=dialect)

    async def _post_query(self, sql: str, params: list[Any] | None) -> QueryResult:
        response = await self._client.post(
            "query", json={"query": sql, "params": params or []}
        )
        if not response.is_success:
            raise HttpError(response.status_code, response.text)
        payload = response.json()
        rows = payload.get("rows") or []
        fields = None
        if rows:
            fields = [QueryField(name=name) for name in rows[0]]
        return QueryResult(
            rows=rows,
            row_count=int(payload.get("rowCount", len(rows)) or 0),
            command=payload.get("command"),
            fields=fields,
        )

    async def query(self, sql: str, params: list[Any] | None = None) -> QueryResult:
        with query_span(self.driver_type, sql) as span:
            try:
                result = await self._post_query(sql, params)
            except HttpError as e:
                message = e.body or str(e)
                raise QueryError(self.driver_type, sql, e, message=message) from e
            except (httpx.HTTPError, ValueError) as e:
                raise QueryError(self.driver_type, sql, e) from e
            span.set_data("row_count", result.row_count)
            return result

    async def status(self) -> HttpStatus:
        """Liveness probe against ``GET /status``."""
        try:
            response = await self._client.get("status")
            if not response.is_success:
                raise HttpError(response.status_code, response.text)
            return HttpStatus.model_validate(response.json())
        except (HttpError, httpx.HTTPError, ValueError) as e:
            raise ConnectionError(self.driver_type, e) from e

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except Exception as e:
            get_logger(self.driver_type).error("error closing client", error=str(e))
