"""Sentry integration for error tracking and query tracing.

Sentry is only initialized when DRIFTSQL_SENTRY_DSN is set. Query spans are
opened unconditionally; without an initialized client they are no-ops.
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sentry_sdk

from driftsql.__about__ import __version__
from driftsql.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

SENTRY_DSN_ENV = "DRIFTSQL_SENTRY_DSN"


def setup_sentry(environment: str = "local") -> bool:
    """Initialize Sentry when a DSN is configured. Returns True if initialized."""
    dsn = os.environ.get(SENTRY_DSN_ENV)
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True


def normalize_sql(sql: str) -> str:
    return " ".join(sql.split())


@contextmanager
def query_span(driver_type: str, sql: str) -> Iterator[Any]:
    """Trace one statement: debug log plus a ``db.query`` span.

    The span is marked internal_error and the failure logged when the body raises.
    """
    log = get_logger(driver_type)
    sql_normalized = normalize_sql(sql)
    log.debug("executing query", sql=sql_normalized)
    with sentry_sdk.start_span(op="db.query", description=sql_normalized[:100]) as span:
        span.set_data("db.system", driver_type)
        start_time = time.monotonic()
        try:
            yield span
        except Exception as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("duration_ms", duration_ms)
            span.set_status("internal_error")
            log.error(
                "query failed",
                sql=sql_normalized,
                duration_ms=f"{duration_ms:.1f}",
                error=str(e),
            )
            raise
        duration_ms = (time.monotonic() - start_time) * 1000
        span.set_data("duration_ms", duration_ms)
        log.debug("query complete", duration_ms=f"{duration_ms:.1f}")
