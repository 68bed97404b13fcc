"""Per-backend SQL dialect policy.

A Dialect captures the three things the shared SQL builder needs to know
about a backend: placeholder style, identifier quoting and how an insert
hands the new row back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from driftsql.core.exceptions import InputError

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")


class Placeholder(StrEnum):
    NUMERIC = "numeric"  # $1, $2
    QMARK = "qmark"  # ?
    FORMAT = "format"  # %s


class ReturningStrategy(StrEnum):
    RETURNING = "returning"  # INSERT ... RETURNING *
    ROWID = "rowid"  # follow-up SELECT keyed by last insert rowid
    LAST_INSERT_ID = "last_insert_id"  # follow-up SELECT keyed by auto-increment column


@dataclass(frozen=True)
class Dialect:
    name: str
    placeholder: Placeholder
    quote_char: str
    returning: ReturningStrategy
    # MySQL and SQLite only accept OFFSET after a LIMIT
    unbounded_limit: str | None = None

    def param(self, index: int) -> str:
        """Placeholder for the 1-based parameter ``index``."""
        if self.placeholder is Placeholder.NUMERIC:
            return f"${index}"
        if self.placeholder is Placeholder.FORMAT:
            return "%s"
        return "?"

    def quote(self, identifier: str) -> str:
        """Validate and quote a (optionally schema-qualified) identifier.

        Only ``[A-Za-z_][A-Za-z0-9_$]*`` parts are accepted; anything else
        raises InputError so untrusted names never reach the SQL text.
        """
        parts = identifier.split(".")
        if len(parts) > 2 or not all(_IDENTIFIER_RE.fullmatch(p) for p in parts):
            msg = f"Invalid SQL identifier: {identifier!r}"
            raise InputError(msg)
        q = self.quote_char
        return ".".join(f"{q}{p}{q}" for p in parts)


POSTGRES = Dialect(
    name="postgres",
    placeholder=Placeholder.NUMERIC,
    quote_char='"',
    returning=ReturningStrategy.RETURNING,
)

MYSQL = Dialect(
    name="mysql",
    placeholder=Placeholder.FORMAT,
    quote_char="`",
    returning=ReturningStrategy.LAST_INSERT_ID,
    unbounded_limit="18446744073709551615",
)

SQLITE = Dialect(
    name="sqlite",
    placeholder=Placeholder.QMARK,
    quote_char='"',
    returning=ReturningStrategy.ROWID,
    unbounded_limit="-1",
)

DIALECTS: dict[str, Dialect] = {d.name: d for d in (POSTGRES, MYSQL, SQLITE)}


def get_dialect(name: str) -> Dialect:
    try:
        return DIALECTS[name]
    except KeyError:
        available = ", ".join(sorted(DIALECTS))
        msg = f"Unknown dialect {name!r}. Available: {available}"
        raise KeyError(msg) from None
