from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import typer

from driftsql.cli.commands._shared import open_client

if TYPE_CHECKING:
    from driftsql.core.models import HttpStatus


async def _status(ctx: typer.Context) -> tuple[str, HttpStatus]:
    async with open_client(ctx) as client:
        return client.get_driver().driver_type, await client.status()


def status_command(ctx: typer.Context) -> None:
    """Probe a SQL-over-HTTP endpoint for liveness."""
    driver_type, status = asyncio.run(_status(ctx))
    state = "ok" if status.ok else "unhealthy"
    typer.echo(f"{driver_type}: {state} (ping {status.ping:g} ms)")
    if not status.ok:
        raise typer.Exit(1)
