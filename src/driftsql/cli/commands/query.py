from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Annotated, Any

import typer

from driftsql.cli.commands._shared import open_client, output_result
from driftsql.core.exceptions import InputError
from driftsql.core.exit_codes import ExitCode
from driftsql.core.query_source import parse_param, resolve_query_source

if TYPE_CHECKING:
    from driftsql.core.models import QueryResult


async def _execute(ctx: typer.Context, sql: str, params: list[Any]) -> QueryResult:
    async with open_client(ctx) as client:
        return await client.query(sql, params)


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL query"),
    ] = None,
    param: Annotated[
        list[str] | None,
        typer.Option(
            "--param",
            "-p",
            help="Positional parameter, repeatable; JSON scalars are decoded",
        ),
    ] = None,
) -> None:
    """Execute a SQL query from file, inline (-e), or stdin."""
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        sql = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    params = [parse_param(p) for p in param or []]
    result = asyncio.run(_execute(ctx, sql, params))
    output_result(ctx, result)
