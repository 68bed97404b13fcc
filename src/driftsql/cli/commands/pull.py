from __future__ import annotations

import asyncio
from enum import StrEnum
from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from driftsql.cli.commands._shared import open_client


class Language(StrEnum):
    PYTHON = "python"
    TYPESCRIPT = "typescript"


async def _pull(ctx: typer.Context, output: Path | None, lang: str) -> Path:
    async with open_client(ctx) as client:
        return await client.inspect(output, lang=lang)


def pull_command(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="File to write (default: db_types.py or db-types.ts)",
        ),
    ] = None,
    lang: Annotated[
        Language,
        typer.Option("--lang", "-l", help="Language of the generated types"),
    ] = Language.PYTHON,
) -> None:
    """Introspect the database and write one row type per table."""
    path = asyncio.run(_pull(ctx, output, lang.value))
    typer.echo(f"Types written to {path}")
