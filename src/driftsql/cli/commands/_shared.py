"""Shared CLI plumbing: config resolution, client lifetime and output."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from driftsql.cli.output import get_formatter, write_output
from driftsql.core.client import DriftClient
from driftsql.core.config import load_config, resolve_config

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import typer

    from driftsql.core.config import ResolvedConfig
    from driftsql.core.models import QueryResult


def get_resolved_config(ctx: typer.Context) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))
    resolved = resolve_config(
        config,
        profile_name=obj.get("profile"),
        url=obj.get("url"),
    )
    obj["default_format"] = resolved.default_format
    return resolved


@asynccontextmanager
async def open_client(ctx: typer.Context) -> AsyncIterator[DriftClient]:
    """Connect every configured driver and close them all on exit."""
    client = await DriftClient.from_config(get_resolved_config(ctx))
    async with client:
        yield client


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "configured": obj.get("default_format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_result(ctx: typer.Context, result: QueryResult) -> None:
    formatter = get_formatter(**format_options(ctx))
    write_output(formatter, result)
