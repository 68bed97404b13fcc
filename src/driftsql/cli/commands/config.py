"""Configuration inspection commands."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

import typer

from driftsql.cli.commands._shared import get_resolved_config
from driftsql.core.config import DEFAULT_CONFIG_PATH, load_config

if TYPE_CHECKING:
    from pathlib import Path

    from driftsql.core.config import DriverConfig

config_app = typer.Typer(help="Configuration management commands")

_SECRET_FIELDS = ("auth_token", "api_key")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def mask_url(url: str) -> str:
    """Replace the password in a URL with ``***``."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


def _describe(config: DriverConfig) -> list[tuple[str, str]]:
    fields: list[tuple[str, str]] = [("type", type(config).__name__)]
    for name, value in config.model_dump(exclude_none=True).items():
        if name in _SECRET_FIELDS:
            fields.append((name, "***"))
        elif isinstance(value, dict):
            url = value.get("url", "")
            fields.append((name, mask_url(str(url))))
        elif isinstance(value, str):
            fields.append((name, mask_url(value)))
        else:
            fields.append((name, str(value)))
    return fields


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display the resolved driver configuration."""
    resolved = get_resolved_config(ctx)
    config_path: Path | None = ctx.obj.get("config_file")

    typer.echo(f"Primary ({resolved.source}):")
    for field_name, value in _describe(resolved.primary):
        typer.echo(f"  {field_name}: {value}")

    for index, fallback in enumerate(resolved.fallbacks, start=1):
        typer.echo("")
        typer.echo(f"Fallback {index}:")
        for field_name, value in _describe(fallback):
            typer.echo(f"  {field_name}: {value}")

    typer.echo("")
    typer.echo(f"Format: {resolved.default_format or 'auto'}")
    typer.echo(f"Active Profile: {resolved.active_profile or 'none'}")
    typer.echo(f"Config File: {config_path or DEFAULT_CONFIG_PATH}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List available connection profiles."""
    config_path: Path | None = ctx.obj.get("config_file")
    app_config = load_config(config_path)
    active_profile = ctx.obj.get("profile") or app_config.default_profile

    if not app_config.profiles:
        typer.echo("No profiles configured.")
        typer.echo(f"Add profiles to: {config_path or DEFAULT_CONFIG_PATH}")
        return

    typer.echo("Available Profiles:")
    typer.echo("")
    for name, profile in sorted(app_config.profiles.items()):
        is_active = name == active_profile
        marker = "* " if is_active else "  "
        label = " (active)" if is_active else ""
        typer.echo(f"{marker}{name}{label}")

        target = profile.connection_string or profile.url or ""
        typer.echo(f"      driver: {profile.driver or 'auto'}")
        typer.echo(f"      url: {mask_url(target)}")
        if profile.fallbacks:
            typer.echo(f"      fallbacks: {', '.join(profile.fallbacks)}")
        typer.echo("")
