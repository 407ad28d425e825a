"""Configuration management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from sqlbridge.cli.commands._shared import get_resolved_config
from sqlbridge.core.config import DEFAULT_CONFIG_PATH, load_config
from sqlbridge.core.connection_string import parse_connection_string
from sqlbridge.core.exceptions import MalformedInputError

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _describe_url(url: str | None) -> str:
    """Host/database part of a URL; credentials are never printed."""
    if not url:
        return "not set"
    try:
        return parse_connection_string(url).redacted()
    except MalformedInputError:
        return "<invalid>"


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    resolved = get_resolved_config(ctx)
    config_path: Path | None = ctx.obj.get("config_file")
    sources = resolved.sources

    typer.echo("Connection (resolved):")
    typer.echo(f"  target: {_describe_url(resolved.url)} ({sources.get('url', 'default')})")
    engine = resolved.engine.value if resolved.engine else "not set"
    typer.echo(f"  engine: {engine} ({sources.get('engine', 'default')})")

    typer.echo("")
    typer.echo("General:")
    timeout_source = sources.get("default_timeout", "default")
    typer.echo(f"  timeout: {resolved.default_timeout}s ({timeout_source})")
    format_source = sources.get("default_format", "default")
    typer.echo(f"  format: {resolved.default_format} ({format_source})")
    typer.echo(f"  page limit: {resolved.page_limit} ({sources.get('page_limit', 'default')})")

    typer.echo("")
    typer.echo("Client cache:")
    typer.echo(f"  max clients: {resolved.cache.max_clients}")
    typer.echo(f"  idle timeout: {resolved.cache.idle_timeout}s")
    typer.echo(f"  pool size: {resolved.cache.pool_min_size}-{resolved.cache.pool_max_size}")

    typer.echo("")
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
        typer.echo(f"      target: {_describe_url(profile.url)}")
        if profile.engine is not None:
            typer.echo(f"      engine: {profile.engine.value}")
        typer.echo("")
