"""sqlbridge main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from sqlbridge.__about__ import __version__
from sqlbridge.cli.commands.catalog import (
    columns_command,
    constraints_command,
    count_command,
    enums_command,
    indexes_command,
    keys_command,
    rows_command,
    schemas_command,
    tables_command,
    test_command,
    version_command,
)
from sqlbridge.cli.commands.config import config_app
from sqlbridge.cli.commands.query import query_command
from sqlbridge.cli.output import OutputFormat  # noqa: TC001
from sqlbridge.core.exceptions import SqlBridgeError
from sqlbridge.core.logging import setup_logging
from sqlbridge.core.monitoring import setup_sentry

app = typer.Typer(
    help="sqlbridge - query and inspect Postgres, MySQL, MSSQL, ClickHouse and SQLite",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("test")(test_command)
app.command("schemas")(schemas_command)
app.command("tables")(tables_command)
app.command("columns")(columns_command)
app.command("keys")(keys_command)
app.command("indexes")(indexes_command)
app.command("constraints")(constraints_command)
app.command("enums")(enums_command)
app.command("rows")(rows_command)
app.command("count")(count_command)
app.command("version")(version_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sqlbridge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit logs as JSON lines on stderr"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named connection profile"),
    ] = None,
    url: Annotated[
        str | None,
        typer.Option("--url", "-u", help="Connection string"),
    ] = None,
    engine: Annotated[
        str | None,
        typer.Option(
            "--engine",
            "-E",
            help="postgres|mysql|mssql|clickhouse|sqlite (default: from URL scheme)",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table", help="Shorthand for --format table"),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """sqlbridge - query and inspect Postgres, MySQL, MSSQL, ClickHouse and SQLite."""
    setup_logging(verbose, json_logs=json_logs)
    setup_sentry()

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "sqlbridge"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["profile"] = profile
    ctx.obj["url"] = url
    ctx.obj["engine"] = engine
    ctx.obj["config_file"] = config_file

    ctx.obj["format"] = "table" if table else (format.value if format else None)
    ctx.obj["compact"] = compact
    ctx.obj["width"] = width
    ctx.obj["no_header"] = no_header


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except SqlBridgeError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.user_message}", err=True)
        if e.user_message != e.message:
            typer.echo(f"Details: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
