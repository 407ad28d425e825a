from __future__ import annotations

import sys
from typing import Annotated

import typer

from sqlbridge.cli.commands._shared import (
    CompactOption,
    FormatOption,
    NoHeaderOption,
    TableOption,
    WidthOption,
    apply_local_format_options,
    output_result,
    run_with_executor,
)
from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.exit_codes import ExitCode
from sqlbridge.core.query_source import resolve_query_source


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
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Query timeout in seconds"),
    ] = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """Execute a SQL query from file, inline (-e), or stdin.

    The text is sent as-is; no placeholder processing is applied.
    """
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        sql = resolve_query_source(inline=execute, file_path=file)
    except MalformedInputError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    result = run_with_executor(
        ctx,
        lambda executor, descriptor: executor.execute(descriptor, sql),
        timeout=timeout,
    )
    output_result(ctx, result)
