"""Shared CLI plumbing for command modules.

Config resolution, executor lifecycle, format-option handling and output
helpers.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

import typer

from sqlbridge.cli.output import OutputFormat, get_formatter, write_output
from sqlbridge.core.cache import ClientCache
from sqlbridge.core.config import load_config, resolve_config
from sqlbridge.core.executor import QueryExecutor
from sqlbridge.core.models import ColumnMeta, QueryResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from pydantic import BaseModel

    from sqlbridge.core.config import ResolvedConfig
    from sqlbridge.core.models import ConnectionDescriptor

T = TypeVar("T")

FormatOption = Annotated[
    OutputFormat | None,
    typer.Option("--format", "-f", help="Output format: table|json|csv"),
]
TableOption = Annotated[
    bool,
    typer.Option("--table", help="Shorthand for --format table"),
]
CompactOption = Annotated[
    bool,
    typer.Option("--compact", help="Compact JSON output (no indentation)"),
]
WidthOption = Annotated[
    int | None,
    typer.Option("--width", help="Column width for table format"),
]
NoHeaderOption = Annotated[
    bool,
    typer.Option("--no-header", help="Suppress header row in CSV output"),
]
SchemaOption = Annotated[
    str | None,
    typer.Option("--schema", "-s", help="Schema (database on MySQL/ClickHouse)"),
]


def get_resolved_config(ctx: typer.Context, timeout: float | None = None) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))
    cli_overrides: dict[str, Any] = {"engine": obj.get("engine")}
    if timeout is not None:
        cli_overrides["timeout"] = timeout
    return resolve_config(
        config,
        profile_name=obj.get("profile"),
        url=obj.get("url"),
        **cli_overrides,
    )


def run_with_executor(
    ctx: typer.Context,
    operation: Callable[[QueryExecutor, ConnectionDescriptor], Awaitable[T]],
    timeout: float | None = None,
) -> T:
    """Run ``operation`` against the resolved connection on a fresh event loop.

    The executor and every client it opened are closed before returning.
    """
    resolved = get_resolved_config(ctx, timeout=timeout)
    descriptor = resolved.descriptor()
    ctx.ensure_object(dict)["default_format"] = (
        resolved.default_format if resolved.sources.get("default_format") != "default" else None
    )

    async def main() -> T:
        executor = QueryExecutor(
            cache=ClientCache(resolved.cache.max_clients, resolved.cache.idle_timeout),
            settings=resolved.cache.driver_settings(),
            default_timeout=resolved.default_timeout,
        )
        async with executor:
            return await operation(executor, descriptor)

    return asyncio.run(main())


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "default": obj.get("default_format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_result(ctx: typer.Context, result: QueryResult) -> None:
    formatter = get_formatter(**format_options(ctx))
    write_output(formatter, result)


def records_result(model: type[BaseModel], records: Sequence[BaseModel]) -> QueryResult:
    """Tabulate validated records under their external field names."""
    names = [info.alias or name for name, info in model.model_fields.items()]
    rows = [record.model_dump(by_alias=True) for record in records]
    return QueryResult(
        columns=[ColumnMeta(name=name) for name in names],
        rows=rows,
        row_count=len(rows),
    )


def apply_local_format_options(
    ctx: typer.Context,
    *,
    format: OutputFormat | None = None,
    table: bool = False,
    compact: bool = False,
    width: int | None = None,
    no_header: bool = False,
) -> None:
    if format is not None or table or compact or width is not None or no_header:
        obj = ctx.ensure_object(dict)
        if format is not None:
            obj["format"] = format.value
        if table:
            obj["format"] = "table"
        if compact:
            obj["compact"] = compact
        if width is not None:
            obj["width"] = width
        if no_header:
            obj["no_header"] = no_header


def parse_table_arg(table_arg: str, schema: str | None = None) -> tuple[str | None, str]:
    """Split ``schema.table``; a bare name keeps ``schema`` (possibly None)."""
    if "." in table_arg:
        schema_part, table = table_arg.split(".", 1)
        return schema_part, table
    return schema, table_arg
