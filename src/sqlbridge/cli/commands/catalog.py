"""Catalog and row commands."""

from __future__ import annotations

from typing import Annotated

import typer

from sqlbridge.cli.commands._shared import (
    CompactOption,
    FormatOption,
    NoHeaderOption,
    SchemaOption,
    TableOption,
    WidthOption,
    apply_local_format_options,
    get_resolved_config,
    output_result,
    parse_table_arg,
    records_result,
    run_with_executor,
)
from sqlbridge.core import introspection
from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.filters import RowPage, parse_filter_expression
from sqlbridge.core.models import ColumnMeta, QueryResult
from sqlbridge.core.validators import (
    ColumnDescriptor,
    ConstraintRecord,
    EnumRecord,
    ForeignKeyRecord,
    IndexRecord,
    PrimaryKeyRecord,
    SchemaRecord,
    TableRecord,
)


def _single_value(name: str, value: object) -> QueryResult:
    return QueryResult(columns=[ColumnMeta(name=name)], rows=[{name: value}], row_count=1)


def test_command(ctx: typer.Context) -> None:
    """Connect, run SELECT 1 and disconnect."""
    run_with_executor(ctx, lambda executor, descriptor: executor.test_connection(descriptor))
    typer.echo("Connection OK")


def schemas_command(
    ctx: typer.Context,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List user schemas (databases on MySQL/ClickHouse), system ones excluded."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    records = run_with_executor(ctx, introspection.list_schemas)
    output_result(ctx, records_result(SchemaRecord, records))


def tables_command(
    ctx: typer.Context,
    schema: SchemaOption = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List tables and views, optionally within one schema."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    records = run_with_executor(
        ctx, lambda executor, descriptor: introspection.list_tables(executor, descriptor, schema)
    )
    output_result(ctx, records_result(TableRecord, records))


def columns_command(
    ctx: typer.Context,
    table_arg: Annotated[str, typer.Argument(help="Table name (schema.table or table)")],
    schema: SchemaOption = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """Show column definitions of a table."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    schema_name, table_name = parse_table_arg(table_arg, schema)
    records = run_with_executor(
        ctx,
        lambda executor, descriptor: introspection.list_columns(
            executor, descriptor, schema_name, table_name
        ),
    )
    output_result(ctx, records_result(ColumnDescriptor, records))


def keys_command(
    ctx: typer.Context,
    schema: SchemaOption = None,
    foreign: Annotated[
        bool,
        typer.Option("--foreign", help="Show foreign keys instead of primary keys"),
    ] = False,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List primary keys per table, or foreign key columns with --foreign."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    if foreign:
        fks = run_with_executor(
            ctx,
            lambda executor, descriptor: introspection.get_foreign_keys(
                executor, descriptor, schema
            ),
        )
        output_result(ctx, records_result(ForeignKeyRecord, fks))
        return
    pks = run_with_executor(
        ctx,
        lambda executor, descriptor: introspection.get_primary_keys(executor, descriptor, schema),
    )
    output_result(ctx, records_result(PrimaryKeyRecord, pks))


def indexes_command(
    ctx: typer.Context,
    schema: SchemaOption = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List index columns with their unique and primary flags."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    records = run_with_executor(
        ctx, lambda executor, descriptor: introspection.list_indexes(executor, descriptor, schema)
    )
    output_result(ctx, records_result(IndexRecord, records))


def constraints_command(
    ctx: typer.Context,
    schema: SchemaOption = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List primary key, unique and foreign key constraints."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    records = run_with_executor(
        ctx,
        lambda executor, descriptor: introspection.list_constraints(
            executor, descriptor, schema
        ),
    )
    output_result(ctx, records_result(ConstraintRecord, records))


def enums_command(
    ctx: typer.Context,
    schema: SchemaOption = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """List enum types and their labels."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    records = run_with_executor(
        ctx, lambda executor, descriptor: introspection.list_enums(executor, descriptor, schema)
    )
    output_result(ctx, records_result(EnumRecord, records))


def _parse_order(entries: list[str]) -> dict[str, str]:
    order: dict[str, str] = {}
    for entry in entries:
        column, _, direction = entry.partition(":")
        direction = direction.strip().upper() or "ASC"
        if not column.strip() or direction not in ("ASC", "DESC"):
            raise MalformedInputError(f"Invalid --order value: {entry!r}. Use column[:asc|desc]")
        order[column.strip()] = direction
    return order


def rows_command(
    ctx: typer.Context,
    table_arg: Annotated[str, typer.Argument(help="Table name (schema.table or table)")],
    schema: SchemaOption = None,
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Filter as 'column OP value'; repeatable"),
    ] = None,
    any_match: Annotated[
        bool,
        typer.Option("--or", help="Join filters with OR instead of AND"),
    ] = False,
    order: Annotated[
        list[str] | None,
        typer.Option("--order", "-o", help="Sort as column[:asc|desc]; repeatable"),
    ] = None,
    select: Annotated[
        str | None,
        typer.Option("--select", help="Comma-separated columns to return"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=0, help="Rows per page"),
    ] = None,
    offset: Annotated[
        int,
        typer.Option("--offset", min=0, help="Rows to skip"),
    ] = 0,
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
    """Fetch one page of rows with filters, ordering and projection."""
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    schema_name, table_name = parse_table_arg(table_arg, schema)
    if limit is None:
        limit = get_resolved_config(ctx).page_limit
    page = RowPage(
        schema_name=schema_name,
        table=table_name,
        limit=limit,
        offset=offset,
        order_by=_parse_order(order or []),
        filters=[parse_filter_expression(expr) for expr in where or []],
        concat="OR" if any_match else "AND",
        select=[c.strip() for c in select.split(",") if c.strip()] if select else None,
    )
    result = run_with_executor(
        ctx,
        lambda executor, descriptor: introspection.fetch_rows(executor, descriptor, page),
        timeout=timeout,
    )
    output_result(ctx, result)


def count_command(
    ctx: typer.Context,
    table_arg: Annotated[str, typer.Argument(help="Table name (schema.table or table)")],
    schema: SchemaOption = None,
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Filter as 'column OP value'; repeatable"),
    ] = None,
    any_match: Annotated[
        bool,
        typer.Option("--or", help="Join filters with OR instead of AND"),
    ] = False,
    estimate: Annotated[
        bool,
        typer.Option("--estimate", help="Use the catalog row estimate when available"),
    ] = False,
) -> None:
    """Count rows in a table."""
    schema_name, table_name = parse_table_arg(table_arg, schema)
    filters = [parse_filter_expression(expr) for expr in where or []]
    total = run_with_executor(
        ctx,
        lambda executor, descriptor: introspection.count_rows(
            executor,
            descriptor,
            schema_name,
            table_name,
            filters,
            "OR" if any_match else "AND",
            exact=not estimate,
        ),
    )
    typer.echo(str(total))


def version_command(ctx: typer.Context) -> None:
    """Show the database server version."""
    version = run_with_executor(ctx, introspection.server_version)
    output_result(ctx, _single_value("version", version))
