"""Database introspection and row operations.

Each function composes a statement builder, the executor and a result
validator for one logical operation. Catalog rows that fail validation
raise ValidationError; nothing is silently dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlbridge import statements
from sqlbridge.core.exceptions import ValidationError
from sqlbridge.core.models import Engine
from sqlbridge.core.validators import (
    ColumnDescriptor,
    ConstraintRecord,
    CountRecord,
    EnumColumnRow,
    EnumLabelRow,
    ForeignKeyRecord,
    IndexRecord,
    PrimaryKeyRecord,
    SchemaRecord,
    TableRecord,
    VersionRecord,
    enum_from_clickhouse_column,
    enum_from_mysql_column,
    fold_enums,
    validate_row,
    validate_rows,
)
from sqlbridge.dialects import get_dialect

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping, Sequence

    from sqlbridge.core.executor import QueryExecutor
    from sqlbridge.core.filters import RowPage, WhereFilter
    from sqlbridge.core.models import ConnectionDescriptor, QueryResult
    from sqlbridge.core.validators import EnumRecord


async def list_schemas(
    executor: QueryExecutor, descriptor: ConnectionDescriptor
) -> list[SchemaRecord]:
    result = await executor.run(descriptor, statements.schemas([descriptor.engine]))
    return validate_rows(SchemaRecord, result.rows)


async def list_tables(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[TableRecord]:
    result = await executor.run(descriptor, statements.tables(schema, [descriptor.engine]))
    return validate_rows(TableRecord, result.rows)


async def list_columns(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
) -> list[ColumnDescriptor]:
    """Column descriptors of one table, in declaration order. Never cached."""
    result = await executor.run(
        descriptor, statements.columns(schema, table, [descriptor.engine])
    )
    return validate_rows(ColumnDescriptor, result.rows)


async def get_primary_keys(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[PrimaryKeyRecord]:
    result = await executor.run(
        descriptor, statements.primary_keys(schema, [descriptor.engine])
    )
    return validate_rows(PrimaryKeyRecord, result.rows)


async def get_foreign_keys(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[ForeignKeyRecord]:
    """Foreign key columns. Engines without foreign keys return an empty list."""
    built = statements.foreign_keys(schema, [descriptor.engine])
    if descriptor.engine not in built:
        return []
    result = await executor.run(descriptor, built)
    return validate_rows(ForeignKeyRecord, result.rows)


async def list_indexes(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[IndexRecord]:
    """Index columns, one record per (index, column) in key order.

    ClickHouse reports its sorting key as a non-unique ``primary_key`` index.
    """
    built = statements.indexes(schema, [descriptor.engine])
    if descriptor.engine not in built:
        return []
    result = await executor.run(descriptor, built)
    return validate_rows(IndexRecord, result.rows)


async def list_constraints(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[ConstraintRecord]:
    """Primary key, unique and foreign key constraints, one record per column.

    ClickHouse has no constraints of these kinds and returns an empty list.
    """
    built = statements.constraints(schema, [descriptor.engine])
    if descriptor.engine not in built:
        return []
    result = await executor.run(descriptor, built)
    return validate_rows(ConstraintRecord, result.rows)


async def list_enums(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None = None,
) -> list[EnumRecord]:
    """Enum types and their labels.

    Postgres enums are named types; MySQL and ClickHouse enums live on
    columns, so those records carry the owning table and column.
    """
    built = statements.enums(schema, [descriptor.engine])
    if descriptor.engine not in built:
        return []
    result = await executor.run(descriptor, built)
    match descriptor.engine:
        case Engine.POSTGRES:
            return fold_enums(validate_rows(EnumLabelRow, result.rows))
        case Engine.MYSQL:
            return [
                enum_from_mysql_column(row)
                for row in validate_rows(EnumColumnRow, result.rows)
            ]
        case Engine.CLICKHOUSE:
            return [
                enum_from_clickhouse_column(row)
                for row in validate_rows(EnumColumnRow, result.rows)
            ]
        case _:
            msg = f"Unexpected enum rows for {descriptor.engine}"
            raise ValidationError(msg)


async def fetch_rows(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    page: RowPage,
    *,
    timeout: float | None = None,
    cancel: asyncio.Event | None = None,
) -> QueryResult:
    return await executor.run(
        descriptor,
        statements.rows(page, [descriptor.engine]),
        timeout=timeout,
        cancel=cancel,
    )


async def count_rows(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    filters: Sequence[WhereFilter] = (),
    concat: str = "AND",
    *,
    exact: bool = True,
) -> int:
    """Number of rows matching ``filters``.

    With ``exact=False`` and no filters, the catalog's row estimate is used
    when the engine keeps one; a missing or negative estimate falls back to
    ``COUNT(*)``.
    """
    if not exact and not filters:
        built = statements.estimate_count(schema, table, [descriptor.engine])
        if descriptor.engine in built:
            result = await executor.run(descriptor, built)
            if result.rows:
                estimate = validate_row(CountRecord, result.rows[0]).total
                if estimate is not None and estimate >= 0:
                    return estimate

    result = await executor.run(
        descriptor, statements.count(schema, table, filters, concat, [descriptor.engine])
    )
    if not result.rows:
        raise ValidationError("Count query returned no rows")
    total = validate_row(CountRecord, result.rows[0]).total
    return total or 0


async def update_cell(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    column: str,
    value: Any,
    primary_keys: Mapping[str, Any],
) -> Any:
    """Set one cell and return the value the database stored.

    Engines without a returning clause get a follow-up select by key.
    """
    engines = [descriptor.engine]
    result = await executor.run(
        descriptor,
        statements.update_cell(schema, table, column, value, primary_keys, engines),
    )
    if not get_dialect(descriptor.engine).supports_returning:
        result = await executor.run(
            descriptor,
            statements.lookup_row(schema, table, [column], primary_keys, engines),
        )
    if not result.rows:
        return None
    return result.rows[0].get(column)


async def insert_row(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    values: Mapping[str, Any],
) -> QueryResult:
    """Insert one row. Engines with a returning clause echo the stored row."""
    return await executor.run(
        descriptor, statements.insert_row(schema, table, values, [descriptor.engine])
    )


async def delete_rows(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    primary_keys: Sequence[Mapping[str, Any]],
) -> int | None:
    """Delete rows by primary key and return how many went.

    None when the engine cannot tell; ClickHouse mutations report no count.
    """
    result = await executor.run(
        descriptor,
        statements.delete_rows(schema, table, primary_keys, [descriptor.engine]),
    )
    if result.row_count < 0:
        return None
    return result.row_count


async def rename_table(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    new_name: str,
) -> None:
    await executor.run(
        descriptor, statements.rename_table(schema, table, new_name, [descriptor.engine])
    )


async def drop_table(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    schema: str | None,
    table: str,
    cascade: bool = False,
) -> None:
    await executor.run(
        descriptor, statements.drop_table(schema, table, cascade, [descriptor.engine])
    )


async def server_version(
    executor: QueryExecutor, descriptor: ConnectionDescriptor
) -> str:
    result = await executor.run(descriptor, statements.version([descriptor.engine]))
    if not result.rows:
        raise ValidationError("Version query returned no rows")
    return validate_row(VersionRecord, result.rows[0]).version
