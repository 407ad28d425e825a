"""Statement builders.

Each builder is a pure function of object names and paging/filter inputs
returning one Statement per engine that supports the operation. A missing
engine key means "unsupported here"; use for_engine() to select one and
turn the missing case into UnsupportedEngineError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlbridge.core.exceptions import UnsupportedEngineError
from sqlbridge.core.models import Engine
from sqlbridge.dialects import get_dialect, iter_dialects

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from sqlbridge.core.filters import RowPage, WhereFilter
    from sqlbridge.core.models import Statement
    from sqlbridge.dialects.base import Dialect

StatementMap = dict[Engine, "Statement"]


def _collect(
    build: Callable[[Dialect], Statement | None],
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    dialects = (
        iter_dialects() if engines is None else [get_dialect(e) for e in engines]
    )
    result: StatementMap = {}
    for dialect in dialects:
        statement = build(dialect)
        if statement is not None:
            result[dialect.engine] = statement
    return result


def for_engine(statements: Mapping[Engine, Statement], engine: Engine) -> Statement:
    try:
        return statements[engine]
    except KeyError:
        msg = f"Operation is not supported for {engine}"
        raise UnsupportedEngineError(msg) from None


def schemas(engines: Iterable[Engine] | None = None) -> StatementMap:
    return _collect(lambda d: d.schemas(), engines)


def tables(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.tables(schema), engines)


def columns(
    schema: str | None, table: str, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.columns(schema, table), engines)


def primary_keys(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.primary_keys(schema), engines)


def foreign_keys(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.foreign_keys(schema), engines)


def indexes(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.indexes(schema), engines)


def constraints(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.constraints(schema), engines)


def enums(
    schema: str | None = None, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.enums(schema), engines)


def rows(page: RowPage, engines: Iterable[Engine] | None = None) -> StatementMap:
    return _collect(lambda d: d.build_select(page), engines)


def count(
    schema: str | None,
    table: str,
    filters: Sequence[WhereFilter] = (),
    concat: str = "AND",
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(lambda d: d.build_count(schema, table, filters, concat), engines)


def estimate_count(
    schema: str | None, table: str, engines: Iterable[Engine] | None = None
) -> StatementMap:
    return _collect(lambda d: d.estimate_count(schema, table), engines)


def insert_row(
    schema: str | None,
    table: str,
    values: Mapping[str, Any],
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(lambda d: d.build_insert(schema, table, values), engines)


def update_cell(
    schema: str | None,
    table: str,
    column: str,
    value: Any,
    primary_keys: Mapping[str, Any],
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(
        lambda d: d.build_update(schema, table, {column: value}, primary_keys),
        engines,
    )


def lookup_row(
    schema: str | None,
    table: str,
    columns: Sequence[str] | None,
    primary_keys: Mapping[str, Any],
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(
        lambda d: d.build_lookup(schema, table, columns, primary_keys), engines
    )


def delete_rows(
    schema: str | None,
    table: str,
    primary_keys: Sequence[Mapping[str, Any]],
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(lambda d: d.build_delete(schema, table, primary_keys), engines)


def drop_table(
    schema: str | None,
    table: str,
    cascade: bool = False,
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(lambda d: d.drop_table(schema, table, cascade), engines)


def rename_table(
    schema: str | None,
    table: str,
    new_name: str,
    engines: Iterable[Engine] | None = None,
) -> StatementMap:
    return _collect(lambda d: d.rename_table(schema, table, new_name), engines)


def version(engines: Iterable[Engine] | None = None) -> StatementMap:
    return _collect(lambda d: d.version(), engines)
