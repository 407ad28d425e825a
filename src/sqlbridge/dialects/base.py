"""Dialect capability interface.

A Dialect turns logical operations into parameterized Statements for one
engine. It never touches a connection. ``Dialect`` declares the full
capability set; ``StandardDialect`` fills in the ANSI-shaped data paths
(select, count, insert, update, delete) that most engines share, leaving
each engine module to supply quoting, paging and catalog queries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.filters import build_where
from sqlbridge.core.models import Engine, ParamStyle, Statement

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlbridge.core.filters import RowPage, WhereFilter


class Dialect(ABC):
    """Statement builders for a single engine.

    Builders for operations the engine cannot perform return None; the
    statement maps in ``sqlbridge.statements`` then leave that engine out.
    """

    engine: ClassVar[Engine]
    paramstyle: ClassVar[ParamStyle] = "format"
    quote_chars: ClassVar[tuple[str, str]] = ('"', '"')
    supports_ilike: ClassVar[bool] = False
    supports_returning: ClassVar[bool] = False

    @property
    def placeholder(self) -> str:
        return "?" if self.paramstyle == "qmark" else "%s"

    def quote_identifier(self, name: str) -> str:
        opening, closing = self.quote_chars
        quoted = f"{opening}{name.replace(closing, closing * 2)}{closing}"
        if self.paramstyle == "format":
            quoted = quoted.replace("%", "%%")
        return quoted

    def qualify(self, schema: str | None, table: str) -> str:
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    def statement(self, sql: str, params: Iterable[Any] = ()) -> Statement:
        return Statement(sql=sql, params=tuple(params), paramstyle=self.paramstyle)

    # -- data paths --

    @abstractmethod
    def build_select(self, page: RowPage) -> Statement: ...

    @abstractmethod
    def build_count(
        self,
        schema: str | None,
        table: str,
        filters: Sequence[WhereFilter] = (),
        concat: str = "AND",
    ) -> Statement: ...

    @abstractmethod
    def build_insert(
        self, schema: str | None, table: str, values: Mapping[str, Any]
    ) -> Statement | None: ...

    @abstractmethod
    def build_update(
        self,
        schema: str | None,
        table: str,
        values: Mapping[str, Any],
        keys: Mapping[str, Any],
    ) -> Statement: ...

    @abstractmethod
    def build_delete(
        self, schema: str | None, table: str, rows: Sequence[Mapping[str, Any]]
    ) -> Statement: ...

    @abstractmethod
    def build_lookup(
        self,
        schema: str | None,
        table: str,
        columns: Sequence[str] | None,
        keys: Mapping[str, Any],
    ) -> Statement: ...

    # -- catalog --

    @abstractmethod
    def schemas(self) -> Statement: ...

    @abstractmethod
    def tables(self, schema: str | None = None) -> Statement: ...

    @abstractmethod
    def columns(self, schema: str | None, table: str) -> Statement: ...

    @abstractmethod
    def primary_keys(self, schema: str | None = None) -> Statement: ...

    @abstractmethod
    def foreign_keys(self, schema: str | None = None) -> Statement | None: ...

    @abstractmethod
    def version(self) -> Statement: ...

    def indexes(self, schema: str | None = None) -> Statement | None:
        return None

    def constraints(self, schema: str | None = None) -> Statement | None:
        return None

    def enums(self, schema: str | None = None) -> Statement | None:
        return None

    def estimate_count(self, schema: str | None, table: str) -> Statement | None:
        return None

    # -- DDL --

    def drop_table(
        self, schema: str | None, table: str, cascade: bool = False
    ) -> Statement:
        return self.statement(f"DROP TABLE {self.qualify(schema, table)}")

    def rename_table(self, schema: str | None, table: str, new_name: str) -> Statement:
        return self.statement(
            f"ALTER TABLE {self.qualify(schema, table)} "
            f"RENAME TO {self.quote_identifier(new_name)}"
        )


class StandardDialect(Dialect):
    """Shared ANSI-style data paths with engine hooks for paging and returning."""

    def order_clause(self, order_by: Mapping[str, str]) -> str:
        if not order_by:
            return ""
        entries = ", ".join(
            f"{self.quote_identifier(column)} {direction}"
            for column, direction in order_by.items()
        )
        return f" ORDER BY {entries}"

    def paging_clause(self, limit: int, offset: int) -> str:
        return f" LIMIT {int(limit)} OFFSET {int(offset)}"

    def output_clauses(self, columns: Iterable[str] | None) -> tuple[str, str]:
        """Clauses echoing written values, placed before and after the body.

        ``columns=None`` echoes the whole row.
        """
        if not self.supports_returning:
            return "", ""
        if columns is None:
            return "", " RETURNING *"
        return "", " RETURNING " + ", ".join(
            self.quote_identifier(c) for c in columns
        )

    def _where(
        self, filters: Sequence[WhereFilter], concat: str
    ) -> tuple[str, list[Any]]:
        clause, params = build_where(self, filters, concat)
        return (f" WHERE {clause}" if clause else ""), params

    def _key_predicate(
        self, keys: Mapping[str, Any], params: list[Any]
    ) -> str:
        if not keys:
            raise MalformedInputError("At least one key column is required")
        parts = []
        for column, value in keys.items():
            parts.append(f"{self.quote_identifier(column)} = {self.placeholder}")
            params.append(value)
        return " AND ".join(parts)

    def _projection(self, select: Sequence[str] | None) -> str:
        if not select:
            return "*"
        return ", ".join(self.quote_identifier(c) for c in select)

    def build_select(self, page: RowPage) -> Statement:
        where, params = self._where(page.filters, page.concat)
        sql = (
            f"SELECT {self._projection(page.select)} "
            f"FROM {self.qualify(page.schema_name, page.table)}"
            f"{where}"
            f"{self.order_clause(page.order_by)}"
            f"{self.paging_clause(page.limit, page.offset)}"
        )
        return self.statement(sql, params)

    def build_lookup(
        self,
        schema: str | None,
        table: str,
        columns: Sequence[str] | None,
        keys: Mapping[str, Any],
    ) -> Statement:
        params: list[Any] = []
        predicate = self._key_predicate(keys, params)
        sql = (
            f"SELECT {self._projection(columns)} "
            f"FROM {self.qualify(schema, table)} WHERE {predicate}"
        )
        return self.statement(sql, params)

    def build_count(
        self,
        schema: str | None,
        table: str,
        filters: Sequence[WhereFilter] = (),
        concat: str = "AND",
    ) -> Statement:
        where, params = self._where(filters, concat)
        sql = f"SELECT COUNT(*) AS total FROM {self.qualify(schema, table)}{where}"
        return self.statement(sql, params)

    def default_values_clause(self) -> str | None:
        """Body for inserting a row made only of column defaults."""
        return " DEFAULT VALUES"

    def build_insert(
        self, schema: str | None, table: str, values: Mapping[str, Any]
    ) -> Statement | None:
        target = self.qualify(schema, table)
        before, after = self.output_clauses(None)
        if not values:
            body = self.default_values_clause()
            if body is None:
                return None
            return self.statement(f"INSERT INTO {target}{before}{body}{after}")
        columns = ", ".join(self.quote_identifier(c) for c in values)
        placeholders = ", ".join([self.placeholder] * len(values))
        sql = (
            f"INSERT INTO {target} ({columns}){before} "
            f"VALUES ({placeholders}){after}"
        )
        return self.statement(sql, values.values())

    def build_update(
        self,
        schema: str | None,
        table: str,
        values: Mapping[str, Any],
        keys: Mapping[str, Any],
    ) -> Statement:
        if not values:
            raise MalformedInputError("Nothing to update")
        params: list[Any] = []
        assignments = []
        for column, value in values.items():
            assignments.append(f"{self.quote_identifier(column)} = {self.placeholder}")
            params.append(value)
        predicate = self._key_predicate(keys, params)
        before, after = self.output_clauses(list(values))
        sql = (
            f"UPDATE {self.qualify(schema, table)} SET {', '.join(assignments)}"
            f"{before} WHERE {predicate}{after}"
        )
        return self.statement(sql, params)

    def delete_predicate(
        self, rows: Sequence[Mapping[str, Any]], params: list[Any]
    ) -> str:
        if not rows:
            raise MalformedInputError("No rows to delete")
        groups = [f"({self._key_predicate(row, params)})" for row in rows]
        return " OR ".join(groups)

    def build_delete(
        self, schema: str | None, table: str, rows: Sequence[Mapping[str, Any]]
    ) -> Statement:
        params: list[Any] = []
        predicate = self.delete_predicate(rows, params)
        sql = f"DELETE FROM {self.qualify(schema, table)} WHERE {predicate}"
        return self.statement(sql, params)
