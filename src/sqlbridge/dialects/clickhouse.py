"""ClickHouse dialect.

Row mutations are asynchronous ``ALTER TABLE ... UPDATE/DELETE`` commands
with no RETURNING form. ClickHouse has no foreign keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.models import Engine, Statement
from sqlbridge.dialects.base import StandardDialect

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_SYSTEM_DATABASES = "('system', 'information_schema', 'INFORMATION_SCHEMA')"


class ClickHouseDialect(StandardDialect):
    engine = Engine.CLICKHOUSE
    quote_chars = ("`", "`")
    supports_ilike = True

    def _database(self, schema: str | None, params: list[Any]) -> str:
        if schema:
            params.append(schema)
            return "%s"
        return "currentDatabase()"

    def default_values_clause(self) -> None:
        return None

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
            assignments.append(f"{self.quote_identifier(column)} = %s")
            params.append(value)
        predicate = self._key_predicate(keys, params)
        sql = (
            f"ALTER TABLE {self.qualify(schema, table)} "
            f"UPDATE {', '.join(assignments)} WHERE {predicate}"
        )
        return self.statement(sql, params)

    def build_delete(
        self, schema: str | None, table: str, rows: Sequence[Mapping[str, Any]]
    ) -> Statement:
        params: list[Any] = []
        predicate = self.delete_predicate(rows, params)
        sql = f"ALTER TABLE {self.qualify(schema, table)} DELETE WHERE {predicate}"
        return self.statement(sql, params)

    def rename_table(self, schema: str | None, table: str, new_name: str) -> Statement:
        return self.statement(
            f"RENAME TABLE {self.qualify(schema, table)} "
            f"TO {self.qualify(schema, new_name)}"
        )

    def schemas(self) -> Statement:
        return self.statement(
            "SELECT name AS `schema` FROM system.databases "
            f"WHERE name NOT IN {_SYSTEM_DATABASES} ORDER BY name"
        )

    def tables(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT database AS `schema`, name, "
            "if(endsWith(engine, 'View'), 'view', 'table') AS type "
            f"FROM system.tables WHERE database NOT IN {_SYSTEM_DATABASES}"
        )
        params: list[str] = []
        if schema:
            sql += " AND database = %s"
            params.append(schema)
        sql += " ORDER BY database, name"
        return self.statement(sql, params)

    def columns(self, schema: str | None, table: str) -> Statement:
        params: list[Any] = []
        database = self._database(schema, params)
        params.append(table)
        return self.statement(
            "SELECT database AS `schema`, table AS `table`, name, type, "
            "startsWith(type, 'Nullable(') AS nullable, "
            "nullIf(default_expression, '') AS `default` "
            f"FROM system.columns WHERE database = {database} AND table = %s "
            "ORDER BY position",
            params,
        )

    def primary_keys(self, schema: str | None = None) -> Statement:
        inner = (
            "SELECT database, table, name FROM system.columns "
            f"WHERE is_in_primary_key = 1 AND database NOT IN {_SYSTEM_DATABASES}"
        )
        params: list[str] = []
        if schema:
            inner += " AND database = %s"
            params.append(schema)
        inner += " ORDER BY database, table, position"
        return self.statement(
            "SELECT table AS `table`, database AS `schema`, "
            "arrayStringConcat(groupArray(name), ', ') AS primary_keys "
            f"FROM ({inner}) GROUP BY database, table ORDER BY database, table",
            params,
        )

    def indexes(self, schema: str | None = None) -> Statement:
        # The sorting key is the only index over plain columns, and it is
        # not unique.
        sql = (
            "SELECT database AS `schema`, table AS `table`, 'primary_key' AS name, "
            "name AS `column`, 0 AS is_unique, 1 AS is_primary "
            "FROM system.columns "
            f"WHERE is_in_primary_key = 1 AND database NOT IN {_SYSTEM_DATABASES}"
        )
        params: list[str] = []
        if schema:
            sql += " AND database = %s"
            params.append(schema)
        sql += " ORDER BY database, table, position"
        return self.statement(sql, params)

    def foreign_keys(self, schema: str | None = None) -> None:
        return None

    def enums(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT database AS `schema`, table AS `table`, name AS `column`, "
            "type AS column_type FROM system.columns "
            "WHERE (startsWith(type, 'Enum') OR startsWith(type, 'Nullable(Enum')) "
            f"AND database NOT IN {_SYSTEM_DATABASES}"
        )
        params: list[str] = []
        if schema:
            sql += " AND database = %s"
            params.append(schema)
        sql += " ORDER BY database, table, position"
        return self.statement(sql, params)

    def estimate_count(self, schema: str | None, table: str) -> Statement:
        params: list[Any] = []
        database = self._database(schema, params)
        params.append(table)
        return self.statement(
            "SELECT total_rows AS total FROM system.tables "
            f"WHERE database = {database} AND name = %s",
            params,
        )

    def version(self) -> Statement:
        return self.statement("SELECT version() AS version")
