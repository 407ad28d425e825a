"""SQLite dialect.

Schemas are attached databases (``main`` by default); catalog queries go
through ``sqlite_master`` and the table-valued pragma functions.
"""

from __future__ import annotations

from sqlbridge.core.models import Engine, Statement
from sqlbridge.dialects.base import StandardDialect

DEFAULT_SCHEMA = "main"


class SQLiteDialect(StandardDialect):
    engine = Engine.SQLITE
    paramstyle = "qmark"
    supports_returning = True

    def _master(self, schema: str) -> str:
        return f"{self.quote_identifier(schema)}.sqlite_master"

    def schemas(self) -> Statement:
        return self.statement(
            'SELECT name AS "schema" FROM pragma_database_list ORDER BY seq'
        )

    def tables(self, schema: str | None = None) -> Statement:
        schema = schema or DEFAULT_SCHEMA
        return self.statement(
            'SELECT ? AS "schema", name, type '
            f"FROM {self._master(schema)} "
            "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
            "ORDER BY name",
            (schema,),
        )

    def columns(self, schema: str | None, table: str) -> Statement:
        schema = schema or DEFAULT_SCHEMA
        return self.statement(
            'SELECT ? AS "schema", ? AS "table", name, type, '
            'NOT "notnull" AS nullable, dflt_value AS "default" '
            "FROM pragma_table_info(?, ?) ORDER BY cid",
            (schema, table, table, schema),
        )

    def primary_keys(self, schema: str | None = None) -> Statement:
        schema = schema or DEFAULT_SCHEMA
        return self.statement(
            'SELECT tbl AS "table", ? AS "schema", '
            "group_concat(col, ', ') AS primary_keys FROM ("
            "SELECT m.name AS tbl, p.name AS col "
            f"FROM {self._master(schema)} m JOIN pragma_table_info(m.name, ?) p "
            "WHERE m.type = 'table' AND p.pk > 0 ORDER BY m.name, p.pk"
            ") GROUP BY tbl ORDER BY tbl",
            (schema, schema),
        )

    def foreign_keys(self, schema: str | None = None) -> Statement:
        schema = schema or DEFAULT_SCHEMA
        return self.statement(
            "SELECT 'fk_' || m.name || '_' || p.id AS name, "
            '? AS "schema", m.name AS "table", p."from" AS "column", '
            '? AS references_schema, p."table" AS references_table, '
            'p."to" AS references_column '
            f"FROM {self._master(schema)} m "
            "JOIN pragma_foreign_key_list(m.name, ?) p "
            "WHERE m.type = 'table' ORDER BY m.name, p.id, p.seq",
            (schema, schema, schema),
        )

    def indexes(self, schema: str | None = None) -> Statement:
        # Rowid aliases (INTEGER PRIMARY KEY) have no index and do not appear.
        schema = schema or DEFAULT_SCHEMA
        return self.statement(
            'SELECT ? AS "schema", m.name AS "table", il.name AS name, '
            'ii.name AS "column", il."unique" AS is_unique, '
            "il.origin = 'pk' AS is_primary "
            f"FROM {self._master(schema)} m "
            "JOIN pragma_index_list(m.name, ?) il "
            "JOIN pragma_index_info(il.name, ?) ii "
            "WHERE m.type = 'table' ORDER BY m.name, il.name, ii.seqno",
            (schema, schema, schema),
        )

    def constraints(self, schema: str | None = None) -> Statement:
        schema = schema or DEFAULT_SCHEMA
        master = self._master(schema)
        return self.statement(
            'SELECT "schema", "table", name, type, "column", '
            "references_schema, references_table, references_column FROM ("
            'SELECT ? AS "schema", m.name AS "table", \'pk_\' || m.name AS name, '
            "'PRIMARY KEY' AS type, p.name AS \"column\", "
            "NULL AS references_schema, NULL AS references_table, "
            "NULL AS references_column, p.pk AS seq "
            f"FROM {master} m JOIN pragma_table_info(m.name, ?) p "
            "WHERE m.type = 'table' AND p.pk > 0 "
            "UNION ALL "
            "SELECT ?, m.name, il.name, 'UNIQUE', ii.name, NULL, NULL, NULL, ii.seqno "
            f"FROM {master} m JOIN pragma_index_list(m.name, ?) il "
            "JOIN pragma_index_info(il.name, ?) ii "
            "WHERE m.type = 'table' AND il.origin = 'u' "
            "UNION ALL "
            "SELECT ?, m.name, 'fk_' || m.name || '_' || f.id, 'FOREIGN KEY', "
            'f."from", ?, f."table", f."to", f.seq '
            f"FROM {master} m JOIN pragma_foreign_key_list(m.name, ?) f "
            "WHERE m.type = 'table'"
            ') ORDER BY "table", name, seq',
            (schema,) * 8,
        )

    def version(self) -> Statement:
        return self.statement("SELECT sqlite_version() AS version")
