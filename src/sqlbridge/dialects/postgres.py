"""PostgreSQL dialect."""

from __future__ import annotations

from sqlbridge.core.models import Engine, Statement
from sqlbridge.dialects.base import StandardDialect

_SYSTEM_SCHEMA_FILTER = "NOT IN ('pg_catalog', 'information_schema')"


class PostgresDialect(StandardDialect):
    engine = Engine.POSTGRES
    supports_ilike = True
    supports_returning = True

    def schemas(self) -> Statement:
        return self.statement(
            'SELECT nspname AS "schema" FROM pg_catalog.pg_namespace '
            "WHERE nspname <> 'information_schema' AND nspname !~ '^pg_' "
            "ORDER BY nspname"
        )

    def tables(self, schema: str | None = None) -> Statement:
        sql = (
            'SELECT table_schema AS "schema", table_name AS name, '
            "CASE table_type WHEN 'VIEW' THEN 'view' ELSE 'table' END AS type "
            "FROM information_schema.tables "
            f"WHERE table_schema {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND table_schema = %s"
            params.append(schema)
        sql += " ORDER BY table_schema, table_name"
        return self.statement(sql, params)

    def columns(self, schema: str | None, table: str) -> Statement:
        return self.statement(
            'SELECT table_schema AS "schema", table_name AS "table", '
            "column_name AS name, "
            "CASE data_type "
            "WHEN 'USER-DEFINED' THEN udt_name "
            "WHEN 'ARRAY' THEN substr(udt_name, 2) || '[]' "
            "ELSE data_type END AS type, "
            "is_nullable AS nullable, column_default AS \"default\", "
            "(is_identity = 'NO' AND is_generated = 'NEVER') AS editable "
            "FROM information_schema.columns "
            "WHERE table_schema = %s AND table_name = %s "
            "ORDER BY ordinal_position",
            (schema or "public", table),
        )

    def primary_keys(self, schema: str | None = None) -> Statement:
        sql = (
            'SELECT tc.table_name AS "table", tc.table_schema AS "schema", '
            "string_agg(kcu.column_name, ', ' ORDER BY kcu.ordinal_position) "
            "AS primary_keys "
            "FROM information_schema.table_constraints tc "
            "JOIN information_schema.key_column_usage kcu "
            "ON tc.constraint_name = kcu.constraint_name "
            "AND tc.table_schema = kcu.table_schema "
            "AND tc.table_name = kcu.table_name "
            "WHERE tc.constraint_type = 'PRIMARY KEY' "
            f"AND tc.table_schema {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND tc.table_schema = %s"
            params.append(schema)
        sql += " GROUP BY tc.table_schema, tc.table_name ORDER BY 2, 1"
        return self.statement(sql, params)

    def foreign_keys(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT tc.constraint_name AS name, tc.table_schema AS \"schema\", "
            'tc.table_name AS "table", kcu.column_name AS "column", '
            "ccu.table_schema AS references_schema, "
            "ccu.table_name AS references_table, "
            "ccu.column_name AS references_column "
            "FROM information_schema.table_constraints tc "
            "JOIN information_schema.key_column_usage kcu "
            "ON tc.constraint_name = kcu.constraint_name "
            "AND tc.table_schema = kcu.table_schema "
            "JOIN information_schema.constraint_column_usage ccu "
            "ON tc.constraint_name = ccu.constraint_name "
            "AND tc.constraint_schema = ccu.constraint_schema "
            "WHERE tc.constraint_type = 'FOREIGN KEY'"
        )
        params: list[str] = []
        if schema:
            sql += " AND tc.table_schema = %s"
            params.append(schema)
        sql += " ORDER BY tc.table_schema, tc.table_name, tc.constraint_name"
        return self.statement(sql, params)

    def indexes(self, schema: str | None = None) -> Statement:
        sql = (
            'SELECT n.nspname AS "schema", t.relname AS "table", i.relname AS name, '
            'a.attname AS "column", ix.indisunique AS is_unique, '
            "ix.indisprimary AS is_primary "
            "FROM pg_catalog.pg_index ix "
            "JOIN pg_catalog.pg_class t ON t.oid = ix.indrelid "
            "JOIN pg_catalog.pg_class i ON i.oid = ix.indexrelid "
            "JOIN pg_catalog.pg_namespace n ON n.oid = t.relnamespace "
            "JOIN pg_catalog.pg_attribute a "
            "ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey) "
            f"WHERE t.relkind IN ('r', 'p') AND n.nspname {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND n.nspname = %s"
            params.append(schema)
        sql += (
            " ORDER BY n.nspname, t.relname, i.relname, "
            "array_position(ix.indkey::int2[], a.attnum)"
        )
        return self.statement(sql, params)

    def constraints(self, schema: str | None = None) -> Statement:
        # Foreign key columns pair with the referenced key by position.
        sql = (
            'SELECT tc.table_schema AS "schema", tc.table_name AS "table", '
            "tc.constraint_name AS name, tc.constraint_type AS type, "
            'kcu.column_name AS "column", rk.table_schema AS references_schema, '
            "rk.table_name AS references_table, rk.column_name AS references_column "
            "FROM information_schema.table_constraints tc "
            "LEFT JOIN information_schema.key_column_usage kcu "
            "ON kcu.constraint_schema = tc.constraint_schema "
            "AND kcu.constraint_name = tc.constraint_name "
            "AND kcu.table_name = tc.table_name "
            "LEFT JOIN information_schema.referential_constraints rc "
            "ON rc.constraint_schema = tc.constraint_schema "
            "AND rc.constraint_name = tc.constraint_name "
            "LEFT JOIN information_schema.key_column_usage rk "
            "ON rk.constraint_schema = rc.unique_constraint_schema "
            "AND rk.constraint_name = rc.unique_constraint_name "
            "AND rk.ordinal_position = kcu.position_in_unique_constraint "
            "WHERE tc.constraint_type IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY') "
            f"AND tc.table_schema {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND tc.table_schema = %s"
            params.append(schema)
        sql += (
            " ORDER BY tc.table_schema, tc.table_name, tc.constraint_name, "
            "kcu.ordinal_position"
        )
        return self.statement(sql, params)

    def enums(self, schema: str | None = None) -> Statement:
        sql = (
            'SELECT n.nspname AS "schema", t.typname AS name, e.enumlabel AS value '
            "FROM pg_catalog.pg_type t "
            "JOIN pg_catalog.pg_enum e ON t.oid = e.enumtypid "
            "JOIN pg_catalog.pg_namespace n ON t.typnamespace = n.oid "
            f"WHERE n.nspname {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND n.nspname = %s"
            params.append(schema)
        sql += " ORDER BY n.nspname, t.typname, e.enumsortorder"
        return self.statement(sql, params)

    def estimate_count(self, schema: str | None, table: str) -> Statement:
        return self.statement(
            "SELECT c.reltuples::bigint AS total "
            "FROM pg_catalog.pg_class c "
            "JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace "
            "WHERE n.nspname = %s AND c.relname = %s",
            (schema or "public", table),
        )

    def version(self) -> Statement:
        return self.statement("SELECT current_setting('server_version') AS version")

    def drop_table(
        self, schema: str | None, table: str, cascade: bool = False
    ) -> Statement:
        sql = f"DROP TABLE {self.qualify(schema, table)}"
        if cascade:
            sql += " CASCADE"
        return self.statement(sql)
