"""MySQL / MariaDB dialect."""

from __future__ import annotations

from sqlbridge.core.models import Engine, Statement
from sqlbridge.dialects.base import StandardDialect

_SYSTEM_SCHEMA_FILTER = "NOT IN ('mysql', 'information_schema', 'performance_schema', 'sys')"


class MySQLDialect(StandardDialect):
    engine = Engine.MYSQL
    quote_chars = ("`", "`")

    def default_values_clause(self) -> str:
        return " () VALUES ()"

    def rename_table(self, schema: str | None, table: str, new_name: str) -> Statement:
        return self.statement(
            f"RENAME TABLE {self.qualify(schema, table)} "
            f"TO {self.qualify(schema, new_name)}"
        )

    def schemas(self) -> Statement:
        return self.statement(
            "SELECT SCHEMA_NAME AS `schema` FROM information_schema.SCHEMATA "
            f"WHERE SCHEMA_NAME {_SYSTEM_SCHEMA_FILTER} ORDER BY SCHEMA_NAME"
        )

    def tables(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT TABLE_SCHEMA AS `schema`, TABLE_NAME AS name, "
            "CASE WHEN TABLE_TYPE = 'VIEW' THEN 'view' ELSE 'table' END AS type "
            "FROM information_schema.TABLES "
            f"WHERE TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " ORDER BY TABLE_SCHEMA, TABLE_NAME"
        return self.statement(sql, params)

    def columns(self, schema: str | None, table: str) -> Statement:
        sql = (
            "SELECT TABLE_SCHEMA AS `schema`, TABLE_NAME AS `table`, "
            "COLUMN_NAME AS name, COLUMN_TYPE AS type, "
            "IS_NULLABLE AS nullable, COLUMN_DEFAULT AS `default`, "
            "EXTRA NOT LIKE '%%VIRTUAL GENERATED%%' "
            "AND EXTRA NOT LIKE '%%STORED GENERATED%%' AS editable "
            "FROM information_schema.COLUMNS "
            "WHERE TABLE_NAME = %s"
        )
        params = [table]
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        else:
            sql += " AND TABLE_SCHEMA = DATABASE()"
        sql += " ORDER BY ORDINAL_POSITION"
        return self.statement(sql, params)

    def primary_keys(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT TABLE_NAME AS `table`, TABLE_SCHEMA AS `schema`, "
            "GROUP_CONCAT(COLUMN_NAME ORDER BY ORDINAL_POSITION SEPARATOR ', ') "
            "AS primary_keys "
            "FROM information_schema.KEY_COLUMN_USAGE "
            "WHERE CONSTRAINT_NAME = 'PRIMARY' "
            f"AND TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " GROUP BY TABLE_SCHEMA, TABLE_NAME ORDER BY TABLE_SCHEMA, TABLE_NAME"
        return self.statement(sql, params)

    def foreign_keys(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT CONSTRAINT_NAME AS name, TABLE_SCHEMA AS `schema`, "
            "TABLE_NAME AS `table`, COLUMN_NAME AS `column`, "
            "REFERENCED_TABLE_SCHEMA AS references_schema, "
            "REFERENCED_TABLE_NAME AS references_table, "
            "REFERENCED_COLUMN_NAME AS references_column "
            "FROM information_schema.KEY_COLUMN_USAGE "
            "WHERE REFERENCED_TABLE_NAME IS NOT NULL "
            f"AND TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " ORDER BY TABLE_SCHEMA, TABLE_NAME, CONSTRAINT_NAME"
        return self.statement(sql, params)

    def indexes(self, schema: str | None = None) -> Statement:
        # COLUMN_NAME is NULL for functional key parts.
        sql = (
            "SELECT TABLE_SCHEMA AS `schema`, TABLE_NAME AS `table`, "
            "INDEX_NAME AS name, COLUMN_NAME AS `column`, "
            "NON_UNIQUE = 0 AS is_unique, INDEX_NAME = 'PRIMARY' AS is_primary "
            "FROM information_schema.STATISTICS "
            f"WHERE TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " ORDER BY TABLE_SCHEMA, TABLE_NAME, INDEX_NAME, SEQ_IN_INDEX"
        return self.statement(sql, params)

    def constraints(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT tc.TABLE_SCHEMA AS `schema`, tc.TABLE_NAME AS `table`, "
            "tc.CONSTRAINT_NAME AS name, tc.CONSTRAINT_TYPE AS type, "
            "kcu.COLUMN_NAME AS `column`, "
            "kcu.REFERENCED_TABLE_SCHEMA AS references_schema, "
            "kcu.REFERENCED_TABLE_NAME AS references_table, "
            "kcu.REFERENCED_COLUMN_NAME AS references_column "
            "FROM information_schema.TABLE_CONSTRAINTS tc "
            "LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu "
            "ON kcu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA "
            "AND kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME "
            "AND kcu.TABLE_NAME = tc.TABLE_NAME "
            "WHERE tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY') "
            f"AND tc.TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND tc.TABLE_SCHEMA = %s"
            params.append(schema)
        sql += (
            " ORDER BY tc.TABLE_SCHEMA, tc.TABLE_NAME, tc.CONSTRAINT_NAME, "
            "kcu.ORDINAL_POSITION"
        )
        return self.statement(sql, params)

    def enums(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT TABLE_SCHEMA AS `schema`, TABLE_NAME AS `table`, "
            "COLUMN_NAME AS `column`, COLUMN_TYPE AS column_type, "
            "DATA_TYPE AS data_type "
            "FROM information_schema.COLUMNS "
            "WHERE DATA_TYPE IN ('enum', 'set') "
            f"AND TABLE_SCHEMA {_SYSTEM_SCHEMA_FILTER}"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION"
        return self.statement(sql, params)

    def estimate_count(self, schema: str | None, table: str) -> Statement:
        sql = "SELECT TABLE_ROWS AS total FROM information_schema.TABLES WHERE TABLE_NAME = %s"
        params = [table]
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        else:
            sql += " AND TABLE_SCHEMA = DATABASE()"
        return self.statement(sql, params)

    def version(self) -> Statement:
        return self.statement("SELECT VERSION() AS version")
