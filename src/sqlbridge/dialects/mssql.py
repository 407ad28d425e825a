"""Microsoft SQL Server dialect.

Paging uses ``OFFSET ... FETCH``, which requires an ORDER BY; when the
caller gives none, ``ORDER BY (SELECT NULL)`` keeps the natural order.
Written values are echoed with ``OUTPUT INSERTED`` instead of RETURNING.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlbridge.core.models import Engine, Statement
from sqlbridge.dialects.base import StandardDialect

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# Fixed schemas plus the db_* role schemas all have ids at or above 16384.
_USER_SCHEMA_FILTER = "schema_id < 16384 AND name NOT IN ('guest', 'INFORMATION_SCHEMA', 'sys')"


class MSSQLDialect(StandardDialect):
    engine = Engine.MSSQL
    quote_chars = ("[", "]")
    supports_returning = True

    def order_clause(self, order_by: Mapping[str, str]) -> str:
        return super().order_clause(order_by) or " ORDER BY (SELECT NULL)"

    def paging_clause(self, limit: int, offset: int) -> str:
        return f" OFFSET {int(offset)} ROWS FETCH NEXT {int(limit)} ROWS ONLY"

    def output_clauses(self, columns: Iterable[str] | None) -> tuple[str, str]:
        if columns is None:
            return " OUTPUT INSERTED.*", ""
        inserted = ", ".join(f"INSERTED.{self.quote_identifier(c)}" for c in columns)
        return f" OUTPUT {inserted}", ""

    def _object_name(self, schema: str | None, table: str) -> str:
        # Bound as a value, so brackets are escaped but percent signs are not.
        parts = [schema, table] if schema else [table]
        return ".".join(f"[{part.replace(']', ']]')}]" for part in parts)

    def rename_table(self, schema: str | None, table: str, new_name: str) -> Statement:
        # sp_rename takes the new name verbatim, unquoted.
        return self.statement(
            "EXEC sp_rename %s, %s", (self._object_name(schema, table), new_name)
        )

    def schemas(self) -> Statement:
        return self.statement(
            f"SELECT name AS [schema] FROM sys.schemas WHERE {_USER_SCHEMA_FILTER} "
            "ORDER BY name"
        )

    def tables(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT TABLE_SCHEMA AS [schema], TABLE_NAME AS name, "
            "CASE WHEN TABLE_TYPE = 'VIEW' THEN 'view' ELSE 'table' END AS type "
            "FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA NOT IN ('sys', 'INFORMATION_SCHEMA')"
        )
        params: list[str] = []
        if schema:
            sql += " AND TABLE_SCHEMA = %s"
            params.append(schema)
        sql += " ORDER BY TABLE_SCHEMA, TABLE_NAME"
        return self.statement(sql, params)

    def columns(self, schema: str | None, table: str) -> Statement:
        return self.statement(
            "SELECT TABLE_SCHEMA AS [schema], TABLE_NAME AS [table], "
            "COLUMN_NAME AS name, DATA_TYPE AS type, "
            "IS_NULLABLE AS nullable, COLUMN_DEFAULT AS [default] "
            "FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s "
            "ORDER BY ORDINAL_POSITION",
            (schema or "dbo", table),
        )

    def primary_keys(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT t.name AS [table], s.name AS [schema], "
            "STRING_AGG(c.name, ', ') WITHIN GROUP (ORDER BY ic.key_ordinal) "
            "AS primary_keys "
            "FROM sys.indexes i "
            "JOIN sys.tables t ON t.object_id = i.object_id "
            "JOIN sys.schemas s ON s.schema_id = t.schema_id "
            "JOIN sys.index_columns ic "
            "ON ic.object_id = i.object_id AND ic.index_id = i.index_id "
            "JOIN sys.columns c "
            "ON c.object_id = ic.object_id AND c.column_id = ic.column_id "
            "WHERE i.is_primary_key = 1"
        )
        params: list[str] = []
        if schema:
            sql += " AND s.name = %s"
            params.append(schema)
        sql += " GROUP BY s.name, t.name ORDER BY s.name, t.name"
        return self.statement(sql, params)

    def foreign_keys(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT fk.name AS name, s.name AS [schema], t.name AS [table], "
            "c.name AS [column], rs.name AS references_schema, "
            "rt.name AS references_table, rc.name AS references_column "
            "FROM sys.foreign_key_columns fkc "
            "JOIN sys.foreign_keys fk ON fk.object_id = fkc.constraint_object_id "
            "JOIN sys.tables t ON t.object_id = fkc.parent_object_id "
            "JOIN sys.schemas s ON s.schema_id = t.schema_id "
            "JOIN sys.columns c "
            "ON c.object_id = fkc.parent_object_id AND c.column_id = fkc.parent_column_id "
            "JOIN sys.tables rt ON rt.object_id = fkc.referenced_object_id "
            "JOIN sys.schemas rs ON rs.schema_id = rt.schema_id "
            "JOIN sys.columns rc "
            "ON rc.object_id = fkc.referenced_object_id "
            "AND rc.column_id = fkc.referenced_column_id"
        )
        params: list[str] = []
        if schema:
            sql += " WHERE s.name = %s"
            params.append(schema)
        sql += " ORDER BY s.name, t.name, fk.name"
        return self.statement(sql, params)

    def indexes(self, schema: str | None = None) -> Statement:
        sql = (
            "SELECT s.name AS [schema], t.name AS [table], i.name AS name, "
            "c.name AS [column], i.is_unique AS is_unique, "
            "i.is_primary_key AS is_primary "
            "FROM sys.indexes i "
            "JOIN sys.tables t ON t.object_id = i.object_id "
            "JOIN sys.schemas s ON s.schema_id = t.schema_id "
            "JOIN sys.index_columns ic "
            "ON ic.object_id = i.object_id AND ic.index_id = i.index_id "
            "JOIN sys.columns c "
            "ON c.object_id = ic.object_id AND c.column_id = ic.column_id "
            "WHERE ic.is_included_column = 0"
        )
        params: list[str] = []
        if schema:
            sql += " AND s.name = %s"
            params.append(schema)
        sql += " ORDER BY s.name, t.name, i.name, ic.key_ordinal"
        return self.statement(sql, params)

    def constraints(self, schema: str | None = None) -> Statement:
        # Foreign key columns pair with the referenced key by position.
        sql = (
            "SELECT tc.TABLE_SCHEMA AS [schema], tc.TABLE_NAME AS [table], "
            "tc.CONSTRAINT_NAME AS name, tc.CONSTRAINT_TYPE AS type, "
            "kcu.COLUMN_NAME AS [column], rk.TABLE_SCHEMA AS references_schema, "
            "rk.TABLE_NAME AS references_table, rk.COLUMN_NAME AS references_column "
            "FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc "
            "LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu "
            "ON kcu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA "
            "AND kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME "
            "LEFT JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc "
            "ON rc.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA "
            "AND rc.CONSTRAINT_NAME = tc.CONSTRAINT_NAME "
            "LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE rk "
            "ON rk.CONSTRAINT_SCHEMA = rc.UNIQUE_CONSTRAINT_SCHEMA "
            "AND rk.CONSTRAINT_NAME = rc.UNIQUE_CONSTRAINT_NAME "
            "AND rk.ORDINAL_POSITION = kcu.ORDINAL_POSITION "
            "WHERE tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')"
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

    def version(self) -> Statement:
        return self.statement(
            "SELECT CAST(SERVERPROPERTY('ProductVersion') AS NVARCHAR(128)) AS version"
        )
