"""Core models for sqlbridge.

Pydantic models for connection descriptors, query results and column
metadata, plus the Statement value produced by the statement builders.
"""

from __future__ import annotations

import datetime
import decimal
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Engine(StrEnum):
    POSTGRES = "postgres"
    MYSQL = "mysql"
    MSSQL = "mssql"
    CLICKHOUSE = "clickhouse"
    SQLITE = "sqlite"


class ConnectionDescriptor(BaseModel):
    """Engine plus connection string. The string itself is the cache key."""

    model_config = ConfigDict(frozen=True)

    engine: Engine
    connection_string: str = Field(repr=False, min_length=1)


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_name: str = "unknown"


class QueryResult(BaseModel):
    """Result of a SQL query execution."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[dict[str, Any]]
    row_count: int
    duration_ms: float = 0.0
    status_message: str = ""

    @classmethod
    def empty(cls) -> QueryResult:
        return cls(columns=[], rows=[], row_count=0)

    def column_values(self, name: str) -> list[Any]:
        return [row.get(name) for row in self.rows]


ParamStyle = Literal["format", "qmark"]


def render_literal(value: Any) -> str:
    """Render a bound value as an inline SQL literal for display."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, decimal.Decimal)):
        return str(value)
    if isinstance(value, (datetime.date, datetime.time)):
        value = value.isoformat()
    text = str(value).replace("'", "''")
    return f"'{text}'"


@dataclass(frozen=True)
class Statement:
    """Parameterized SQL for one engine.

    ``sql`` carries positional placeholders in ``paramstyle``; with the
    ``format`` style a literal percent sign is written as ``%%``.
    """

    sql: str
    params: tuple[Any, ...] = field(default_factory=tuple)
    paramstyle: ParamStyle = "format"

    def render(self) -> str:
        """Inline the params as quoted literals. For logs and previews only."""
        values = iter(self.params)
        out: list[str] = []
        i = 0
        sql = self.sql
        while i < len(sql):
            ch = sql[i]
            if self.paramstyle == "format" and ch == "%":
                nxt = sql[i + 1 : i + 2]
                if nxt == "%":
                    out.append("%")
                    i += 2
                    continue
                if nxt == "s":
                    out.append(render_literal(next(values)))
                    i += 2
                    continue
            elif self.paramstyle == "qmark" and ch == "?":
                out.append(render_literal(next(values)))
                i += 1
                continue
            out.append(ch)
            i += 1
        return "".join(out)

    @property
    def placeholder_count(self) -> int:
        if self.paramstyle == "qmark":
            return self.sql.count("?")
        return self.sql.replace("%%", "").count("%s")
