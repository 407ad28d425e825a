"""Result row validators.

Every catalog query result is validated against a pydantic model before the
rest of the package sees it. A row with a missing or mistyped field fails
the whole call with ValidationError; nothing is dropped or patched up.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sqlbridge.core.exceptions import ValidationError

_YES = frozenset({"yes", "y", "true", "t", "1"})
_NO = frozenset({"no", "n", "false", "f", "0"})


def _flag(v: Any) -> Any:
    if isinstance(v, str):
        lowered = v.strip().lower()
        if lowered in _YES:
            return True
        if lowered in _NO:
            return False
    return v


class _Row(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class SchemaRecord(_Row):
    schema_name: str = Field(alias="schema")


class TableRecord(_Row):
    schema_name: str = Field(alias="schema")
    name: str
    type: Literal["table", "view"] = "table"


class ColumnDescriptor(_Row):
    schema_name: str = Field(alias="schema")
    table: str
    name: str
    type: str
    nullable: bool
    default: str | None = None
    editable: bool = True

    @field_validator("nullable", "editable", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> Any:
        return _flag(v)


class PrimaryKeyRecord(_Row):
    """Primary key columns of one table, parsed from a comma-joined aggregate."""

    table: str
    schema_name: str = Field(alias="schema")
    primary_keys: list[str] = Field(min_length=1)

    @field_validator("primary_keys", mode="before")
    @classmethod
    def split_aggregate(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class ForeignKeyRecord(_Row):
    name: str
    schema_name: str = Field(alias="schema")
    table: str
    column: str
    references_schema: str | None = None
    references_table: str
    references_column: str | None = None


class IndexRecord(_Row):
    """One column of one index; multi-column indexes yield one row per column."""

    schema_name: str = Field(alias="schema")
    table: str
    name: str
    column: str | None = None
    is_unique: bool
    is_primary: bool

    @field_validator("is_unique", "is_primary", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> Any:
        return _flag(v)


ConstraintType = Literal["PRIMARY KEY", "UNIQUE", "FOREIGN KEY"]


class ConstraintRecord(_Row):
    schema_name: str = Field(alias="schema")
    table: str
    name: str
    type: ConstraintType
    column: str | None = None
    references_schema: str | None = None
    references_table: str | None = None
    references_column: str | None = None


class EnumLabelRow(_Row):
    """One (schema, type name, label) triple from a type catalog."""

    schema_name: str = Field(alias="schema")
    name: str
    value: str


class EnumColumnRow(_Row):
    """A column whose declared type carries its own label list."""

    schema_name: str = Field(alias="schema")
    table: str
    column: str
    column_type: str
    data_type: str | None = None


class EnumRecord(_Row):
    schema_name: str = Field(alias="schema")
    name: str
    values: list[str]
    table: str | None = None
    column: str | None = None
    is_set: bool = False


class VersionRecord(_Row):
    version: str


class CountRecord(_Row):
    total: int | None


M = TypeVar("M", bound=BaseModel)


def validate_row(model: type[M], row: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(dict(row))
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "row"
        msg = f"Invalid {model.__name__}: {location}: {first['msg']}"
        raise ValidationError(msg) from e


def validate_rows(model: type[M], rows: Iterable[Mapping[str, Any]]) -> list[M]:
    """Validate every row or fail the whole batch."""
    return [validate_row(model, row) for row in rows]


def fold_enums(rows: Iterable[EnumLabelRow]) -> list[EnumRecord]:
    """Merge label rows into one record per (schema, name), first-seen order."""
    grouped: dict[tuple[str, str], list[str]] = {}
    for row in rows:
        grouped.setdefault((row.schema_name, row.name), []).append(row.value)
    return [
        EnumRecord(schema=schema, name=name, values=values)
        for (schema, name), values in grouped.items()
    ]


def _split_quoted(body: str) -> list[str]:
    """Split on commas that sit outside single-quoted strings."""
    parts: list[str] = []
    current: list[str] = []
    in_quote = False
    i = 0
    while i < len(body):
        ch = body[i]
        if in_quote and ch == "\\" and i + 1 < len(body):
            current.append(body[i : i + 2])
            i += 2
            continue
        if ch == "'":
            in_quote = not in_quote
        if ch == "," and not in_quote:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return parts


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == "'" and value[-1] == "'":
        value = value[1:-1]
    return value.replace("''", "'").replace("\\'", "'").replace("\\\\", "\\")


_MYSQL_ENUM_RE = re.compile(r"^\s*(enum|set)\((.*)\)\s*$", re.IGNORECASE | re.DOTALL)
_CLICKHOUSE_WRAPPER_RE = re.compile(r"^(?:Nullable|LowCardinality)\((.*)\)$", re.DOTALL)
_CLICKHOUSE_ENUM_RE = re.compile(r"^Enum\d*\((.*)\)$", re.DOTALL)
_CLICKHOUSE_PAIR_RE = re.compile(r"^\s*('(?:[^'\\]|\\.|'')*')\s*(?:=\s*-?\d+)?\s*$", re.DOTALL)


def parse_mysql_enum(column_type: str) -> list[str]:
    """Labels of a MySQL ``enum('a','b')`` or ``set(...)`` column type."""
    match = _MYSQL_ENUM_RE.match(column_type)
    if match is None or not match.group(2).strip():
        return []
    return [_unquote(part) for part in _split_quoted(match.group(2))]


def parse_clickhouse_enum(column_type: str) -> list[str]:
    """Labels of a ClickHouse ``Enum8('a' = 1, 'b' = 2)`` type, wrappers removed."""
    text = column_type.strip()
    wrapper = _CLICKHOUSE_WRAPPER_RE.match(text)
    while wrapper is not None:
        text = wrapper.group(1).strip()
        wrapper = _CLICKHOUSE_WRAPPER_RE.match(text)
    match = _CLICKHOUSE_ENUM_RE.match(text)
    if match is None:
        return []
    labels = []
    for pair in _split_quoted(match.group(1)):
        pair_match = _CLICKHOUSE_PAIR_RE.match(pair)
        if pair_match is not None:
            labels.append(_unquote(pair_match.group(1)))
    return [label for label in labels if label]


def enum_from_mysql_column(row: EnumColumnRow) -> EnumRecord:
    return EnumRecord(
        schema=row.schema_name,
        name=row.column,
        values=parse_mysql_enum(row.column_type),
        table=row.table,
        column=row.column,
        is_set=(row.data_type or "").lower() == "set",
    )


def enum_from_clickhouse_column(row: EnumColumnRow) -> EnumRecord:
    return EnumRecord(
        schema=row.schema_name,
        name=row.column,
        values=parse_clickhouse_enum(row.column_type),
        table=row.table,
        column=row.column,
    )
