"""WHERE filters and row paging inputs.

Filters use a fixed operator vocabulary. Every value is bound through the
dialect's placeholder; nothing a caller supplies is spliced into SQL text
except identifiers, which the dialect quotes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, field_validator

from sqlbridge.core.exceptions import MalformedInputError, UnknownOperatorError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.dialects.base import Dialect

Concat = Literal["AND", "OR"]
Direction = Literal["ASC", "DESC"]


@dataclass(frozen=True)
class Operator:
    sql: str
    has_value: bool = True
    is_array: bool = False
    case_insensitive: bool = False
    negated: bool = False


OPERATORS: dict[str, Operator] = {
    "=": Operator("="),
    "!=": Operator("!="),
    ">": Operator(">"),
    ">=": Operator(">="),
    "<": Operator("<"),
    "<=": Operator("<="),
    "LIKE": Operator("LIKE"),
    "NOT LIKE": Operator("NOT LIKE", negated=True),
    "ILIKE": Operator("ILIKE", case_insensitive=True),
    "NOT ILIKE": Operator("NOT ILIKE", case_insensitive=True, negated=True),
    "IN": Operator("IN", is_array=True),
    "NOT IN": Operator("NOT IN", is_array=True, negated=True),
    "IS NULL": Operator("IS NULL", has_value=False),
    "IS NOT NULL": Operator("IS NOT NULL", has_value=False, negated=True),
}


def get_operator(name: str) -> Operator:
    """Look up an operator, case-insensitively.

    Raises UnknownOperatorError for anything outside the vocabulary.
    """
    key = " ".join(name.split()).upper()
    try:
        return OPERATORS[key]
    except KeyError:
        raise UnknownOperatorError(name) from None


class WhereFilter(BaseModel):
    column: str = Field(min_length=1)
    operator: str
    values: list[str] = []


class RowPage(BaseModel):
    """One page of rows: projection, filters, ordering and window."""

    schema_name: str | None = None
    table: str = Field(min_length=1)
    limit: int = Field(default=50, ge=0)
    offset: int = Field(default=0, ge=0)
    order_by: dict[str, Direction] = {}
    filters: list[WhereFilter] = []
    concat: Concat = "AND"
    select: list[str] | None = None

    @field_validator("order_by", mode="before")
    @classmethod
    def normalize_directions(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {k: d.upper() if isinstance(d, str) else d for k, d in v.items()}
        return v

    @field_validator("concat", mode="before")
    @classmethod
    def normalize_concat(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


def _render_filter(
    dialect: Dialect, where: WhereFilter, params: list[Any]
) -> str:
    op = get_operator(where.operator)
    column = dialect.quote_identifier(where.column)
    placeholder = dialect.placeholder

    if not op.has_value:
        return f"{column} {op.sql}"

    if op.is_array:
        values = [v.strip() for v in where.values]
        if not values:
            msg = f"Operator {op.sql} on {where.column!r} needs at least one value"
            raise MalformedInputError(msg)
        params.extend(values)
        group = ", ".join([placeholder] * len(values))
        return f"{column} {op.sql} ({group})"

    if not where.values:
        msg = f"Operator {op.sql} on {where.column!r} needs a value"
        raise MalformedInputError(msg)
    params.append(where.values[0])

    if op.case_insensitive and not dialect.supports_ilike:
        like = "NOT LIKE" if op.negated else "LIKE"
        return f"LOWER({column}) {like} LOWER({placeholder})"
    return f"{column} {op.sql} {placeholder}"


def build_where(
    dialect: Dialect,
    filters: Sequence[WhereFilter],
    concat: str = "AND",
) -> tuple[str, list[Any]]:
    """Render filters into a WHERE body and its bound values.

    Returns ``("", [])`` when there are no filters.
    """
    joiner = concat.upper()
    if joiner not in ("AND", "OR"):
        raise MalformedInputError(f"Invalid filter concatenation: {concat!r}")
    params: list[Any] = []
    parts = [_render_filter(dialect, f, params) for f in filters]
    return f" {joiner} ".join(parts), params


def _find_operator(text: str, name: str) -> int:
    """Index of the first standalone occurrence of ``name`` in ``text``, or -1."""
    upper = text.upper()
    start = 0
    while True:
        idx = upper.find(name, start)
        if idx < 0:
            return -1
        if idx == 0:
            start = 1
            continue
        if not name[0].isalpha():
            return idx
        end = idx + len(name)
        if upper[idx - 1] == " " and (end == len(upper) or upper[end] in " ("):
            return idx
        start = idx + 1


def parse_filter_expression(text: str) -> WhereFilter:
    """Parse ``"column operator value"`` as typed on the command line.

    The earliest operator wins, the longest one on ties, so ``>=`` beats
    ``>`` and ``NOT ILIKE`` beats ``ILIKE``. IN-family values are
    comma-separated.
    """
    stripped = text.strip()
    found: list[tuple[int, int, str]] = []
    for name in OPERATORS:
        idx = _find_operator(stripped, name)
        if idx > 0:
            found.append((idx, -len(name), name))
    if not found:
        raise MalformedInputError(f"Cannot parse filter expression: {text!r}")
    idx, _, name = min(found)
    op = OPERATORS[name]

    column = stripped[:idx].strip()
    rest = stripped[idx + len(name) :].strip()
    if not column:
        raise MalformedInputError(f"Cannot parse filter expression: {text!r}")
    if not op.has_value:
        values: list[str] = []
    elif op.is_array:
        values = [v for v in rest.strip("()").split(",") if v.strip()]
    else:
        values = [rest] if rest else []
    return WhereFilter(column=column, operator=op.sql, values=values)
