"""Typed inputs for the assistant's database tools.

The chat assistant calls three tools: ``columns``, ``enums`` and
``select``. Their payloads use camelCase field names; the models here
validate them and ``run_tool`` maps each call onto the introspection
functions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from sqlbridge.core import introspection
from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.filters import Concat, Direction, RowPage, WhereFilter, get_operator

if TYPE_CHECKING:
    from sqlbridge.core.executor import QueryExecutor
    from sqlbridge.core.models import ConnectionDescriptor


class _ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class TableAndSchema(_ToolInput):
    table_name: str = Field(min_length=1)
    schema_name: str


class ColumnsInput(_ToolInput):
    table_and_schema: TableAndSchema


class EnumsInput(_ToolInput):
    pass


class SelectInput(_ToolInput):
    where_concat_operator: Concat = "AND"
    where_filters: list[WhereFilter] = []
    select: list[str] | None = None
    limit: int = Field(ge=0)
    offset: int = Field(default=0, ge=0)
    order_by: dict[str, Direction] | None = None
    table_and_schema: TableAndSchema

    def to_page(self) -> RowPage:
        for where in self.where_filters:
            get_operator(where.operator)
        return RowPage(
            schema_name=self.table_and_schema.schema_name or None,
            table=self.table_and_schema.table_name,
            limit=self.limit,
            offset=self.offset,
            order_by=self.order_by or {},
            filters=self.where_filters,
            concat=self.where_concat_operator,
            select=self.select or None,
        )


TOOL_INPUTS: dict[str, type[_ToolInput]] = {
    "columns": ColumnsInput,
    "enums": EnumsInput,
    "select": SelectInput,
}


def parse_tool_input(name: str, payload: dict[str, Any]) -> _ToolInput:
    try:
        model = TOOL_INPUTS[name]
    except KeyError:
        raise MalformedInputError(f"Unknown tool: '{name}'") from None
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or name
        raise MalformedInputError(f"Invalid {name} input: {location}: {first['msg']}") from e


async def run_tool(
    executor: QueryExecutor,
    descriptor: ConnectionDescriptor,
    name: str,
    payload: dict[str, Any],
) -> list[dict[str, Any]]:
    """Run one tool call and return its JSON-ready output rows."""
    match parse_tool_input(name, payload):
        case ColumnsInput(table_and_schema=target):
            columns = await introspection.list_columns(
                executor, descriptor, target.schema_name or None, target.table_name
            )
            return [
                {
                    "id": column.name,
                    "table": column.table,
                    "type": column.type,
                    "isNullable": column.nullable,
                    "isEditable": column.editable,
                    "default": column.default,
                }
                for column in columns
            ]
        case EnumsInput():
            enums = await introspection.list_enums(executor, descriptor)
            return [
                {"schema": enum.schema_name, "name": enum.name, "value": value}
                for enum in enums
                for value in enum.values
            ]
        case SelectInput() as select:
            result = await introspection.fetch_rows(executor, descriptor, select.to_page())
            return result.rows
        case other:
            raise MalformedInputError(f"Unhandled tool input: {type(other).__name__}")
