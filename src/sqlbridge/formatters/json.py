"""JSON formatter: one array of row objects."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from sqlbridge.formatters.base import column_names, registry, row_values

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlbridge.core.models import QueryResult


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (int, float, str, bool, type(None))):
        return val
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {str(k): _serialize_value(v) for k, v in val.items()}
    if isinstance(val, (bytes, bytearray, memoryview)):
        return bytes(val).hex()
    return str(val)


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        names = column_names(result)
        rows = [
            {
                name: _serialize_value(val)
                for name, val in zip(names, row_values(result, row), strict=True)
            }
            for row in result.rows
        ]
        if self.compact:
            yield json.dumps(rows, default=str)
        else:
            yield json.dumps(rows, indent=2, default=str)


registry.register("json", JSONFormatter)
