"""CSV formatter (RFC 4180)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from sqlbridge.formatters.base import column_names, display_value, registry, row_values

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlbridge.core.models import QueryResult


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(values)
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        if not self.no_header:
            yield _write_row(column_names(result))

        for row in result.rows:
            yield _write_row(
                [display_value(v) for v in row_values(result, row)]
            )


registry.register("csv", CSVFormatter)
