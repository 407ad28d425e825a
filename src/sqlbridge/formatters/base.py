"""Formatter protocol and registry for output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlbridge.core.models import QueryResult


@runtime_checkable
class Formatter(Protocol):
    """Turns a QueryResult into lines of text, one chunk at a time."""

    def format(self, result: QueryResult) -> Iterator[str]: ...


def row_values(result: QueryResult, row: dict[str, Any]) -> list[Any]:
    """Values of ``row`` in result column order.

    Rows from introspection carry no column metadata; their key order is
    used instead.
    """
    if result.columns:
        return [row.get(col.name) for col in result.columns]
    return list(row.values())


def display_value(value: Any) -> str:
    """Text form of a cell for table and CSV output."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(display_value(v) for v in value)
    return str(value)


def column_names(result: QueryResult) -> list[str]:
    if result.columns:
        return [col.name for col in result.columns]
    if result.rows:
        return list(result.rows[0])
    return []


class FormatterRegistry:
    """Registry for looking up formatters by name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._formatters[name] = formatter_class

    def get(self, name: str, **kwargs: object) -> Formatter:
        """Return a formatter instance by name.

        Raises KeyError if the format name is not registered.
        """
        if name not in self._formatters:
            available = ", ".join(sorted(self._formatters))
            msg = f"Unknown format {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._formatters[name](**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


registry = FormatterRegistry()
