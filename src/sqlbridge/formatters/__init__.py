"""Output formatters for sqlbridge."""

from sqlbridge.formatters.base import Formatter, FormatterRegistry, registry
from sqlbridge.formatters.csv import CSVFormatter
from sqlbridge.formatters.json import JSONFormatter
from sqlbridge.formatters.table import TableFormatter

__all__ = [
    "CSVFormatter",
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "TableFormatter",
    "registry",
]
