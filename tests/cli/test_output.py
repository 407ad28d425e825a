"""Tests for output format selection and TTY detection."""

import pytest

from sqlbridge.cli.output import OutputFormat, get_formatter, resolve_format
from sqlbridge.formatters.csv import CSVFormatter
from sqlbridge.formatters.json import JSONFormatter
from sqlbridge.formatters.table import TableFormatter


@pytest.mark.unit
def test_output_format_enum_values():
    assert [f.value for f in OutputFormat] == ["table", "json", "csv"]


@pytest.mark.unit
@pytest.mark.parametrize("name", ["table", "json", "csv"])
def test_resolve_format_explicit(name, monkeypatch):
    monkeypatch.setattr("sqlbridge.cli.output.detect_tty", lambda: True)
    assert resolve_format(name, default="csv") == name


@pytest.mark.unit
def test_resolve_format_tty_defaults_to_table(monkeypatch):
    monkeypatch.setattr("sqlbridge.cli.output.detect_tty", lambda: True)
    assert resolve_format(None) == "table"


@pytest.mark.unit
def test_resolve_format_non_tty_defaults_to_csv(monkeypatch):
    monkeypatch.setattr("sqlbridge.cli.output.detect_tty", lambda: False)
    assert resolve_format(None) == "csv"


@pytest.mark.unit
def test_resolve_format_configured_default_beats_tty(monkeypatch):
    monkeypatch.setattr("sqlbridge.cli.output.detect_tty", lambda: True)
    assert resolve_format(None, default="json") == "json"


@pytest.mark.unit
def test_get_formatter_types():
    assert isinstance(get_formatter("table"), TableFormatter)
    assert isinstance(get_formatter("json"), JSONFormatter)
    assert isinstance(get_formatter("csv"), CSVFormatter)


@pytest.mark.unit
def test_get_formatter_passes_options():
    assert get_formatter("table", width=80).width == 80
    assert get_formatter("json", compact=True).compact is True
    assert get_formatter("csv", no_header=True).no_header is True


@pytest.mark.unit
def test_get_formatter_uses_default_when_no_flag():
    assert isinstance(get_formatter(None, default="json"), JSONFormatter)
