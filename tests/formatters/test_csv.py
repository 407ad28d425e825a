"""Tests for CSVFormatter."""

import pytest

from sqlbridge.core.models import ColumnMeta, QueryResult
from sqlbridge.formatters.base import Formatter
from sqlbridge.formatters.csv import CSVFormatter


def _make_result(rows=None, columns=None):
    if columns is None:
        columns = [
            ColumnMeta(name="id", type_name="int4"),
            ColumnMeta(name="name", type_name="text"),
        ]
    if rows is None:
        rows = [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]
    return QueryResult(columns=columns, rows=rows, row_count=len(rows))


@pytest.mark.unit
def test_csv_formatter_implements_protocol():
    assert isinstance(CSVFormatter(), Formatter)


@pytest.mark.unit
def test_csv_header_and_rows():
    lines = list(CSVFormatter().format(_make_result()))
    assert lines == ["id,name", "1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_no_header():
    lines = list(CSVFormatter(no_header=True).format(_make_result()))
    assert lines == ["1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_empty_result_keeps_header():
    lines = list(CSVFormatter().format(_make_result(rows=[])))
    assert lines == ["id,name"]


@pytest.mark.unit
def test_csv_quotes_special_characters():
    result = _make_result(rows=[{"id": 1, "name": 'say "hi", bob'}])
    lines = list(CSVFormatter(no_header=True).format(result))
    assert lines == ['1,"say ""hi"", bob"']


@pytest.mark.unit
def test_csv_null_is_empty_field():
    lines = list(CSVFormatter(no_header=True).format(_make_result(rows=[{"id": 1, "name": None}])))
    assert lines == ["1,"]


@pytest.mark.unit
def test_csv_follows_column_order_not_key_order():
    result = _make_result(rows=[{"name": "alice", "id": 1}])
    assert list(CSVFormatter(no_header=True).format(result)) == ["1,alice"]
