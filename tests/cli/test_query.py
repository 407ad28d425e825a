"""Tests for the query command against a SQLite file."""

import json
from pathlib import Path

import pytest

from sqlbridge.core.exceptions import QueryExecutionError
from sqlbridge.core.exit_codes import ExitCode

FIXTURE_SQL = str(Path(__file__).parent.parent / "fixtures" / "select_42.sql")


@pytest.mark.unit
def test_query_help(cli_runner):
    result = cli_runner("query", "--help")
    assert result.exit_code == 0
    assert "Execute a SQL query" in result.stdout
    assert "--execute" in result.stdout


@pytest.mark.unit
def test_query_inline_json(cli_runner, sqlite_url):
    result = cli_runner(
        "--url", sqlite_url, "query", "-e", "SELECT name FROM users ORDER BY id", "-f", "json"
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [{"name": "alice"}, {"name": "bob"}, {"name": "Carol"}]


@pytest.mark.unit
def test_query_percent_sent_as_is(cli_runner, sqlite_url):
    result = cli_runner(
        "--url", sqlite_url, "--format", "json", "query", "-e", "SELECT '100%' AS pct"
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [{"pct": "100%"}]


@pytest.mark.unit
def test_query_from_file(cli_runner, sqlite_url):
    result = cli_runner("--url", sqlite_url, "--format", "json", "query", FIXTURE_SQL)
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [{"answer": 42}]


@pytest.mark.unit
def test_query_csv_output(cli_runner, sqlite_url):
    result = cli_runner(
        "--url", sqlite_url, "query", "-e", "SELECT id, email FROM users WHERE id = 2", "-f", "csv"
    )
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["id,email", "2,"]


@pytest.mark.unit
def test_query_missing_file_is_input_error(cli_runner, sqlite_url):
    result = cli_runner("--url", sqlite_url, "query", "/nonexistent/query.sql")
    assert result.exit_code == ExitCode.INPUT_ERROR


@pytest.mark.unit
def test_query_sql_error_surfaces(cli_runner, sqlite_url):
    result = cli_runner("--url", sqlite_url, "query", "-e", "SELEC 1")
    assert isinstance(result.exception, QueryExecutionError)
