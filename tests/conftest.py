"""Shared test fixtures for sqlbridge."""

import sqlite3
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from sqlbridge.cli.main import app
from sqlbridge.core.models import ConnectionDescriptor, Engine


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, temp_dir):
    """Keep the user's config file and SQLBRIDGE_* variables out of tests."""
    for var in ("SQLBRIDGE_URL", "SQLBRIDGE_ENGINE", "SQLBRIDGE_TIMEOUT", "SQLBRIDGE_PROFILE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "sqlbridge.core.config.DEFAULT_CONFIG_PATH", temp_dir / "missing.toml"
    )


@pytest.fixture
def sqlite_db(temp_dir):
    """A small SQLite shop database with keys, a unique column and an index."""
    path = temp_dir / "shop.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT UNIQUE,
            active INTEGER DEFAULT 1
        );
        CREATE TABLE orders (
            id INTEGER,
            user_id INTEGER REFERENCES users(id),
            total REAL,
            PRIMARY KEY (id, user_id)
        );
        CREATE INDEX orders_by_total ON orders (total);
        CREATE VIEW active_users AS SELECT * FROM users WHERE active = 1;
        INSERT INTO users (id, name, email, active) VALUES
            (1, 'alice', 'alice@example.com', 1),
            (2, 'bob', NULL, 0),
            (3, 'Carol', 'carol@example.com', 1);
        INSERT INTO orders (id, user_id, total) VALUES (10, 1, 9.5), (11, 3, 20.0);
        """
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def sqlite_url(sqlite_db):
    return f"sqlite:///{sqlite_db}"


@pytest.fixture
def sqlite_descriptor(sqlite_url):
    return ConnectionDescriptor(engine=Engine.SQLITE, connection_string=sqlite_url)
