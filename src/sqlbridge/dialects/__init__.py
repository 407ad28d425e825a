"""Dialect registry.

Maps every Engine to exactly one Dialect. The mapping is closed: adding an
Engine member without a dialect fails type checking in get_dialect() and
the import-time check below.
"""

from __future__ import annotations

from typing import assert_never

from sqlbridge.core.exceptions import UnsupportedEngineError
from sqlbridge.core.models import Engine
from sqlbridge.dialects.base import Dialect, StandardDialect
from sqlbridge.dialects.clickhouse import ClickHouseDialect
from sqlbridge.dialects.mssql import MSSQLDialect
from sqlbridge.dialects.mysql import MySQLDialect
from sqlbridge.dialects.postgres import PostgresDialect
from sqlbridge.dialects.sqlite import SQLiteDialect

__all__ = [
    "ClickHouseDialect",
    "Dialect",
    "MSSQLDialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "StandardDialect",
    "get_dialect",
    "iter_dialects",
]


def _create(engine: Engine) -> Dialect:
    match engine:
        case Engine.POSTGRES:
            return PostgresDialect()
        case Engine.MYSQL:
            return MySQLDialect()
        case Engine.MSSQL:
            return MSSQLDialect()
        case Engine.CLICKHOUSE:
            return ClickHouseDialect()
        case Engine.SQLITE:
            return SQLiteDialect()
        case _:
            assert_never(engine)


_DIALECTS: dict[Engine, Dialect] = {engine: _create(engine) for engine in Engine}

for _engine, _dialect in _DIALECTS.items():
    if _dialect.engine is not _engine:
        msg = f"Dialect {type(_dialect).__name__} registered for {_engine}"
        raise RuntimeError(msg)


def get_dialect(engine: Engine | str) -> Dialect:
    """Return the shared, stateless dialect for an engine."""
    try:
        return _DIALECTS[Engine(engine)]
    except ValueError:
        raise UnsupportedEngineError(f"Unsupported engine: {engine!r}") from None


def iter_dialects() -> list[Dialect]:
    return list(_DIALECTS.values())
