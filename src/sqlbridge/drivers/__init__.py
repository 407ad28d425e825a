"""Driver clients, one per engine."""

from __future__ import annotations

from typing import assert_never

from sqlbridge.core.models import Engine
from sqlbridge.drivers.base import DriverClient, DriverSettings, unescape_percent


def get_driver(engine: Engine) -> type[DriverClient]:
    """Return the client class for ``engine``.

    Driver modules are imported lazily so a missing optional database
    library only fails the engine that needs it.
    """
    match engine:
        case Engine.POSTGRES:
            from sqlbridge.drivers.postgres import PostgresClient

            return PostgresClient
        case Engine.MYSQL:
            from sqlbridge.drivers.mysql import MySQLClient

            return MySQLClient
        case Engine.MSSQL:
            from sqlbridge.drivers.mssql import MSSQLClient

            return MSSQLClient
        case Engine.CLICKHOUSE:
            from sqlbridge.drivers.clickhouse import ClickHouseClient

            return ClickHouseClient
        case Engine.SQLITE:
            from sqlbridge.drivers.sqlite import SQLiteClient

            return SQLiteClient
        case _:
            assert_never(engine)


__all__ = ["DriverClient", "DriverSettings", "get_driver", "unescape_percent"]
