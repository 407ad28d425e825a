"""SQLite driver on aiosqlite."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING, Any

import aiosqlite

from sqlbridge.core.exceptions import ConnectionError, QueryExecutionError, TimeoutError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import ColumnMeta, Engine, QueryResult
from sqlbridge.drivers.base import DriverClient, DriverSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.core.connection_string import ConnectionParams


class SQLiteClient(DriverClient):
    engine = Engine.SQLITE

    def __init__(self, conn: aiosqlite.Connection, params: ConnectionParams) -> None:
        self._conn = conn
        self._params = params
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> SQLiteClient:
        database = params.database or ":memory:"
        try:
            conn = await aiosqlite.connect(
                database, timeout=settings.connect_timeout, isolation_level=None
            )
        except sqlite3.Error as e:
            msg = f"Connection failed to {database}: {e}"
            raise ConnectionError(msg) from e
        conn.row_factory = sqlite3.Row
        return cls(conn, params)

    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        async with self._lock:
            try:
                cursor = await self._conn.execute(sql, tuple(params) if params else ())
                try:
                    description = cursor.description
                    records = await cursor.fetchall() if description else []
                    rowcount = cursor.rowcount
                finally:
                    await cursor.close()
            except asyncio.CancelledError:
                get_logger("sqlbridge.drivers.sqlite").debug(
                    "interrupting in-flight query", target=self._params.database
                )
                await self._conn.interrupt()
                raise
            except sqlite3.OperationalError as e:
                if "interrupted" in str(e):
                    raise TimeoutError(f"Query interrupted: {e}") from e
                if "unable to open" in str(e):
                    raise ConnectionError(f"Database error: {e}") from e
                raise QueryExecutionError(f"SQL error: {e}", engine_message=str(e)) from e
            except sqlite3.Error as e:
                raise QueryExecutionError(f"SQL error: {e}", engine_message=str(e)) from e

        if not description:
            return QueryResult(columns=[], rows=[], row_count=max(rowcount, 0))
        # SQLite has no column types on result sets, only declared affinities.
        columns = [ColumnMeta(name=desc[0]) for desc in description]
        rows = [dict(zip(record.keys(), tuple(record), strict=True)) for record in records]
        return QueryResult(columns=columns, rows=rows, row_count=len(rows))

    async def close(self) -> None:
        await self._conn.close()
