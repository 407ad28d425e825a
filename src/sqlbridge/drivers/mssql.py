"""SQL Server driver on pymssql.

pymssql is blocking, so every call runs in a worker thread. A client holds
one connection guarded by a lock; statements on it are serialized.
"""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

import pymssql

from sqlbridge.core.connection_string import flag_enabled
from sqlbridge.core.exceptions import ConnectionError, QueryExecutionError, TimeoutError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import ColumnMeta, Engine, QueryResult
from sqlbridge.drivers.base import DriverClient, DriverSettings, unescape_percent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.core.connection_string import ConnectionParams

# DB-API type objects exposed by pymssql.
_TYPE_NAMES: dict[int, str] = {
    1: "string",
    2: "binary",
    3: "number",
    4: "datetime",
    5: "decimal",
}

# FreeTDS / server codes for unreachable servers and failed logins.
_CONNECTION_ERROR_CODES = frozenset({20002, 20009, 20017, 20047, 18452, 18456, 4060})
_TIMEOUT_ERROR_CODES = frozenset({20003})


def _error_code(error: pymssql.Error) -> int | None:
    if error.args and isinstance(error.args[0], int):
        return error.args[0]
    return None


def _error_message(error: pymssql.Error) -> str:
    if len(error.args) > 1:
        message = error.args[1]
        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace").strip()
        return str(message).strip()
    return str(error)


def _columns(description: Sequence[Any] | None) -> list[ColumnMeta]:
    if not description:
        return []
    return [
        ColumnMeta(name=desc[0] or "", type_name=_TYPE_NAMES.get(desc[1], "unknown"))
        for desc in description
    ]


class MSSQLClient(DriverClient):
    engine = Engine.MSSQL

    def __init__(self, conn: Any, params: ConnectionParams) -> None:
        self._conn = conn
        self._params = params
        self._lock = threading.Lock()

    @classmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> MSSQLClient:
        kwargs: dict[str, Any] = {
            "server": params.host or "localhost",
            "port": str(params.port or 1433),
            "user": params.user or "",
            "password": params.password or "",
            "database": params.database or "",
            "login_timeout": int(settings.connect_timeout),
            "appname": settings.application_name,
            "as_dict": True,
            "autocommit": True,
            "encryption": "require" if flag_enabled(params.options, "encrypt") else "off",
        }
        try:
            conn = await asyncio.to_thread(pymssql.connect, **kwargs)
        except pymssql.Error as e:
            msg = f"Connection failed to {params.redacted()}: {_error_message(e)}"
            raise ConnectionError(msg) from e
        return cls(conn, params)

    def _run(self, sql: str, params: Sequence[Any] | None) -> QueryResult:
        with self._lock:
            cursor = self._conn.cursor()
            try:
                if params is None:
                    cursor.execute(sql)
                else:
                    cursor.execute(sql, tuple(params))
                columns = _columns(cursor.description)
                rows = list(cursor.fetchall()) if columns else []
                return QueryResult(
                    columns=columns,
                    rows=rows,
                    row_count=len(rows) if columns else max(cursor.rowcount, 0),
                )
            finally:
                cursor.close()

    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        sql, params = unescape_percent(sql, params)
        try:
            return await asyncio.to_thread(self._run, sql, params)
        except asyncio.CancelledError:
            # The worker thread keeps going until the statement ends; only
            # the caller stops waiting.
            get_logger("sqlbridge.drivers.mssql").debug(
                "abandoning in-flight query", target=self._params.redacted()
            )
            raise
        except pymssql.OperationalError as e:
            code = _error_code(e)
            if code in _TIMEOUT_ERROR_CODES:
                raise TimeoutError(f"Query timed out: {_error_message(e)}") from e
            if code in _CONNECTION_ERROR_CODES:
                raise ConnectionError(f"Database error: {_error_message(e)}") from e
            raise QueryExecutionError(
                f"SQL error: {_error_message(e)}", engine_message=_error_message(e)
            ) from e
        except pymssql.InterfaceError as e:
            raise ConnectionError(f"Database error: {_error_message(e)}") from e
        except pymssql.Error as e:
            raise QueryExecutionError(
                f"SQL error: {_error_message(e)}", engine_message=_error_message(e)
            ) from e

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)
