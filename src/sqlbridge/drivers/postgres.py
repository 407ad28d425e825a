"""PostgreSQL driver on psycopg v3 with a psycopg_pool connection pool."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import psycopg
import psycopg.errors
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from sqlbridge.core.connection_string import postgres_ssl_params
from sqlbridge.core.exceptions import ConnectionError, QueryExecutionError, TimeoutError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import ColumnMeta, Engine, QueryResult
from sqlbridge.drivers.base import DriverClient, DriverSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.core.connection_string import ConnectionParams

# Mapping from psycopg type OIDs to human-readable names.
# Covers the most common PostgreSQL types; unknown OIDs fall back to "unknown".
_TYPE_NAMES: dict[int, str] = {
    16: "bool",
    17: "bytea",
    20: "int8",
    21: "int2",
    23: "int4",
    25: "text",
    26: "oid",
    114: "json",
    142: "xml",
    700: "float4",
    701: "float8",
    790: "money",
    1042: "bpchar",
    1043: "varchar",
    1082: "date",
    1083: "time",
    1114: "timestamp",
    1184: "timestamptz",
    1186: "interval",
    1700: "numeric",
    2950: "uuid",
    3802: "jsonb",
}

# libpq keywords that may be passed through from the URL query string.
_PASSTHROUGH_OPTIONS = ("options", "target_session_attrs", "application_name")


def _connect_kwargs(params: ConnectionParams, settings: DriverSettings) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "host": params.host,
        "port": params.port or 5432,
        "dbname": params.database,
        "user": params.user,
        "password": params.password,
        "connect_timeout": int(settings.connect_timeout),
        "application_name": settings.application_name,
    }
    kwargs.update(postgres_ssl_params(params.options))
    for key in _PASSTHROUGH_OPTIONS:
        if key in params.options:
            kwargs[key] = params.options[key]
    return {k: v for k, v in kwargs.items() if v is not None}


def _columns(cursor: psycopg.AsyncCursor[Any]) -> list[ColumnMeta]:
    if not cursor.description:
        return []
    return [
        ColumnMeta(name=desc.name, type_name=_TYPE_NAMES.get(desc.type_code, "unknown"))
        for desc in cursor.description
    ]


class PostgresClient(DriverClient):
    engine = Engine.POSTGRES

    def __init__(self, pool: AsyncConnectionPool, params: ConnectionParams) -> None:
        self._pool = pool
        self._params = params

    @classmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> PostgresClient:
        kwargs = _connect_kwargs(params, settings)
        kwargs["autocommit"] = True
        kwargs["row_factory"] = dict_row
        pool = AsyncConnectionPool(
            kwargs=kwargs,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            timeout=settings.connect_timeout,
            open=False,
        )
        try:
            await pool.open(wait=True, timeout=settings.connect_timeout)
        except PoolTimeout as e:
            await pool.close()
            msg = f"Connection failed to {params.redacted()}: {e}"
            raise ConnectionError(msg) from e
        return cls(pool, params)

    @classmethod
    async def check_connection(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> None:
        try:
            conn = await psycopg.AsyncConnection.connect(
                autocommit=True, **_connect_kwargs(params, settings)
            )
        except psycopg.OperationalError as e:
            msg = f"Connection failed to {params.redacted()}: {e}"
            raise ConnectionError(msg) from e
        try:
            await conn.execute("SELECT 1")
        finally:
            await conn.close()

    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        timeout_ms = int(timeout * 1000) if timeout else 0
        try:
            async with self._pool.connection() as conn:
                try:
                    async with conn.cursor() as cur:
                        await cur.execute(f"SET statement_timeout = {timeout_ms}")
                        await cur.execute(sql, params)
                        columns = _columns(cur)
                        rows = await cur.fetchall() if cur.description else []
                        return QueryResult(
                            columns=columns,
                            rows=rows,
                            row_count=len(rows) if columns else max(cur.rowcount, 0),
                            status_message=cur.statusmessage or "",
                        )
                except asyncio.CancelledError:
                    # Stop the server-side statement; the pool discards the
                    # connection if it is not idle when it comes back.
                    log = get_logger("sqlbridge.drivers.postgres")
                    log.debug("cancelling in-flight query", target=self._params.redacted())
                    try:
                        await conn.cancel_safe()
                    except psycopg.Error as e:
                        log.warning("cancel request failed", error=str(e))
                    raise
        except PoolTimeout as e:
            raise ConnectionError(f"No connection available: {e}") from e
        except psycopg.errors.QueryCanceled as e:
            raise TimeoutError(f"Query timed out after {timeout}s: {e}") from e
        except psycopg.OperationalError as e:
            raise ConnectionError(f"Database error: {e}") from e
        except psycopg.Error as e:
            raise QueryExecutionError(f"SQL error: {e}", engine_message=str(e)) from e

    async def close(self) -> None:
        await self._pool.close()
