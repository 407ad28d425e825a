"""MySQL driver on an aiomysql connection pool."""

from __future__ import annotations

import asyncio
import ssl
from typing import TYPE_CHECKING, Any

import aiomysql

from sqlbridge.core.connection_string import mysql_ssl_options
from sqlbridge.core.exceptions import ConnectionError, QueryExecutionError, TimeoutError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import ColumnMeta, Engine, QueryResult
from sqlbridge.drivers.base import DriverClient, DriverSettings

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlbridge.core.connection_string import ConnectionParams

# MySQL protocol field type codes.
_TYPE_NAMES: dict[int, str] = {
    0: "decimal",
    1: "tinyint",
    2: "smallint",
    3: "int",
    4: "float",
    5: "double",
    7: "timestamp",
    8: "bigint",
    9: "mediumint",
    10: "date",
    11: "time",
    12: "datetime",
    13: "year",
    15: "varchar",
    16: "bit",
    245: "json",
    246: "decimal",
    247: "enum",
    248: "set",
    252: "blob",
    253: "varchar",
    254: "char",
    255: "geometry",
}

# Client-side connection failures and server-side access/network errors.
_CONNECTION_ERROR_CODES = frozenset({1044, 1045, 1049, 2002, 2003, 2005, 2006, 2013, 2055})
# ER_QUERY_TIMEOUT (MAX_EXECUTION_TIME exceeded)
_TIMEOUT_ERROR_CODES = frozenset({3024})


def build_ssl_context(options: Mapping[str, Any]) -> ssl.SSLContext:
    context = ssl.create_default_context(cafile=options.get("ca"))
    if options.get("cert"):
        context.load_cert_chain(
            options["cert"], options.get("key"), password=options.get("passphrase")
        )
    if options.get("verify") is False:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if options.get("ciphers"):
        context.set_ciphers(options["ciphers"])
    if options.get("min_version"):
        context.minimum_version = ssl.TLSVersion[options["min_version"].replace(".", "_")]
    if options.get("max_version"):
        context.maximum_version = ssl.TLSVersion[options["max_version"].replace(".", "_")]
    return context


def _error_code(error: aiomysql.Error) -> int | None:
    if error.args and isinstance(error.args[0], int):
        return error.args[0]
    return None


def _error_message(error: aiomysql.Error) -> str:
    if len(error.args) > 1:
        return str(error.args[1])
    return str(error)


def _columns(description: Sequence[Any] | None) -> list[ColumnMeta]:
    if not description:
        return []
    return [
        ColumnMeta(name=desc[0], type_name=_TYPE_NAMES.get(desc[1], "unknown"))
        for desc in description
    ]


class MySQLClient(DriverClient):
    engine = Engine.MYSQL

    def __init__(self, pool: aiomysql.Pool, params: ConnectionParams) -> None:
        self._pool = pool
        self._params = params

    @classmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> MySQLClient:
        ssl_options = mysql_ssl_options(params.options)
        kwargs: dict[str, Any] = {
            "host": params.host or "localhost",
            "port": params.port or 3306,
            "user": params.user or "",
            "password": params.password or "",
            "connect_timeout": settings.connect_timeout,
            "autocommit": True,
            "minsize": settings.pool_min_size,
            "maxsize": settings.pool_max_size,
        }
        if params.database:
            kwargs["db"] = params.database
        if ssl_options is not None:
            kwargs["ssl"] = build_ssl_context(ssl_options)
        try:
            pool = await aiomysql.create_pool(**kwargs)
        except (aiomysql.Error, OSError) as e:
            msg = f"Connection failed to {params.redacted()}: {e}"
            raise ConnectionError(msg) from e
        return cls(pool, params)

    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        try:
            async with self._pool.acquire() as conn:
                try:
                    async with conn.cursor(aiomysql.DictCursor) as cur:
                        affected = await cur.execute(sql, params)
                        columns = _columns(cur.description)
                        rows = list(await cur.fetchall()) if columns else []
                except asyncio.CancelledError:
                    # The socket is mid-response; drop this connection so the
                    # pool replaces it.
                    get_logger("sqlbridge.drivers.mysql").debug(
                        "cancelling in-flight query", target=self._params.redacted()
                    )
                    conn.close()
                    raise
        except aiomysql.OperationalError as e:
            code = _error_code(e)
            if code in _TIMEOUT_ERROR_CODES:
                raise TimeoutError(f"Query timed out: {_error_message(e)}") from e
            if code in _CONNECTION_ERROR_CODES:
                raise ConnectionError(f"Database error: {_error_message(e)}") from e
            raise QueryExecutionError(
                f"SQL error: {_error_message(e)}", engine_message=_error_message(e)
            ) from e
        except aiomysql.Error as e:
            raise QueryExecutionError(
                f"SQL error: {_error_message(e)}", engine_message=_error_message(e)
            ) from e
        except OSError as e:
            raise ConnectionError(f"Database error: {e}") from e

        return QueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows) if columns else max(affected or 0, 0),
        )

    async def close(self) -> None:
        self._pool.close()
        await self._pool.wait_closed()
