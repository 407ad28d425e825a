"""ClickHouse driver on clickhouse-connect's async HTTP client."""

from __future__ import annotations

import asyncio
import inspect
import re
from typing import TYPE_CHECKING, Any

import clickhouse_connect
from clickhouse_connect.driver.exceptions import ClickHouseError, OperationalError

from sqlbridge.core.exceptions import (
    ConnectionError,
    QueryExecutionError,
    TimeoutError,
    UnsupportedEngineError,
)
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import ColumnMeta, Engine, QueryResult
from sqlbridge.drivers.base import DriverClient, DriverSettings, unescape_percent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.core.connection_string import ConnectionParams

# Statements that return a result set; anything else goes through command().
_READ_KEYWORDS = frozenset({"SELECT", "WITH", "SHOW", "DESCRIBE", "DESC", "EXISTS", "EXPLAIN"})
_LEADING_WORD_RE = re.compile(r"^\s*(?:--[^\n]*\n\s*|/\*.*?\*/\s*)*\(?\s*([A-Za-z]+)", re.DOTALL)
# TIMEOUT_EXCEEDED
_TIMEOUT_RE = re.compile(r"\bCode:\s*159\b")
# ALTER TABLE ... UPDATE/DELETE; these run as background mutations.
_MUTATION_RE = re.compile(
    r"^\s*ALTER\s+TABLE\s.*?\s(?:UPDATE|DELETE)\s", re.IGNORECASE | re.DOTALL
)


def is_read_statement(sql: str) -> bool:
    match = _LEADING_WORD_RE.match(sql)
    return match is not None and match.group(1).upper() in _READ_KEYWORDS


def is_mutation(sql: str) -> bool:
    return _MUTATION_RE.match(sql) is not None


class ClickHouseClient(DriverClient):
    engine = Engine.CLICKHOUSE

    def __init__(self, client: Any, params: ConnectionParams) -> None:
        self._client = client
        self._params = params

    @classmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> ClickHouseClient:
        secure = params.scheme == "https"
        kwargs: dict[str, Any] = {
            "host": params.host or "localhost",
            "port": params.port or (8443 if secure else 8123),
            "username": params.user or "default",
            "password": params.password or "",
            "secure": secure,
            "connect_timeout": settings.connect_timeout,
            "client_name": settings.application_name,
        }
        if params.database:
            kwargs["database"] = params.database
        try:
            client = await clickhouse_connect.get_async_client(**kwargs)
        except ClickHouseError as e:
            msg = f"Connection failed to {params.redacted()}: {e}"
            raise ConnectionError(msg) from e
        except ImportError as e:
            # The async client needs the clickhouse-connect[async] extra.
            msg = f"ClickHouse async client unavailable: {e}"
            raise UnsupportedEngineError(msg) from e
        return cls(client, params)

    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        sql, params = unescape_percent(sql, params)
        parameters = tuple(params) if params is not None else None
        settings: dict[str, Any] = {}
        if timeout and timeout >= 1:
            settings["max_execution_time"] = int(timeout)
        mutation = is_mutation(sql)
        if mutation:
            # Block until the mutation is applied on every replica.
            settings["mutations_sync"] = 2
        try:
            if is_read_statement(sql):
                result = await self._client.query(
                    sql, parameters=parameters, settings=settings or None
                )
                columns = [
                    ColumnMeta(name=name, type_name=col_type.name)
                    for name, col_type in zip(
                        result.column_names, result.column_types, strict=True
                    )
                ]
                rows = list(result.named_results())
                return QueryResult(columns=columns, rows=rows, row_count=len(rows))
            summary = await self._client.command(
                sql, parameters=parameters, settings=settings or None
            )
        except asyncio.CancelledError:
            get_logger("sqlbridge.drivers.clickhouse").debug(
                "abandoning in-flight query", target=self._params.redacted()
            )
            raise
        except OperationalError as e:
            raise ConnectionError(f"Database error: {e}") from e
        except ClickHouseError as e:
            if _TIMEOUT_RE.search(str(e)):
                raise TimeoutError(f"Query timed out after {timeout}s: {e}") from e
            raise QueryExecutionError(f"SQL error: {e}", engine_message=str(e)) from e

        if mutation:
            # Mutations report no affected row count.
            return QueryResult(columns=[], rows=[], row_count=-1)
        written = getattr(summary, "written_rows", 0)
        return QueryResult(columns=[], rows=[], row_count=max(int(written or 0), 0))

    async def close(self) -> None:
        # close() became a coroutine in newer clickhouse-connect releases.
        result = self._client.close()
        if inspect.isawaitable(result):
            await result
