"""Query execution against cached driver clients.

Wraps the client cache and the engine drivers with timing, a Sentry span
per query, cooperative cancellation and a timeout.
"""

from __future__ import annotations

import asyncio
import builtins
import time
from typing import TYPE_CHECKING, Any

import sentry_sdk

from sqlbridge.core.cache import ClientCache
from sqlbridge.core.connection_string import parse_connection_string
from sqlbridge.core.exceptions import QueryCancelledError, SqlBridgeError, TimeoutError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.models import Engine, QueryResult, Statement
from sqlbridge.drivers import get_driver
from sqlbridge.drivers.base import DriverSettings
from sqlbridge.statements import for_engine

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping, Sequence

    from sqlbridge.core.models import ConnectionDescriptor
    from sqlbridge.drivers.base import DriverClient


def _normalize(sql: str) -> str:
    return " ".join(sql.split())


async def _await_cancellable(
    work: Awaitable[QueryResult],
    timeout: float | None,
    cancel: asyncio.Event | None,
) -> QueryResult:
    """Await ``work`` until it finishes, ``timeout`` elapses or ``cancel`` is set.

    The driver call is cancelled in the last two cases; the driver stops the
    request it owns but leaves the shared client open.
    """
    task = asyncio.ensure_future(work)
    waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
    pending = {task} if waiter is None else {task, waiter}
    try:
        async with asyncio.timeout(timeout):
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
    except builtins.TimeoutError:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        msg = f"Query timed out after {timeout}s"
        raise TimeoutError(msg) from None
    except asyncio.CancelledError:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise
    finally:
        if waiter is not None:
            waiter.cancel()

    if task in done:
        return task.result()
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise QueryCancelledError("Query cancelled by caller")


class QueryExecutor:
    """Runs SQL for any engine through a shared ClientCache."""

    def __init__(
        self,
        cache: ClientCache | None = None,
        settings: DriverSettings | None = None,
        default_timeout: float | None = None,
    ) -> None:
        self.cache = cache if cache is not None else ClientCache()
        self.settings = settings if settings is not None else DriverSettings()
        self.default_timeout = default_timeout

    def _factory(self, descriptor: ConnectionDescriptor) -> Any:
        async def connect() -> DriverClient:
            params = parse_connection_string(descriptor.connection_string)
            driver = get_driver(descriptor.engine)
            get_logger("sqlbridge.executor").debug(
                "connecting", engine=descriptor.engine.value, target=params.redacted()
            )
            return await driver.connect(params, self.settings)

        return connect

    async def _query(
        self,
        descriptor: ConnectionDescriptor,
        sql: str,
        params: Sequence[Any] | None,
        timeout: float | None,
    ) -> QueryResult:
        async with self.cache.acquire(
            descriptor.connection_string, self._factory(descriptor)
        ) as client:
            return await client.query(sql, params, timeout=timeout)

    async def execute(
        self,
        descriptor: ConnectionDescriptor,
        sql: str | Statement,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> QueryResult:
        """Execute one statement and return its rows and columns.

        A plain string with ``params=None`` is sent without placeholder
        processing. A Statement carries its own params.
        """
        if isinstance(sql, Statement):
            params = sql.params
            sql = sql.sql
        if timeout is None:
            timeout = self.default_timeout

        log = get_logger("sqlbridge.executor")
        sql_normalized = _normalize(sql)
        log.debug("executing query", engine=descriptor.engine.value, sql=sql_normalized)

        with sentry_sdk.start_span(op="db.query", description=sql_normalized[:100]) as span:
            span.set_data("db.system", descriptor.engine.value)
            start_time = time.monotonic()
            try:
                result = await _await_cancellable(
                    self._query(descriptor, sql, params, timeout), timeout, cancel
                )
            except TimeoutError:
                span.set_status("deadline_exceeded")
                log.error(
                    "query timeout",
                    engine=descriptor.engine.value,
                    sql=sql_normalized,
                    duration_ms=f"{(time.monotonic() - start_time) * 1000:.1f}",
                )
                raise
            except QueryCancelledError:
                span.set_status("cancelled")
                log.info("query cancelled", engine=descriptor.engine.value)
                raise
            except SqlBridgeError as e:
                span.set_status("internal_error")
                log.error(
                    "query failed",
                    engine=descriptor.engine.value,
                    sql=sql_normalized,
                    error=e.message,
                )
                raise

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("row_count", result.row_count)
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "query complete",
                duration_ms=f"{duration_ms:.1f}",
                row_count=result.row_count,
            )
        return result.model_copy(update={"duration_ms": duration_ms})

    async def run(
        self,
        descriptor: ConnectionDescriptor,
        statements: Mapping[Engine, Statement],
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> QueryResult:
        """Pick the descriptor's engine from a builder map and execute it."""
        statement = for_engine(statements, descriptor.engine)
        return await self.execute(descriptor, statement, timeout=timeout, cancel=cancel)

    async def test_connection(self, descriptor: ConnectionDescriptor) -> None:
        """Open a single-use client, run ``SELECT 1`` and close it.

        The client never enters the cache.
        """
        params = parse_connection_string(descriptor.connection_string)
        driver = get_driver(descriptor.engine)
        log = get_logger("sqlbridge.executor")
        log.debug("testing connection", engine=descriptor.engine.value, target=params.redacted())
        with sentry_sdk.start_span(op="db.connect", description=params.redacted()):
            await driver.check_connection(params, self.settings)
        log.debug("connection ok", engine=descriptor.engine.value)

    async def evict_idle(self, after: float | None = None) -> int:
        return await self.cache.evict_idle(after)

    async def aclose(self) -> None:
        await self.cache.shutdown()

    async def __aenter__(self) -> QueryExecutor:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


class DryRunExecutor(QueryExecutor):
    """Records statements instead of running them. Never connects."""

    def __init__(self) -> None:
        super().__init__()
        self.executed: list[tuple[Engine, Statement]] = []

    async def execute(
        self,
        descriptor: ConnectionDescriptor,
        sql: str | Statement,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> QueryResult:
        if not isinstance(sql, Statement):
            sql = Statement(sql, tuple(params) if params is not None else ())
        self.executed.append((descriptor.engine, sql))
        preview = sql.render() if sql.params else sql.sql
        get_logger("sqlbridge.executor").debug(
            "dry run", engine=descriptor.engine.value, sql=_normalize(preview)
        )
        return QueryResult.empty()

    async def test_connection(self, descriptor: ConnectionDescriptor) -> None:
        self.executed.append((descriptor.engine, Statement("SELECT 1")))
