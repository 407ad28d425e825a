"""Per-connection-string client cache.

One live driver client per exact connection string. The cache memoizes the
*future* of the connect call, so concurrent first callers share a single
connect attempt; a failed attempt is dropped and the next call retries.

Callers borrow a client for the duration of one query through
``acquire()``, or through ``get()`` paired with ``release()``. Only
unborrowed, fully connected clients are ever closed by eviction.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlbridge.core.connection_string import parse_connection_string
from sqlbridge.core.exceptions import MalformedInputError
from sqlbridge.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlbridge.drivers.base import DriverClient


def _target(key: str) -> str:
    """Loggable form of a cache key; never the raw connection string."""
    try:
        return parse_connection_string(key).redacted()
    except MalformedInputError:
        return "<unparseable>"


@dataclass
class CachedClient:
    key: str
    future: asyncio.Future[DriverClient]
    borrowers: int = 0
    last_used: float = field(default_factory=time.monotonic)

    @property
    def ready(self) -> bool:
        return (
            self.future.done()
            and not self.future.cancelled()
            and self.future.exception() is None
        )


class ClientCache:
    def __init__(
        self,
        max_clients: int = 32,
        idle_timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_clients < 1:
            msg = f"max_clients must be at least 1, got {max_clients}"
            raise ValueError(msg)
        self.max_clients = max_clients
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._entries: OrderedDict[str, CachedClient] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def borrowers(self, key: str) -> int:
        entry = self._entries.get(key)
        return entry.borrowers if entry is not None else 0

    def _entry(
        self, key: str, factory: Callable[[], Awaitable[DriverClient]]
    ) -> tuple[CachedClient, bool]:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
            entry.last_used = self._clock()
            return entry, False

        future = asyncio.ensure_future(factory())
        entry = CachedClient(key=key, future=future, last_used=self._clock())
        self._entries[key] = entry
        future.add_done_callback(lambda f: self._forget_failed(entry))
        return entry, True

    def _forget_failed(self, entry: CachedClient) -> None:
        if entry.ready:
            return
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]
        if not entry.future.cancelled():
            get_logger("sqlbridge.cache").debug(
                "connect failed, entry dropped",
                target=_target(entry.key),
                error=str(entry.future.exception()),
            )

    async def _close(self, entry: CachedClient) -> None:
        log = get_logger("sqlbridge.cache")
        if not entry.future.done():
            entry.future.cancel()
            await asyncio.gather(entry.future, return_exceptions=True)
        if not entry.ready:
            return
        try:
            await entry.future.result().close()
        except Exception as e:
            log.warning("failed to close client", target=_target(entry.key), error=str(e))
        else:
            log.debug("client closed", target=_target(entry.key))

    async def _enforce_limit(self, keep: str) -> None:
        excess = len(self._entries) - self.max_clients
        if excess <= 0:
            return
        victims = [
            entry
            for key, entry in self._entries.items()
            if key != keep and entry.borrowers == 0 and entry.ready
        ][:excess]
        for entry in victims:
            del self._entries[entry.key]
        if len(victims) < excess:
            get_logger("sqlbridge.cache").warning(
                "client cache over capacity",
                size=len(self._entries),
                max_clients=self.max_clients,
            )
        for entry in victims:
            await self._close(entry)

    async def _borrow(
        self, key: str, factory: Callable[[], Awaitable[DriverClient]]
    ) -> tuple[CachedClient, DriverClient]:
        entry, created = self._entry(key, factory)
        entry.borrowers += 1
        try:
            if created:
                await self._enforce_limit(keep=key)
            client = await asyncio.shield(entry.future)
        except BaseException:
            self._release(entry)
            raise
        return entry, client

    async def get(
        self, key: str, factory: Callable[[], Awaitable[DriverClient]]
    ) -> DriverClient:
        """Borrow the client for ``key``, connecting through ``factory`` once.

        The client stays borrowed, and safe from eviction, until
        ``release(key)`` is called.
        """
        _, client = await self._borrow(key, factory)
        return client

    @asynccontextmanager
    async def acquire(
        self, key: str, factory: Callable[[], Awaitable[DriverClient]]
    ) -> AsyncIterator[DriverClient]:
        """Borrow the client for ``key`` until the block exits."""
        entry, client = await self._borrow(key, factory)
        try:
            yield client
        finally:
            self._release(entry)

    def _release(self, entry: CachedClient) -> None:
        entry.borrowers = max(entry.borrowers - 1, 0)
        entry.last_used = self._clock()

    def release(self, key: str) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            self._release(entry)

    async def evict_idle(self, after: float | None = None) -> int:
        """Close unborrowed clients idle for at least ``after`` seconds.

        Returns the number of clients closed.
        """
        threshold = self.idle_timeout if after is None else after
        now = self._clock()
        victims = [
            entry
            for entry in self._entries.values()
            if entry.ready and entry.borrowers == 0 and now - entry.last_used >= threshold
        ]
        for entry in victims:
            del self._entries[entry.key]
        for entry in victims:
            await self._close(entry)
        return len(victims)

    async def shutdown(self) -> None:
        """Close every client, borrowed or not, and cancel pending connects."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await self._close(entry)
