"""Tests for the per-connection-string client cache."""

import asyncio

import pytest
from structlog.testing import capture_logs

from sqlbridge.core.cache import ClientCache
from sqlbridge.core.exceptions import ConnectionError


class FakeClient:
    def __init__(self, name: str = "client") -> None:
        self.name = name
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class CountingFactory:
    """Connect factory that records how often it was called."""

    def __init__(self) -> None:
        self.calls = 0
        self.clients: list[FakeClient] = []

    def __call__(self):
        async def connect() -> FakeClient:
            self.calls += 1
            await asyncio.sleep(0)
            client = FakeClient(f"client-{self.calls}")
            self.clients.append(client)
            return client

        return connect()


@pytest.mark.unit
def test_rejects_empty_capacity():
    with pytest.raises(ValueError, match="max_clients"):
        ClientCache(max_clients=0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_callers_share_one_connect():
    cache = ClientCache()
    factory = CountingFactory()

    first, second = await asyncio.gather(
        cache.get("postgresql://h/db", factory), cache.get("postgresql://h/db", factory)
    )

    assert first is second
    assert factory.calls == 1
    assert len(cache) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_distinct_strings_get_distinct_clients():
    cache = ClientCache()
    factory = CountingFactory()

    a = await cache.get("postgresql://h/a", factory)
    b = await cache.get("postgresql://h/b", factory)

    assert a is not b
    assert "postgresql://h/a" in cache
    assert "postgresql://h/b" in cache


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_connect_is_retried():
    cache = ClientCache()
    attempts = 0

    async def flaky() -> FakeClient:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise ConnectionError("refused")
        return FakeClient()

    with pytest.raises(ConnectionError):
        await cache.get("mysql://h/db", flaky)
    await asyncio.sleep(0)
    assert "mysql://h/db" not in cache

    client = await cache.get("mysql://h/db", flaky)
    assert isinstance(client, FakeClient)
    assert attempts == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_acquire_tracks_borrowers():
    cache = ClientCache()
    factory = CountingFactory()

    async with cache.acquire("k://h", factory) as client:
        assert cache.borrowers("k://h") == 1
        async with cache.acquire("k://h", factory) as again:
            assert again is client
            assert cache.borrowers("k://h") == 2
    assert cache.borrowers("k://h") == 0
    assert cache.borrowers("unknown://h") == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_acquire_releases_on_error():
    cache = ClientCache()
    factory = CountingFactory()

    with pytest.raises(RuntimeError):
        async with cache.acquire("k://h", factory):
            raise RuntimeError("query blew up")
    assert cache.borrowers("k://h") == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_least_recently_used_is_evicted():
    cache = ClientCache(max_clients=2)
    factory = CountingFactory()

    a = await cache.get("a://h", factory)
    cache.release("a://h")
    b = await cache.get("b://h", factory)
    cache.release("b://h")
    await cache.get("a://h", factory)
    cache.release("a://h")
    await cache.get("c://h", factory)

    assert b.closed
    assert not a.closed
    assert "b://h" not in cache
    assert len(cache) == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_borrowed_clients_survive_over_capacity():
    cache = ClientCache(max_clients=1)
    factory = CountingFactory()

    with capture_logs() as logs:
        async with cache.acquire("a://h", factory) as a:
            await cache.get("b://h", factory)
            assert not a.closed

    assert len(cache) == 2
    assert any(entry["event"] == "client cache over capacity" for entry in logs)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_holds_client_until_release():
    now = [0.0]
    cache = ClientCache(max_clients=1, idle_timeout=1, clock=lambda: now[0])
    factory = CountingFactory()

    held = await cache.get("a://h", factory)
    assert cache.borrowers("a://h") == 1
    await cache.get("b://h", factory)
    cache.release("b://h")
    now[0] = 100.0
    assert await cache.evict_idle() == 1
    assert not held.closed
    assert "a://h" in cache

    cache.release("a://h")
    assert cache.borrowers("a://h") == 0
    now[0] = 200.0
    assert await cache.evict_idle() == 1
    assert held.closed


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evict_idle_uses_clock():
    now = [0.0]
    cache = ClientCache(idle_timeout=10, clock=lambda: now[0])
    factory = CountingFactory()

    client = await cache.get("a://h", factory)
    cache.release("a://h")
    now[0] = 5.0
    assert await cache.evict_idle() == 0

    now[0] = 11.0
    assert await cache.evict_idle() == 1
    assert client.closed
    assert len(cache) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evict_idle_skips_borrowed():
    now = [0.0]
    cache = ClientCache(idle_timeout=1, clock=lambda: now[0])
    factory = CountingFactory()

    async with cache.acquire("a://h", factory) as client:
        now[0] = 100.0
        assert await cache.evict_idle() == 0
    assert not client.closed

    now[0] = 102.0
    assert await cache.evict_idle(after=1.0) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shutdown_closes_everything():
    cache = ClientCache()
    factory = CountingFactory()

    a = await cache.get("a://h", factory)
    b = await cache.get("b://h", factory)
    await cache.shutdown()

    assert a.closed
    assert b.closed
    assert len(cache) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shutdown_cancels_pending_connect():
    cache = ClientCache()
    started = asyncio.Event()

    async def never_connects() -> FakeClient:
        started.set()
        await asyncio.Event().wait()
        return FakeClient()

    waiter = asyncio.create_task(cache.get("slow://h", never_connects))
    await started.wait()
    await cache.shutdown()

    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert len(cache) == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_failure_is_logged_not_raised():
    cache = ClientCache()

    class BrokenClient(FakeClient):
        async def close(self) -> None:
            raise RuntimeError("socket already gone")

    async def connect() -> FakeClient:
        return BrokenClient()

    await cache.get("a://h", connect)
    with capture_logs() as logs:
        await cache.shutdown()

    assert any(entry["event"] == "failed to close client" for entry in logs)
