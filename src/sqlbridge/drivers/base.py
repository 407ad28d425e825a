"""Driver client interface.

A DriverClient owns one live handle (a pool or a single connection) for
one connection string. The cache creates clients with ``connect()`` and
closes them; callers only ever run ``query()`` on a borrowed client.

Parameter convention for ``query(sql, params)``:

- ``params=None``: ``sql`` is sent as-is, with no placeholder processing.
  Used for raw user queries.
- a sequence (possibly empty): ``sql`` uses the dialect's placeholders and
  ``%%`` for a literal percent sign in ``format`` style.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbridge.core.connection_string import ConnectionParams
    from sqlbridge.core.models import Engine, QueryResult


class DriverSettings(BaseModel):
    """Knobs shared by all drivers."""

    connect_timeout: float = 10.0
    pool_min_size: int = 1
    pool_max_size: int = 5
    application_name: str = "sqlbridge"


def unescape_percent(sql: str, params: Sequence[Any] | None) -> tuple[str, Sequence[Any] | None]:
    """Normalize format-style SQL for drivers that skip formatting on empty params.

    Those drivers leave ``%%`` untouched when there is nothing to bind, so
    the escape is undone here and the statement is sent raw.
    """
    if params is not None and len(params) == 0:
        return sql.replace("%%", "%"), None
    return sql, params


class DriverClient(ABC):
    engine: ClassVar[Engine]

    @classmethod
    @abstractmethod
    async def connect(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> DriverClient:
        """Open the handle. Raises ConnectionError on failure."""

    @abstractmethod
    async def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> QueryResult:
        """Run one statement and return its rows and column metadata."""

    @abstractmethod
    async def close(self) -> None: ...

    @classmethod
    async def check_connection(
        cls, params: ConnectionParams, settings: DriverSettings
    ) -> None:
        """Connect, run ``SELECT 1`` and disconnect, whatever happens."""
        client = await cls.connect(
            params, settings.model_copy(update={"pool_min_size": 1, "pool_max_size": 1})
        )
        try:
            await client.query("SELECT 1")
        finally:
            await client.close()
