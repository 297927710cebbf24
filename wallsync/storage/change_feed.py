"""Table-level change notifications for subscribable queries.

Repositories publish the table name after every committed write. A
subscriber gets its own bounded queue, so a slow reader only coalesces its
own pending notifications and never blocks writers or other readers.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallsync.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ChangeFeed:
    """Registry of per-subscriber queues keyed by table name."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[str]]] = defaultdict(set)

    def publish(self, table: str) -> None:
        """Notify every subscriber of a table that it changed."""
        for queue in list(self._subscribers.get(table, ())):
            try:
                queue.put_nowait(table)
            except asyncio.QueueFull:
                # A refresh is already pending for this subscriber
                pass

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, ()))

    @asynccontextmanager
    async def subscribe(self, *tables: str) -> AsyncIterator[asyncio.Queue[str]]:
        """Register a queue for the given tables for the lifetime of the block."""
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=1)
        for table in tables:
            self._subscribers[table].add(queue)
        try:
            yield queue
        finally:
            for table in tables:
                self._subscribers[table].discard(queue)
                if not self._subscribers[table]:
                    del self._subscribers[table]

    async def observe(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tables: tuple[str, ...],
        query: Callable[[AsyncSession], Awaitable[T]],
    ) -> AsyncIterator[T]:
        """Yield the current query result, then a fresh result after each change.

        The subscription is registered before the first snapshot is read, so
        a write landing between the two is never missed.

        Args:
            session_factory: Factory used to open one short session per snapshot
            tables: Tables whose changes trigger a refresh
            query: Coroutine function producing the snapshot from a session

        Yields:
            Query results, starting with the current one
        """
        async with self.subscribe(*tables) as queue:
            async with session_factory() as session:
                yield await query(session)
            while True:
                await queue.get()
                async with session_factory() as session:
                    yield await query(session)


_change_feed: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Get the process-wide change feed."""
    global _change_feed

    if _change_feed is None:
        _change_feed = ChangeFeed()

    return _change_feed
