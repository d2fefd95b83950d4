"""Shared dataset state guarded by a readers/writer lock."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from .urlset import URLSet


class ReadWriteLock:
    """Asyncio lock allowing many readers or one writer.

    Waiting writers block new readers, so a swap is never starved by a
    steady stream of queries.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and not self._readers)
            finally:
                self._writers_waiting -= 1
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class DatasetState:
    """The active URL set and the change token it was built from.

    Only the refresh path writes (via ``install``); queries read through
    ``read()``, which holds the shared lock for as long as the caller needs.
    """

    def __init__(self):
        self.lock = ReadWriteLock()
        self.current = URLSet()
        self.change_token: str | None = None
        self.last_updated: datetime | None = None

    @asynccontextmanager
    async def read(self) -> AsyncIterator[URLSet]:
        """Hold the shared lock and yield the installed set."""
        async with self.lock.read():
            yield self.current

    async def install(self, urls: URLSet, change_token: str | None):
        """Replace the active set and change token in one step."""
        async with self.lock.write():
            self.current = urls
            self.change_token = change_token
            self.last_updated = datetime.now(timezone.utc)
