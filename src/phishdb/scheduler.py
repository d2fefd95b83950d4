"""Periodic refresh of the shared dataset."""

import asyncio
import contextlib
import enum
import logging

from .core import Fetcher
from .decode import DatasetDecoder
from .errors import DecodeError, FetchError
from .state import DatasetState
from .urlset import URLSet

DEFAULT_INTERVAL = 3600.0

logger = logging.getLogger(__name__)


class RefreshOutcome(str, enum.Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class RefreshScheduler:
    """Drives fetch, decode and install on a fixed interval.

    There is a single driver task, so at most one cycle is in flight. A cycle
    that runs past one or more deadlines skips them rather than queueing.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        state: DatasetState,
        decoder: DatasetDecoder | None = None,
        interval: float = DEFAULT_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError("refresh interval must be positive")
        self.fetcher = fetcher
        self.state = state
        self.decoder = decoder or DatasetDecoder()
        self.interval = interval
        self._task: asyncio.Task | None = None

    def _build(self, content: bytes) -> URLSet:
        return URLSet.build(self.decoder.decode(content))

    async def refresh(self, force: bool = False) -> RefreshOutcome:
        """Run one refresh cycle. Errors propagate to the caller.

        With ``force`` the stored change token is ignored and the feed is
        always downloaded.
        """
        token = None if force else self.state.change_token
        result = await self.fetcher.fetch(token)
        if result.unchanged:
            logger.info("Database unchanged (ETag %s), %d entries", token, len(self.state.current))
            return RefreshOutcome.UNCHANGED

        # Decode off the event loop so queries keep being served.
        urls = await asyncio.to_thread(self._build, result.content)
        await self.state.install(urls, result.change_token)
        logger.info("Refreshed database: %d entries", len(urls))
        return RefreshOutcome.UPDATED

    async def tick(self) -> RefreshOutcome | None:
        """Periodic cycle: failures are logged and the old dataset is kept."""
        try:
            return await self.refresh()
        except (FetchError, DecodeError) as exc:
            logger.error("Error refreshing database: %s", exc)
            return None

    async def run(self):
        """Refresh forever at a fixed rate."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                await self.tick()
            except Exception:
                logger.exception("Unexpected error refreshing database")
            deadline += self.interval
            now = loop.time()
            if deadline <= now:
                skipped = int((now - deadline) // self.interval) + 1
                logger.warning("Refresh overran its interval, skipping %d tick(s)", skipped)
                deadline += skipped * self.interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the background refresh task."""
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="phishdb-refresh")

    async def stop(self):
        """Cancel the background refresh task."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
