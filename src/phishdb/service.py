"""Batch membership queries against the installed dataset."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from .state import DatasetState


@dataclass
class ServiceStatus:
    """Point-in-time view of the dataset and query counters."""

    last_updated: datetime | None
    entry_count: int
    search_count: int
    search_url_count: int


class QueryService:
    """Answers membership checks without copying the active set."""

    def __init__(self, state: DatasetState):
        self.state = state
        self.search_count = 0
        self.search_url_count = 0

    async def check_many(self, urls: Sequence[str]) -> list[str]:
        """Return the inputs present in the dataset, in input order.

        Matching is case-insensitive; each input keeps its original spelling
        and duplicates are reported once per occurrence.
        """
        # Counters are bumped without awaiting, so no lock is needed.
        self.search_count += 1
        self.search_url_count += len(urls)

        async with self.state.read() as current:
            return [url for url in urls if url in current]

    async def status(self) -> ServiceStatus:
        async with self.state.read() as current:
            last_updated = self.state.last_updated
            entry_count = len(current)
        return ServiceStatus(
            last_updated=last_updated,
            entry_count=entry_count,
            search_count=self.search_count,
            search_url_count=self.search_url_count,
        )
