"""Protocol definitions for feed components."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a feed fetch.

    ``content`` is None when the feed reported the same change token as the
    one we already hold.
    """

    content: bytes | None
    change_token: str | None

    @property
    def unchanged(self) -> bool:
        return self.content is None


class Fetcher(Protocol):
    """Protocol for feed fetchers."""

    async def fetch(self, change_token: str | None = None) -> FetchResult:
        """Fetch the feed unless it still matches ``change_token``."""
        ...

    async def close(self):
        """Release any held connections."""
        ...
