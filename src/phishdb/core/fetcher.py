"""Feed fetcher implementation using httpx."""

import asyncio
import logging

import httpx

from ..errors import FetchError
from .protocols import FetchResult

DEFAULT_FEED_URL = "http://data.phishtank.com/data/{api_key}/online-valid.json.bz2"

logger = logging.getLogger(__name__)


class FeedFetcher:
    """Async feed fetcher that skips the download when the ETag is unchanged."""

    def __init__(
        self,
        username: str,
        api_key: str,
        feed_url: str = DEFAULT_FEED_URL,
        timeout: float = 60.0,
    ):
        self.url = feed_url.format(api_key=api_key)
        self.display_url = feed_url.format(api_key="***")
        self.user_agent = f"phishtank/{username}"
        self.timeout = httpx.Timeout(timeout)
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=self.timeout,
                        headers={"User-Agent": self.user_agent},
                        follow_redirects=True,
                    )
        return self._client

    async def _request(self, method: str) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, self.url)
        except httpx.HTTPError as exc:
            raise FetchError(self.display_url, reason=f"{type(exc).__name__}: {exc}") from exc

    async def fetch(self, change_token: str | None = None) -> FetchResult:
        """Fetch the feed body, or report it unchanged when the ETag matches."""
        if change_token:
            probe = await self._request("HEAD")
            if probe.is_success and probe.headers.get("ETag") == change_token:
                logger.debug("Feed ETag unchanged: %s", change_token)
                return FetchResult(content=None, change_token=change_token)

        resp = await self._request("GET")
        if resp.status_code != httpx.codes.OK:
            raise FetchError(self.display_url, status=resp.status_code)

        return FetchResult(content=resp.content, change_token=resp.headers.get("ETag"))

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
