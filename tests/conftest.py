"""Shared fixtures: an in-process fake feed and a decoder that counts calls."""

import bz2
import json

import pytest

from phishdb.core import FetchResult
from phishdb.decode import DatasetDecoder
from phishdb.errors import FetchError


def make_feed(urls: list[str]) -> bytes:
    """Encode URLs the way PhishTank ships them: bz2-compressed JSON."""
    records = [{"phish_id": i, "url": url, "verified": "yes"} for i, url in enumerate(urls)]
    return bz2.compress(json.dumps(records).encode())


class FakeFeed:
    """Fetcher double. Honors the change token unless ``honor_probe`` is off."""

    def __init__(self, urls: list[str], etag: str | None = '"v1"', honor_probe: bool = True):
        self.body = make_feed(urls)
        self.etag = etag
        self.honor_probe = honor_probe
        self.error: Exception | None = None
        self.calls: list[str | None] = []
        self.closed = False

    def publish(self, urls: list[str], etag: str | None):
        self.body = make_feed(urls)
        self.etag = etag

    async def fetch(self, change_token: str | None = None) -> FetchResult:
        self.calls.append(change_token)
        if self.error is not None:
            raise self.error
        if self.honor_probe and change_token and change_token == self.etag:
            return FetchResult(content=None, change_token=change_token)
        return FetchResult(content=self.body, change_token=self.etag)

    async def close(self):
        self.closed = True


class CountingDecoder(DatasetDecoder):
    def __init__(self, compression: str = "bz2"):
        super().__init__(compression)
        self.calls = 0

    def decode(self, data: bytes):
        self.calls += 1
        return super().decode(data)


@pytest.fixture
def evil_urls():
    return ["http://evil.example/a", "HTTP://EVIL.EXAMPLE/B"]


@pytest.fixture
def feed(evil_urls):
    return FakeFeed(evil_urls)


@pytest.fixture
def decoder():
    return CountingDecoder()


@pytest.fixture
def unreachable():
    return FetchError("http://data.phishtank.com/data/***/online-valid.json.bz2", reason="ConnectError: refused")
