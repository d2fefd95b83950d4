"""Core feed components."""

from .fetcher import DEFAULT_FEED_URL, FeedFetcher
from .protocols import Fetcher, FetchResult

__all__ = ["DEFAULT_FEED_URL", "FeedFetcher", "Fetcher", "FetchResult"]
