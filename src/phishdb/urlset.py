"""Immutable, case-normalized set of URLs."""

from collections.abc import Iterable, Iterator

from .decode import FeedRecord


def normalize_url(url: str) -> str:
    """Canonical form used for storage and lookup (case-insensitive match)."""
    return url.lower()


class URLSet:
    """A frozen set of lower-cased URLs, built once per refresh."""

    __slots__ = ("_entries",)

    def __init__(self, urls: Iterable[str] = ()):
        self._entries = frozenset(normalize_url(url) for url in urls)

    @classmethod
    def build(cls, records: Iterable[FeedRecord]) -> "URLSet":
        """Build a set from decoded feed records."""
        return cls(record.url for record in records)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and normalize_url(url) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"URLSet({len(self._entries)} entries)"
