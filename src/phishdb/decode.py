"""Decompression and parsing of the PhishTank JSON dump."""

import bz2
import gzip
import zlib
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, StrictStr, TypeAdapter, ValidationError

from .errors import DecodeError


class FeedRecord(BaseModel):
    """A single feed entry. Fields other than ``url`` are ignored."""

    model_config = ConfigDict(extra="ignore")

    url: StrictStr


_records = TypeAdapter(list[FeedRecord])


def _identity(data: bytes) -> bytes:
    return data


DECOMPRESSORS: dict[str, Callable[[bytes], bytes]] = {
    "bz2": bz2.decompress,
    "gzip": gzip.decompress,
    "none": _identity,
}


class DatasetDecoder:
    """Turns a raw feed body into feed records, all or nothing."""

    def __init__(self, compression: str = "bz2"):
        if compression not in DECOMPRESSORS:
            raise ValueError(f"unsupported compression: {compression!r}")
        self.compression = compression
        self._decompress = DECOMPRESSORS[compression]

    def decompress(self, data: bytes) -> bytes:
        """Decompress the feed body."""
        try:
            return self._decompress(data)
        except (OSError, EOFError, ValueError, zlib.error) as exc:
            raise DecodeError(f"invalid {self.compression} stream: {exc}", stage="decompress") from exc

    def parse(self, raw: bytes) -> list[FeedRecord]:
        """Parse a JSON array of ``{"url": ...}`` objects."""
        try:
            return _records.validate_json(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise DecodeError(
                f"{exc.error_count()} invalid item(s), first at {loc}: {first['msg']}",
                stage="parse",
            ) from exc

    def decode(self, data: bytes) -> list[FeedRecord]:
        """Decompress then parse."""
        return self.parse(self.decompress(data))
