"""Exception types raised by phishdb."""


class PhishDBError(Exception):
    """Base class for all phishdb errors."""


class ConfigError(PhishDBError):
    """A required startup parameter is missing or invalid."""


class FetchError(PhishDBError):
    """The feed could not be retrieved."""

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"bad status fetching {url}: {status}"
        else:
            message = f"error fetching {url}: {reason or 'transport failure'}"
        super().__init__(message)


class DecodeError(PhishDBError):
    """The feed body could not be decompressed or parsed."""

    def __init__(self, message: str, stage: str):
        self.stage = stage
        super().__init__(f"{stage}: {message}")


class RequestError(PhishDBError):
    """An inbound query request was malformed."""
