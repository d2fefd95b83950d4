"""Configuration using pydantic-settings."""

from typing import Literal, TypeVar

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .core import DEFAULT_FEED_URL
from .errors import ConfigError


class FeedSettings(BaseSettings):
    """Feed access configuration."""

    username: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    feed_url: str = DEFAULT_FEED_URL
    compression: Literal["bz2", "gzip", "none"] = "bz2"
    timeout: float = Field(60.0, gt=0)

    model_config = {"env_prefix": "PHISHDB_"}

    @field_validator("username")
    @classmethod
    def _header_safe(cls, value: str) -> str:
        # Sent verbatim in the User-Agent header.
        if not (value.isascii() and value.isprintable()):
            raise ValueError("username must be printable ASCII")
        return value

    @field_validator("feed_url")
    @classmethod
    def _has_api_key_slot(cls, value: str) -> str:
        if "{api_key}" not in value:
            raise ValueError("feed_url must contain an {api_key} placeholder")
        try:
            value.format(api_key="x")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"feed_url may only use the {{api_key}} placeholder: {exc!r}") from exc
        return value


class ServerSettings(FeedSettings):
    """Feed access plus HTTP server and refresh configuration."""

    port: int = Field(gt=0, lt=65536)
    host: str = "0.0.0.0"
    refresh_hours: float = Field(1.0, gt=0)
    log_level: str = "INFO"
    syslog: bool = False

    @property
    def refresh_interval(self) -> float:
        """Refresh interval in seconds."""
        return self.refresh_hours * 3600


S = TypeVar("S", bound=FeedSettings)


def load_settings(cls: type[S] = ServerSettings, **overrides) -> S:
    """Build settings from the environment plus explicit overrides.

    ``None`` overrides are treated as "not given" so unset CLI options fall
    back to the environment and defaults.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return cls(**values)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                problems.append(f"{field} is required")
            else:
                problems.append(f"{field}: {error['msg']}")
        raise ConfigError("; ".join(problems)) from exc
