"""CLI interface using typer."""

import asyncio
import json

import typer

from .config import FeedSettings, ServerSettings, load_settings
from .core import FeedFetcher
from .decode import DatasetDecoder
from .errors import ConfigError, PhishDBError
from .scheduler import RefreshScheduler
from .service import QueryService
from .state import DatasetState

app = typer.Typer(
    name="phishdb",
    help="In-memory PhishTank lookup service",
    no_args_is_help=True,
)


def _load(cls, **overrides):
    try:
        return load_settings(cls, **overrides)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


async def _check(settings: FeedSettings, urls: list[str]) -> list[str]:
    """Load the feed once and check ``urls`` against it."""
    fetcher = FeedFetcher(
        username=settings.username,
        api_key=settings.api_key,
        feed_url=settings.feed_url,
        timeout=settings.timeout,
    )
    state = DatasetState()
    try:
        await RefreshScheduler(fetcher, state, DatasetDecoder(settings.compression)).refresh(force=True)
    finally:
        await fetcher.close()
    return await QueryService(state).check_many(urls)


@app.command()
def serve(
    port: int = typer.Option(None, "--port", "-p", help="Port to listen on (required)"),
    refresh: float = typer.Option(None, "--refresh", help="Refresh interval in hours [default: 1]"),
    username: str = typer.Option(None, "--username", "-u", help="PhishTank username"),
    api_key: str = typer.Option(None, "--api-key", "--apiKey", help="PhishTank API key"),
    host: str = typer.Option(None, "--host", help="Interface to bind [default: 0.0.0.0]"),
    syslog: bool = typer.Option(False, "--syslog", help="Also log to syslog"),
    log_level: str = typer.Option(None, "--log-level", help="Log level [default: INFO]"),
):
    """Serve lookups over HTTP, refreshing the feed periodically."""
    import uvicorn

    from .api import create_app
    from .logging_config import setup_logging

    settings = _load(
        ServerSettings,
        port=port,
        refresh_hours=refresh,
        username=username,
        api_key=api_key,
        host=host,
        syslog=syslog or None,
        log_level=log_level,
    )
    try:
        setup_logging(settings.log_level, use_syslog=settings.syslog)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


@app.command()
def check(
    urls: list[str] = typer.Argument(..., help="URLs to look up"),
    username: str = typer.Option(None, "--username", "-u", help="PhishTank username"),
    api_key: str = typer.Option(None, "--api-key", "--apiKey", help="PhishTank API key"),
):
    """Download the feed once and report which URLs are listed."""
    settings = _load(FeedSettings, username=username, api_key=api_key)

    try:
        found = asyncio.run(_check(settings, urls))
    except PhishDBError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(found, indent=2, ensure_ascii=False))


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"phishdb {__version__}")


if __name__ == "__main__":
    app()
