"""HTTP interface using FastAPI."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictStr, TypeAdapter, ValidationError

from . import __version__
from .config import ServerSettings
from .core import Fetcher, FeedFetcher
from .decode import DatasetDecoder
from .errors import DecodeError, FetchError, RequestError
from .scheduler import RefreshScheduler
from .service import QueryService
from .state import DatasetState

logger = logging.getLogger(__name__)

_search_body = TypeAdapter(list[StrictStr])


class StatusResponse(BaseModel):
    last_updated: datetime | None
    entry_count: int
    search_count: int
    search_url_count: int


def create_app(
    settings: ServerSettings,
    fetcher: Fetcher | None = None,
    decoder: DatasetDecoder | None = None,
) -> FastAPI:
    """Build the lookup app.

    The feed is loaded once before the app accepts requests; if that load
    fails, startup fails.
    """
    if fetcher is None:
        fetcher = FeedFetcher(
            username=settings.username,
            api_key=settings.api_key,
            feed_url=settings.feed_url,
            timeout=settings.timeout,
        )
    state = DatasetState()
    scheduler = RefreshScheduler(
        fetcher,
        state,
        decoder=decoder or DatasetDecoder(settings.compression),
        interval=settings.refresh_interval,
    )
    service = QueryService(state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await scheduler.refresh(force=True)
        except (FetchError, DecodeError) as exc:
            logger.critical("Initial database load failed: %s", exc)
            await fetcher.close()
            raise
        scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop()
            await fetcher.close()

    app = FastAPI(
        title="phishdb",
        version=__version__,
        description="Membership lookups against the PhishTank online-valid feed",
        lifespan=lifespan,
    )
    app.state.dataset = state
    app.state.scheduler = scheduler
    app.state.service = service

    @app.exception_handler(RequestError)
    async def request_error_handler(request: Request, exc: RequestError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content={"detail": "Error decoding body"})

    @app.post("/search", response_model=list[str])
    async def search(request: Request):
        """Return the submitted URLs that are known phishing URLs."""
        body = await request.body()
        try:
            urls = _search_body.validate_json(body)
        except ValidationError as exc:
            raise RequestError(f"{exc.error_count()} validation error(s)") from exc
        return await service.check_many(urls)

    @app.get("/status", response_model=StatusResponse)
    async def status():
        snapshot = await service.status()
        return StatusResponse(
            last_updated=snapshot.last_updated,
            entry_count=snapshot.entry_count,
            search_count=snapshot.search_count,
            search_url_count=snapshot.search_url_count,
        )

    return app
