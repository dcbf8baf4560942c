"""
FastAPI application factory.

Long-lived collaborators (snapshot store, caches, fetchers) are built once
per app from :class:`Settings` and kept on ``app.state.services``; route
handlers receive them through :func:`get_services`. Tests pass their own
:class:`Services` to :func:`create_app`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from redlist_explorer import __version__
from redlist_explorer.analysis.breakdown import BreakdownFetcher
from redlist_explorer.analysis.listing import ListingAggregator
from redlist_explorer.analysis.species_detail import SpeciesDetailFetcher
from redlist_explorer.cache import Cache, MemoryCache
from redlist_explorer.config import Settings, get_settings
from redlist_explorer.errors import RedListExplorerError
from redlist_explorer.logging_setup import configure_logging
from redlist_explorer.store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs, shared across requests."""

    store: SnapshotStore
    listings: ListingAggregator
    details: SpeciesDetailFetcher
    breakdowns: BreakdownFetcher
    cache: Cache
    cache_ttl: float


def build_services(settings: Settings) -> Services:
    store = SnapshotStore(settings.data_dir, reload_interval=settings.snapshot_reload_seconds)
    cache = MemoryCache()
    fanout_limits = {
        "timeout": settings.provider_timeout_seconds,
        "max_workers": settings.fanout_max_workers,
    }
    return Services(
        store=store,
        listings=ListingAggregator(store, max_limit=settings.listing_max_limit, **fanout_limits),
        details=SpeciesDetailFetcher(cache, ttl=settings.detail_cache_ttl_seconds, **fanout_limits),
        breakdowns=BreakdownFetcher(cache, ttl=settings.detail_cache_ttl_seconds, **fanout_limits),
        cache=cache,
        cache_ttl=settings.detail_cache_ttl_seconds,
    )


def get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


async def handle_app_error(_request: Request, exc: Exception) -> JSONResponse:
    """Render our exceptions as ``{"error": message}`` with their status code."""
    status = getattr(exc, "status_code", 500)
    if status >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    else:
        logger.info("%s: %s", type(exc).__name__, exc)
    return JSONResponse(status_code=status, content={"error": str(exc)})


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the API application."""
    from redlist_explorer.web.routes import router

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=__version__, debug=settings.debug)
    app.state.settings = settings
    app.state.services = services or build_services(settings)
    app.add_exception_handler(RedListExplorerError, handle_app_error)
    app.include_router(router)

    logger.info("API ready (data dir: %s)", settings.data_dir)
    return app
