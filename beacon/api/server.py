# ==============================================================================
# Beacon HTTP API
# ==============================================================================
"""
FastAPI application exposing the collector.

Routes:
    POST /api/send  - Ingest one beacon
    GET  /health    - Liveness probe

The route is a thin adapter: it parses JSON, reads the continuation token
header and maps the collector outcome to a status code and body.
"""

import json
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from beacon.core.collector import BadRequest, BotIgnored, Collector
from beacon.infrastructure.factory import build_collector, close_collector, connect_collector
from beacon.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def get_collector(request: Request) -> Collector:
    """Collector bound to the running app (overridable in tests)."""
    return request.app.state.collector


def create_app(collector: Collector | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        collector: Pre-built collector. When omitted one is built from settings
            and its repositories are connected for the lifetime of the app.
        settings: Settings (defaults to get_settings())
    """
    settings = settings or get_settings()
    owns_collector = collector is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_collector:
            await run_in_threadpool(connect_collector, app.state.collector)
        logger.info("Beacon collector ready")
        try:
            yield
        finally:
            if owns_collector:
                close_collector(app.state.collector)

    app = FastAPI(
        title="Beacon Collector",
        description="Web analytics beacon ingestion",
        lifespan=lifespan,
    )
    app.state.collector = collector or build_collector(settings)
    app.state.cache_header = settings.collector.cache_header

    # Trackers post from the tracked site's origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.post("/api/send")
    async def send(request: Request, collector: Collector = Depends(get_collector)):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            if collector.is_bot(request.headers):
                outcome = BotIgnored()
            else:
                outcome = BadRequest("Invalid JSON body.")
            return JSONResponse(outcome.to_body(), status_code=outcome.status)

        outcome = await run_in_threadpool(
            collector.collect,
            body,
            dict(request.headers),
            request.headers.get(request.app.state.cache_header),
            request.client.host if request.client else None,
        )
        return JSONResponse(outcome.to_body(), status_code=outcome.status)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
