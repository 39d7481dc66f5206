"""Application lifespan: startup and shutdown.

Single place for startup/shutdown wiring: telemetry, the Redis store (when
configured) and the ProxyContext with its shared HTTP client.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from workdesk.core.config import get_settings
from workdesk.core.context import build_context
from workdesk.infrastructure.cache import RedisStore
from workdesk.shared.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), Redis store (if the store
    backend is redis), proxy context. Shutdown reverses it.
    """
    settings = get_settings()

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig.from_settings(settings)
        if telemetry.start(app):
            set_telemetry(telemetry)

    redis_store = None
    if settings.store_backend == "redis":
        redis_store = RedisStore(settings=settings)
        await redis_store.connect()

    # One pooled client for all upstream calls; per-call timeouts are set by UpstreamClient
    http_client = httpx.AsyncClient()
    app.state.context = build_context(
        settings, http_client=http_client, redis_store=redis_store
    )

    yield

    await app.state.context.aclose()
    await http_client.aclose()
    app.state.context = None
    logger.info("Upstream client and stores closed")

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)
