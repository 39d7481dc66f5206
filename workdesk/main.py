"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers. Settings
are loaded inside create_app() so tests can set env (and clear the
get_settings cache) before building an app.
"""

import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workdesk.api.v1 import api_router
from workdesk.core.config import get_settings
from workdesk.core.exception_handlers import register_exception_handlers
from workdesk.core.lifespan import create_lifespan
from workdesk.core.limiter import limiter
from workdesk.middleware import (
    CorrelationIDMiddleware,
    RequestIDMiddleware,
    RequestLogMiddleware,
    TimeoutMiddleware,
)
from workdesk.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.started_at = time.monotonic()

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    register_exception_handlers(app)

    # Last added = outermost: timeout -> request ID -> correlation ID -> request log -> CORS
    origins = settings.origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.correlation_id_header)
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
