"""Health check endpoint. No dependencies; used for liveness checks."""

import time

from fastapi import APIRouter, Request

from workdesk.schemas.envelope import Envelope
from workdesk.schemas.health import HealthStatus

router = APIRouter()


@router.get("/health", response_model=Envelope[HealthStatus])
def health_check(request: Request) -> Envelope[HealthStatus]:
    """Return ok status and process uptime."""
    started = getattr(request.app.state, "started_at", time.monotonic())
    uptime = max(0, int(time.monotonic() - started))
    return Envelope(result=HealthStatus(uptime_seconds=uptime))
