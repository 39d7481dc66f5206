"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Result of GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")
    uptime_seconds: int = Field(..., ge=0, description="Seconds since the app was created")
