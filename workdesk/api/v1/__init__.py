"""API v1: routes, dependencies and endpoint modules."""

from workdesk.api.v1.router import api_router

__all__ = ["api_router"]
