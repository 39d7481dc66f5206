"""API router aggregation.

All routes are mounted under /api by workdesk.main. Everything except
login and health requires a session and runs with a request-scoped
cancellation token.
"""

from fastapi import APIRouter, Depends

from workdesk.api.v1.dependencies import request_cancellation
from workdesk.api.v1.endpoints import approvals, auth, health, records, search, work_items
from workdesk.schemas.envelope import ErrorEnvelope

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, tags=["auth"])

_cancellable = [Depends(request_cancellation)]
_failures = {
    401: {"model": ErrorEnvelope, "description": "Missing, unknown or expired session token"},
    502: {"model": ErrorEnvelope, "description": "Upstream record store failed"},
}
for router, tag in (
    (work_items.router, "work-items"),
    (records.router, "records"),
    (search.router, "search"),
    (approvals.router, "approvals"),
):
    api_router.include_router(router, tags=[tag], dependencies=_cancellable, responses=_failures)
