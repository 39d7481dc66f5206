"""Work lists: open incidents, open tasks and pending approvals of the caller."""

from typing import Any

from fastapi import APIRouter

from workdesk.api.v1.dependencies import ContextDep, SessionDep
from workdesk.schemas.envelope import Envelope

router = APIRouter()

RowsEnvelope = Envelope[list[dict[str, Any]]]


@router.get("/incidents", response_model=RowsEnvelope)
async def list_incidents(session: SessionDep, context: ContextDep):
    """Open incidents assigned to me, to my groups, or to nobody."""
    return Envelope(result=await context.work_items.list_incidents(session))


@router.get("/tasks", response_model=RowsEnvelope)
async def list_tasks(session: SessionDep, context: ContextDep):
    """Open generic tasks (incidents and requested items excluded)."""
    return Envelope(result=await context.work_items.list_tasks(session))


@router.get("/approvals", response_model=RowsEnvelope)
async def list_approvals(session: SessionDep, context: ContextDep):
    """Requested approvals for me, my groups, or nobody."""
    return Envelope(result=await context.work_items.list_approvals(session))
