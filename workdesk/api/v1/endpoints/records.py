"""Record API: read, update, activity narrative and journal transcript."""

from typing import Any

from fastapi import APIRouter

from workdesk.api.v1.dependencies import ContextDep, SessionDep
from workdesk.domain.entities import WorkItemRef
from workdesk.domain.enums import TableKind
from workdesk.schemas.envelope import Envelope
from workdesk.schemas.records import RecordUpdateRequest

router = APIRouter()


@router.get("/record/{table}/{sys_id}", response_model=Envelope[dict[str, Any]])
async def get_record(table: str, sys_id: str, session: SessionDep, context: ContextDep):
    ref = WorkItemRef.parse(table, sys_id)
    return Envelope(result=await context.work_items.get_record(session.credential, ref))


@router.patch("/record/{table}/{sys_id}", response_model=Envelope[dict[str, Any]])
async def update_record(
    table: str,
    sys_id: str,
    body: RecordUpdateRequest,
    session: SessionDep,
    context: ContextDep,
):
    """Apply a partial update; journal text is stamped with the caller's login name.

    The result reports each write step. If any step fails the response is a
    502 failure envelope whose error.steps shows what was applied.
    """
    ref = WorkItemRef.parse(table, sys_id)
    outcome = await context.updates.apply(
        session.credential,
        ref,
        body.model_dump(exclude_unset=True),
        session.identity.label,
    )
    return Envelope(result=outcome.to_dict())


@router.get("/record/{table}/{sys_id}/activity", response_model=Envelope[str])
async def get_activity(table: str, sys_id: str, session: SessionDep, context: ContextDep):
    """Merged journal and field-change history, newest first, as plain text."""
    ref = WorkItemRef.parse(table, sys_id)
    return Envelope(result=await context.reconciler.build_narrative(session.credential, ref))


@router.get("/record/{table}/{sys_id}/journal", response_model=Envelope[str])
async def get_journal(table: str, sys_id: str, session: SessionDep, context: ContextDep):
    """Every work note and comment, oldest first."""
    ref = WorkItemRef.parse(table, sys_id)
    return Envelope(result=await context.work_items.get_journal(session.credential, ref))


@router.get("/change/{sys_id}/details", response_model=Envelope[dict[str, Any]])
async def get_change_details(sys_id: str, session: SessionDep, context: ContextDep):
    ref = WorkItemRef.parse(TableKind.CHANGE.value, sys_id)
    return Envelope(result=await context.work_items.get_change(session.credential, ref.sys_id))
