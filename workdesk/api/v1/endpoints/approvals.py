"""Approval API: details with the approved record, and decisions."""

from typing import Any

from fastapi import APIRouter

from workdesk.api.v1.dependencies import ContextDep, SessionDep
from workdesk.domain.entities import WorkItemRef
from workdesk.domain.enums import TableKind
from workdesk.schemas.envelope import Envelope
from workdesk.schemas.records import ApprovalDecisionRequest, ApprovalDetails

router = APIRouter()


def _approval_id(sys_id: str) -> str:
    return WorkItemRef.parse(TableKind.APPROVAL.value, sys_id).sys_id


@router.get("/approval/{sys_id}", response_model=Envelope[ApprovalDetails])
async def get_approval(sys_id: str, session: SessionDep, context: ContextDep):
    details = await context.work_items.get_approval(session.credential, _approval_id(sys_id))
    return Envelope(result=ApprovalDetails.model_validate(details))


@router.post("/approval/{sys_id}/decide", response_model=Envelope[Any])
async def decide_approval(
    sys_id: str,
    body: ApprovalDecisionRequest,
    session: SessionDep,
    context: ContextDep,
):
    """Approve or reject; the comment is forwarded unchanged when given."""
    result = await context.work_items.decide_approval(
        session.credential, _approval_id(sys_id), body.decision, body.comments
    )
    return Envelope(result=result)
