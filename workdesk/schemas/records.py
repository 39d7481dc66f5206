"""Record and approval API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordUpdateRequest(BaseModel):
    """Partial update of a work item.

    Only keys present in the body are considered (model_dump(exclude_unset=True)).
    Reference fields accept a sys_id, a display string to resolve, or a
    {"value": ...} object. work_notes/comments set to "" are an explicit clear.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    state: Any = None
    impact: Any = None
    urgency: Any = None
    priority: Any = None
    assigned_to: Any = None
    assignment_group: Any = None
    short_description: str | None = None
    description: str | None = None
    work_notes: str | None = None
    comments: str | None = None


class ApprovalDecisionRequest(BaseModel):
    """Decision for POST /approval/{id}/decide: approve|approved|reject|rejected."""

    decision: str = Field(..., description="approve or reject")
    comments: str | None = Field(default=None, description="Optional comment forwarded to the approval")


class ApprovalDetails(BaseModel):
    """Approval row plus the record it approves (None when no candidate table has it)."""

    model_config = ConfigDict(populate_by_name=True)

    approval: dict[str, Any]
    target: dict[str, Any] | None = None
    target_table: str | None = Field(default=None, alias="targetTable")
