"""Domain entities: sessions, work item references, history entries, update outcomes."""

from workdesk.domain.entities.activity import AuditEvent
from workdesk.domain.entities.session import Credential, Identity, Session
from workdesk.domain.entities.update import StepResult, UpdateOutcome
from workdesk.domain.entities.work_item import ResolvedReference, WorkItemRef

__all__ = [
    "AuditEvent",
    "Credential",
    "Identity",
    "ResolvedReference",
    "Session",
    "StepResult",
    "UpdateOutcome",
    "WorkItemRef",
]
