"""Domain enumerations for work items, references and history entries."""

from enum import Enum

from workdesk.shared.enums import _ValuesMixin


class TableKind(_ValuesMixin, str, Enum):
    """Upstream tables the proxy exposes as work items."""

    INCIDENT = "incident"
    TASK = "task"
    REQUESTED_ITEM = "sc_req_item"
    CHANGE = "change_request"
    APPROVAL = "sysapproval_approver"


class EntityKind(_ValuesMixin, str, Enum):
    """Referenced entity kinds that can be resolved by name."""

    USER = "sys_user"
    GROUP = "sys_user_group"


class EventKind(_ValuesMixin, str, Enum):
    """Kind of a reconciled history entry.

    Journal kinds use the upper-cased journal field name, matching how the
    narrative labels them.
    """

    WORK_NOTES = "WORK_NOTES"
    COMMENTS = "COMMENTS"
    FIELD = "FIELD"


class ReferenceStatus(_ValuesMixin, str, Enum):
    """How a reference input was turned into an identifier."""

    CANONICAL = "canonical"
    LOOKED_UP = "looked_up"
    PASSTHROUGH = "passthrough"


class ApprovalDecision(_ValuesMixin, str, Enum):
    """Decision forwarded to an approval record (value is the upstream state)."""

    APPROVE = "approved"
    REJECT = "rejected"

    @classmethod
    def parse(cls, raw: str | None) -> "ApprovalDecision | None":
        """Accept approve/approved/reject/rejected (any case); None otherwise."""
        key = str(raw or "").strip().lower()
        return {
            "approve": cls.APPROVE,
            "approved": cls.APPROVE,
            "reject": cls.REJECT,
            "rejected": cls.REJECT,
        }.get(key)
