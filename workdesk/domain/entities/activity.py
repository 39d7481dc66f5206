"""Reconciled history entries."""

from dataclasses import dataclass

from workdesk.core.constants import PROVENANCE_PREFIX
from workdesk.domain.enums import EventKind


@dataclass(frozen=True)
class AuditEvent:
    """One line of a work item's history (journal note or field change).

    Immutable once built; ordering key is timestamp, newest first. The
    upstream timestamp format is fixed-width, so string order is time order.
    """

    timestamp: str
    actor: str
    kind: EventKind
    text: str
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None

    @classmethod
    def journal(cls, timestamp: str, actor: str, kind: EventKind, body: str) -> "AuditEvent":
        body = body.strip()
        tag = f"{PROVENANCE_PREFIX} {actor}"
        text = f"{body} {tag}" if body else tag
        return cls(timestamp=timestamp, actor=actor, kind=kind, text=text)

    @classmethod
    def field_change(
        cls, timestamp: str, actor: str, field_name: str, old: str, new: str
    ) -> "AuditEvent":
        text = f"{field_name}: {old} → {new} {PROVENANCE_PREFIX} {actor}"
        return cls(
            timestamp=timestamp,
            actor=actor,
            kind=EventKind.FIELD,
            text=text,
            field_name=field_name,
            old_value=old,
            new_value=new,
        )

    def render(self) -> str:
        return f"[{self.timestamp}] {self.actor} — {self.kind.value}\n{self.text}"
