"""Outcome of a record update: one step per upstream write."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StepResult:
    """Result of one write. attempted is False when there was nothing to send."""

    attempted: bool = False
    succeeded: bool = False
    payload: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "fields": sorted(self.payload),
            "error": self.error,
        }


@dataclass
class UpdateOutcome:
    """Structured-field write and journal write, reported separately."""

    fields: StepResult = field(default_factory=StepResult)
    notes: StepResult = field(default_factory=StepResult)
    unresolved_references: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(s.succeeded or not s.attempted for s in (self.fields, self.notes))

    @property
    def first_error(self) -> str | None:
        for step in (self.fields, self.notes):
            if step.attempted and not step.succeeded:
                return step.error
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": self.fields.to_dict(),
            "notes": self.notes.to_dict(),
            "unresolved_references": list(self.unresolved_references),
        }
