"""Record update pipeline: apply a partial update to one work item.

Structured fields and journal notes are written by two separate PATCH
calls because the upstream treats them differently (journal fields need
display-value input mode). Both writes are attempted; their results are
reported per step in an UpdateOutcome and nothing is rolled back.
"""

from __future__ import annotations

import logging
from typing import Any

from workdesk.application.services.reference_resolver import ReferenceResolver
from workdesk.core.constants import (
    ASSIGNEE_FIELD,
    ASSIGNMENT_GROUP_FIELD,
    JOURNAL_FIELDS,
    PROVENANCE_PREFIX,
    UPDATABLE_FIELDS,
)
from workdesk.domain.entities import Credential, StepResult, UpdateOutcome, WorkItemRef
from workdesk.domain.enums import EntityKind
from workdesk.domain.exceptions import UpdateFailedException, UpstreamError, ValidationException
from workdesk.domain.values import pick_id
from workdesk.infrastructure.upstream import UpstreamClient, table_path
from workdesk.shared.telemetry import add_span_attributes, traced

logger = logging.getLogger(__name__)

REFERENCE_FIELDS: dict[str, EntityKind] = {
    ASSIGNEE_FIELD: EntityKind.USER,
    ASSIGNMENT_GROUP_FIELD: EntityKind.GROUP,
}


def stamp_journal(text: Any, acting_label: str) -> str:
    """Trimmed text plus provenance line; '' (an explicit clear) when text is blank."""
    body = "" if text is None else str(text).strip()
    if not body:
        return ""
    return f"{body}\n{PROVENANCE_PREFIX} {acting_label}"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RecordUpdatePipeline:
    """Resolve references, write structured fields, then append journal notes."""

    def __init__(
        self,
        upstream: UpstreamClient,
        resolver: ReferenceResolver,
        *,
        strict_references: bool = False,
    ) -> None:
        """Initialize the pipeline.

        Args:
            upstream: Upstream client.
            resolver: Reference resolver for assignment fields.
            strict_references: Reject updates whose references did not resolve
                instead of passing the typed text through.
        """
        self._upstream = upstream
        self._resolver = resolver
        self._strict_references = strict_references

    @traced("record.update")
    async def apply(
        self,
        credential: Credential,
        ref: WorkItemRef,
        update: dict[str, Any],
        acting_label: str,
    ) -> UpdateOutcome:
        """Apply update to ref on behalf of acting_label.

        Returns:
            UpdateOutcome with both steps succeeded or skipped.

        Raises:
            ValidationException: If strict references are on and one did not resolve.
            UpdateFailedException: If any write failed (carries the outcome).
        """
        outcome = UpdateOutcome()
        fields = await self._structured_payload(credential, update, outcome)
        notes = self._journal_payload(update, acting_label)

        if fields:
            outcome.fields = await self._write(
                credential, table_path(ref.table.value, ref.sys_id), fields
            )
        if notes:
            outcome.notes = await self._write(
                credential,
                table_path(ref.table.value, ref.sys_id, input_display_value="true"),
                notes,
            )

        add_span_attributes(fields=len(fields), notes=len(notes), ok=outcome.ok)
        if not outcome.ok:
            raise UpdateFailedException(outcome.first_error or "Update failed", outcome)
        logger.info(
            "Updated %s %s (fields=%s notes=%s)",
            ref.table.value,
            ref.sys_id,
            sorted(fields),
            sorted(notes),
        )
        return outcome

    async def _structured_payload(
        self, credential: Credential, update: dict[str, Any], outcome: UpdateOutcome
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for name in UPDATABLE_FIELDS:
            if name not in update:
                continue
            value = update[name]
            kind = REFERENCE_FIELDS.get(name)
            if kind is not None:
                value = pick_id(value)
                if _is_blank(value):
                    continue
                try:
                    reference = await self._resolver.resolve(credential, kind, value)
                except UpstreamError as exc:
                    raise UpdateFailedException(exc.message, outcome) from exc
                if not reference.resolved:
                    if self._strict_references:
                        raise ValidationException(
                            f"No {kind.value} matches {reference.value!r}", field=name
                        )
                    outcome.unresolved_references.append(name)
                value = reference.value
            if _is_blank(value):
                continue
            payload[name] = value
        return payload

    @staticmethod
    def _journal_payload(update: dict[str, Any], acting_label: str) -> dict[str, str]:
        return {
            name: stamp_journal(update[name], acting_label)
            for name in JOURNAL_FIELDS
            if name in update and update[name] is not None
        }

    async def _write(
        self, credential: Credential, path: str, payload: dict[str, Any]
    ) -> StepResult:
        step = StepResult(attempted=True, payload=payload)
        try:
            await self._upstream.patch(credential, path, payload)
        except UpstreamError as exc:
            logger.warning("Update write failed (%s): %s", sorted(payload), exc.message)
            step.error = exc.message
            return step
        step.succeeded = True
        return step
