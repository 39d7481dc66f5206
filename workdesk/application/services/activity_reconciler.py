"""Activity reconciler: one history narrative from two upstream audit trails.

The journal feed holds free-text notes (work notes and comments). The field
audit feed holds structured before/after changes. The reconciler fetches
both in parallel, drops audit rows that only echo journal content or repeat
a status change under an alias field, turns raw assignment identifiers into
names, and merges everything newest first.

The narrative is all-or-nothing: if either feed fails, the whole request
fails with ActivityFetchFailedException.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from workdesk.application.services.display_name_cache import DisplayNameCache
from workdesk.core.constants import (
    ASSIGNEE_FIELD,
    ASSIGNMENT_GROUP_FIELD,
    AUDIT_ENTRY_FIELDS,
    FEED_LIMIT,
    JOURNAL_ENTRY_FIELDS,
    JOURNAL_FIELDS,
    PRIMARY_STATUS_FIELD,
    STATUS_FIELD_ALIASES,
    TABLE_AUDIT,
    TABLE_JOURNAL,
)
from workdesk.domain.entities import AuditEvent, Credential, WorkItemRef
from workdesk.domain.enums import EntityKind, EventKind
from workdesk.domain.exceptions import ActivityFetchFailedException, UpstreamError
from workdesk.domain.values import (
    display_or_placeholder,
    is_sys_id,
    raw_value,
    unwrap_value,
)
from workdesk.infrastructure.upstream import UpstreamClient, conditions, in_list, table_path
from workdesk.shared.telemetry import add_span_attributes, traced

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Assignment fields whose raw identifiers are shown as names
NAME_RESOLVED_FIELDS: dict[str, EntityKind] = {
    ASSIGNEE_FIELD: EntityKind.USER,
    ASSIGNMENT_GROUP_FIELD: EntityKind.GROUP,
}


def journal_query(sys_id: str, *, newest_first: bool = True) -> str:
    order = "ORDERBYDESCsys_created_on" if newest_first else "ORDERBYsys_created_on"
    return conditions(f"element_id={sys_id}", in_list("element", JOURNAL_FIELDS), order)


def audit_query(sys_id: str) -> str:
    # documentkey, not tablename: many fields are audited against the base task table
    return conditions(f"documentkey={sys_id}", "ORDERBYDESCsys_created_on")


def status_change_times(audit_rows: list[dict[str, Any]]) -> set[str]:
    """Timestamps at which the primary status field changed."""
    return {
        raw_value(row.get("sys_created_on"))
        for row in audit_rows
        if raw_value(row.get("fieldname")).lower() == PRIMARY_STATUS_FIELD
    }


class ActivityReconciler:
    """Build the merged journal + field-change history of one work item."""

    def __init__(
        self,
        upstream: UpstreamClient,
        names: DisplayNameCache,
        *,
        audit_credential: Credential,
    ) -> None:
        """Initialize the reconciler.

        Args:
            upstream: Upstream client.
            names: Display-name cache for assignment identifiers.
            audit_credential: Elevated credential for the audit feed and name
                lookups (audit rows are often invisible to ordinary users).
        """
        self._upstream = upstream
        self._names = names
        self._audit_credential = audit_credential

    @traced("activity.build_narrative")
    async def build_narrative(self, credential: Credential, ref: WorkItemRef) -> str:
        """Return the rendered history of ref, newest entry first."""
        events = await self.build_events(credential, ref)
        return "\n".join(event.render() for event in events)

    async def build_events(self, credential: Credential, ref: WorkItemRef) -> list[AuditEvent]:
        """Fetch, reconcile and sort the history entries of ref.

        Raises:
            ActivityFetchFailedException: If either feed cannot be fetched.
        """
        try:
            journal_rows, audit_rows = await _all_or_cancel(
                self._fetch_journal(credential, ref.sys_id),
                self._fetch_audit(ref.sys_id),
            )
        except UpstreamError as exc:
            logger.warning("Activity fetch failed for %s/%s: %s", ref.table.value, ref.sys_id, exc.message)
            raise ActivityFetchFailedException(exc.message) from exc

        events = [self._journal_event(row) for row in journal_rows]
        events.extend(await self._field_events(audit_rows))
        events.sort(key=lambda e: e.timestamp, reverse=True)
        add_span_attributes(journal=len(journal_rows), audit=len(audit_rows), events=len(events))
        logger.debug(
            "Activity for %s: journal=%d audit=%d lines=%d",
            ref.sys_id,
            len(journal_rows),
            len(audit_rows),
            len(events),
        )
        return events

    async def _fetch_journal(self, credential: Credential, sys_id: str) -> list[dict[str, Any]]:
        path = table_path(
            TABLE_JOURNAL,
            fields=JOURNAL_ENTRY_FIELDS,
            query=journal_query(sys_id),
            limit=FEED_LIMIT,
        )
        data = await self._upstream.get(credential, path)
        return _rows(data)

    async def _fetch_audit(self, sys_id: str) -> list[dict[str, Any]]:
        path = table_path(
            TABLE_AUDIT,
            display_value="all",
            fields=AUDIT_ENTRY_FIELDS,
            query=audit_query(sys_id),
            limit=FEED_LIMIT,
        )
        data = await self._upstream.get(self._audit_credential, path)
        return _rows(data)

    @staticmethod
    def _journal_event(row: dict[str, Any]) -> AuditEvent:
        element = raw_value(row.get("element")).upper()
        kind = EventKind.COMMENTS if element == EventKind.COMMENTS.value else EventKind.WORK_NOTES
        return AuditEvent.journal(
            timestamp=raw_value(row.get("sys_created_on")),
            actor=unwrap_value(row.get("sys_created_by")),
            kind=kind,
            body=unwrap_value(row.get("value")),
        )

    async def _field_events(self, audit_rows: list[dict[str, Any]]) -> list[AuditEvent]:
        status_times = status_change_times(audit_rows)
        changes: list[tuple[dict[str, Any], str, EntityKind | None, str, str]] = []
        for row in audit_rows:
            field = raw_value(row.get("fieldname"))
            lowered = field.lower()
            if lowered in JOURNAL_FIELDS:
                continue
            if lowered in STATUS_FIELD_ALIASES:
                if raw_value(row.get("sys_created_on")) in status_times:
                    continue
                field = PRIMARY_STATUS_FIELD
            changes.append(
                (
                    row,
                    field,
                    NAME_RESOLVED_FIELDS.get(lowered),
                    unwrap_value(row.get("oldvalue")),
                    unwrap_value(row.get("newvalue")),
                )
            )

        labels = await self._resolve_names(
            {
                (kind, value)
                for _, _, kind, old, new in changes
                if kind is not None
                for value in (old, new)
            }
        )
        return [
            AuditEvent.field_change(
                timestamp=raw_value(row.get("sys_created_on")),
                actor=unwrap_value(row.get("sys_created_by")),
                field_name=field,
                old=labels.get((kind, old)) or display_or_placeholder(old),
                new=labels.get((kind, new)) or display_or_placeholder(new),
            )
            for row, field, kind, old, new in changes
        ]

    async def _resolve_names(
        self, refs: set[tuple[EntityKind, str]]
    ) -> dict[tuple[EntityKind, str], str]:
        """Labels for the raw identifiers in refs, one lookup per distinct identifier."""
        wanted = [(kind, value) for kind, value in refs if is_sys_id(value)]
        labels = await asyncio.gather(
            *(self._names.resolve_name(self._audit_credential, kind, value) for kind, value in wanted)
        )
        return dict(zip(wanted, labels))


async def _all_or_cancel(*aws: Awaitable[T]) -> list[T]:
    """Await aws concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def _rows(data: Any) -> list[dict[str, Any]]:
    rows = data.get("result") if isinstance(data, dict) else None
    return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []
