"""Work-item queries: scoped lists, record reads, typeahead search and approvals.

Lists are scoped in the proxy rather than by upstream ACLs: a session sees
items assigned to its identity, to one of its groups, or to nobody. This is
what keeps scoping intact when every call runs under the service account.
"""

from __future__ import annotations

import logging
from typing import Any

from workdesk.application.services.session_service import SessionService
from workdesk.core.constants import (
    APPROVAL_DETAIL_FIELDS,
    APPROVAL_LIST_FIELDS,
    APPROVAL_PENDING_STATE,
    APPROVAL_TARGET_TABLES,
    ASSIGNEE_FIELD,
    ASSIGNMENT_GROUP_FIELD,
    CHANGE_FIELDS,
    GROUP_MATCH_FIELDS,
    GROUP_SEARCH_FIELDS,
    INCIDENT_CLOSED_STATES,
    JOURNAL_ENTRY_FIELDS,
    JOURNAL_FIELDS,
    JOURNAL_TRANSCRIPT_LIMIT,
    LIST_LIMIT,
    PRIMARY_STATUS_FIELD,
    RECORD_FIELDS,
    SEARCH_LIMIT,
    TABLE_APPROVAL,
    TABLE_GROUP,
    TABLE_JOURNAL,
    TABLE_USER,
    TASK_CLOSED_STATES,
    TASK_EXCLUDED_CLASSES,
    USER_MATCH_FIELDS,
    USER_SEARCH_FIELDS,
)
from workdesk.domain.entities import Credential, Session, WorkItemRef
from workdesk.domain.enums import ApprovalDecision, TableKind
from workdesk.domain.exceptions import (
    ResourceNotFoundException,
    UpstreamError,
    ValidationException,
)
from workdesk.domain.values import is_sys_id, pick_id, raw_value, unwrap_value
from workdesk.infrastructure.upstream import (
    UpstreamClient,
    conditions,
    in_list,
    matches_any,
    table_path,
    union,
)

logger = logging.getLogger(__name__)

APPROVER_FIELD = "approver"


def scoped_query(
    base: str,
    user_id: str,
    groups: list[str],
    *,
    owner_field: str,
    group_field: str | None = None,
) -> str:
    """Union of "mine", "one of my groups" and "unassigned", each ANDed with base.

    When group_field is None, group ids are matched against owner_field
    (approvals can be owned by a user or a group).
    """
    mine = conditions(base, f"{owner_field}={user_id}")
    unassigned = conditions(
        base,
        f"{owner_field}ISEMPTY",
        f"{group_field}ISEMPTY" if group_field else "",
    )
    if not groups:
        return union(mine, unassigned)
    mine_by_group = conditions(base, in_list(group_field or owner_field, groups))
    return union(mine, mine_by_group, unassigned)


def incident_query(user_id: str, groups: list[str]) -> str:
    base = in_list(PRIMARY_STATUS_FIELD, INCIDENT_CLOSED_STATES, negate=True)
    return scoped_query(
        base, user_id, groups, owner_field=ASSIGNEE_FIELD, group_field=ASSIGNMENT_GROUP_FIELD
    )


def task_query(user_id: str, groups: list[str]) -> str:
    base = conditions(
        in_list(PRIMARY_STATUS_FIELD, TASK_CLOSED_STATES, negate=True),
        in_list("sys_class_name", TASK_EXCLUDED_CLASSES, negate=True),
    )
    return scoped_query(
        base, user_id, groups, owner_field=ASSIGNEE_FIELD, group_field=ASSIGNMENT_GROUP_FIELD
    )


def approval_query(user_id: str, groups: list[str]) -> str:
    base = f"{PRIMARY_STATUS_FIELD}={APPROVAL_PENDING_STATE}"
    return scoped_query(base, user_id, groups, owner_field=APPROVER_FIELD)


def render_transcript(rows: list[dict[str, Any]]) -> str:
    """Journal rows as `[ts] author — KIND` blocks separated by blank lines."""
    blocks = []
    for row in rows:
        kind = raw_value(row.get("element")).upper()
        header = f"[{raw_value(row.get('sys_created_on'))}] {unwrap_value(row.get('sys_created_by'))} — {kind}"
        blocks.append(f"{header}\n{raw_value(row.get('value'))}\n")
    return "\n".join(blocks)


class WorkItemService:
    """Read-side operations and approval decisions for signed-in sessions."""

    def __init__(self, upstream: UpstreamClient, sessions: SessionService) -> None:
        self._upstream = upstream
        self._sessions = sessions

    async def list_incidents(self, session: Session) -> list[dict[str, Any]]:
        groups = await self._sessions.groups_for(session)
        return await self._list(
            session.credential,
            TableKind.INCIDENT.value,
            incident_query(session.identity.id, groups),
            RECORD_FIELDS,
        )

    async def list_tasks(self, session: Session) -> list[dict[str, Any]]:
        groups = await self._sessions.groups_for(session)
        return await self._list(
            session.credential,
            TableKind.TASK.value,
            task_query(session.identity.id, groups),
            RECORD_FIELDS,
        )

    async def list_approvals(self, session: Session) -> list[dict[str, Any]]:
        groups = await self._sessions.groups_for(session)
        return await self._list(
            session.credential,
            TABLE_APPROVAL,
            approval_query(session.identity.id, groups),
            APPROVAL_LIST_FIELDS,
        )

    async def get_record(self, credential: Credential, ref: WorkItemRef) -> dict[str, Any]:
        """One record with display values; changes get the extended field set."""
        fields = CHANGE_FIELDS if ref.table is TableKind.CHANGE else RECORD_FIELDS
        return await self._get_one(
            credential,
            ref.table.value,
            ref.sys_id,
            table_path(ref.table.value, ref.sys_id, display_value="all", fields=fields),
        )

    async def get_change(self, credential: Credential, sys_id: str) -> dict[str, Any]:
        return await self.get_record(credential, WorkItemRef(TableKind.CHANGE, sys_id))

    async def get_journal(self, credential: Credential, ref: WorkItemRef) -> str:
        """Full journal transcript of ref, oldest entry first."""
        query = conditions(
            f"element_id={ref.sys_id}",
            in_list("element", JOURNAL_FIELDS),
            "ORDERBYsys_created_on",
        )
        data = await self._upstream.get(
            credential,
            table_path(
                TABLE_JOURNAL,
                fields=JOURNAL_ENTRY_FIELDS,
                query=query,
                limit=JOURNAL_TRANSCRIPT_LIMIT,
            ),
        )
        return render_transcript(_rows(data))

    async def search_users(self, credential: Credential, q: str | None) -> list[dict[str, Any]]:
        return await self._search(credential, TABLE_USER, USER_MATCH_FIELDS, USER_SEARCH_FIELDS, q)

    async def search_groups(self, credential: Credential, q: str | None) -> list[dict[str, Any]]:
        return await self._search(credential, TABLE_GROUP, GROUP_MATCH_FIELDS, GROUP_SEARCH_FIELDS, q)

    async def get_approval(self, credential: Credential, sys_id: str) -> dict[str, Any]:
        """Approval row plus the record it approves.

        The target table is not stored on the approval, so candidate tables
        are tried in order; the first hit wins and per-table failures are
        skipped. target/targetTable are None when nothing matched.
        """
        approval = await self._get_one(
            credential,
            TABLE_APPROVAL,
            sys_id,
            table_path(TABLE_APPROVAL, sys_id, display_value="all", fields=APPROVAL_DETAIL_FIELDS),
        )
        target_id = raw_value(pick_id(approval.get("sysapproval")))
        target, target_table = None, None
        if is_sys_id(target_id):
            for table in APPROVAL_TARGET_TABLES:
                try:
                    data = await self._upstream.get(
                        credential, table_path(table, target_id, display_value="all")
                    )
                except UpstreamError as exc:
                    logger.debug("Approval target not in %s: %s", table, exc.message)
                    continue
                row = data.get("result") if isinstance(data, dict) else None
                if isinstance(row, dict) and row.get("sys_id"):
                    target, target_table = row, table
                    break
        return {"approval": approval, "target": target, "targetTable": target_table}

    async def decide_approval(
        self,
        credential: Credential,
        sys_id: str,
        decision: str | None,
        comment: str | None = None,
    ) -> Any:
        """Forward an approve/reject decision (and optional comment) to the approval row.

        Raises:
            ValidationException: If decision is not approve/reject.
        """
        parsed = ApprovalDecision.parse(decision)
        if parsed is None:
            raise ValidationException("Invalid decision; use approve|reject", field="decision")
        payload = {"state": parsed.value}
        if comment:
            payload["comments"] = comment
        data = await self._upstream.patch(
            credential,
            table_path(TABLE_APPROVAL, sys_id, input_display_value="true"),
            payload,
        )
        logger.info("Approval %s set to %s", sys_id, parsed.value)
        result = data.get("result") if isinstance(data, dict) else None
        return result or True

    async def _list(
        self, credential: Credential, table: str, query: str, fields: str
    ) -> list[dict[str, Any]]:
        data = await self._upstream.get(
            credential,
            table_path(table, display_value="all", query=query, fields=fields, limit=LIST_LIMIT),
        )
        rows = _rows(data)
        logger.debug("Listed %d rows from %s", len(rows), table)
        return rows

    async def _get_one(
        self, credential: Credential, table: str, sys_id: str, path: str
    ) -> dict[str, Any]:
        try:
            data = await self._upstream.get(credential, path)
        except UpstreamError as exc:
            if exc.status_code == 404:
                raise ResourceNotFoundException(table, sys_id) from exc
            raise
        row = data.get("result") if isinstance(data, dict) else None
        if not row or not isinstance(row, dict):
            raise ResourceNotFoundException(table, sys_id)
        return row

    async def _search(
        self,
        credential: Credential,
        table: str,
        match_fields: tuple[str, ...],
        fields: str,
        q: str | None,
    ) -> list[dict[str, Any]]:
        term = (q or "").strip()
        if not term:
            return []
        data = await self._upstream.get(
            credential,
            table_path(
                table,
                fields=fields,
                query=matches_any(match_fields, term),
                display_value="all",
                limit=SEARCH_LIMIT,
            ),
        )
        return _rows(data)


def _rows(data: Any) -> list[dict[str, Any]]:
    rows = data.get("result") if isinstance(data, dict) else None
    return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []
