"""Reference resolver: turn a typed name into a record identifier.

Inputs already in identifier shape are returned untouched with no upstream
call. Anything else is looked up by exact or partial match on the kind's
name fields (one row). When nothing matches, the original input is passed
through and tagged as such, so the caller can decide whether to write it.
"""

from __future__ import annotations

import logging
from typing import Any

from workdesk.core.constants import (
    GROUP_MATCH_FIELDS,
    GROUP_SEARCH_FIELDS,
    USER_MATCH_FIELDS,
    USER_SEARCH_FIELDS,
)
from workdesk.domain.entities import Credential, ResolvedReference
from workdesk.domain.enums import EntityKind, ReferenceStatus
from workdesk.domain.values import is_sys_id, pick_id, raw_value
from workdesk.infrastructure.upstream import UpstreamClient, matches_any, table_path

logger = logging.getLogger(__name__)

# Fields searched per kind, and fields returned
LOOKUP_FIELDS: dict[EntityKind, tuple[tuple[str, ...], str]] = {
    EntityKind.USER: (USER_MATCH_FIELDS, USER_SEARCH_FIELDS),
    EntityKind.GROUP: (GROUP_MATCH_FIELDS, GROUP_SEARCH_FIELDS),
}


class ReferenceResolver:
    """Resolve user/group references for assignment fields."""

    def __init__(self, upstream: UpstreamClient) -> None:
        self._upstream = upstream

    async def resolve(
        self, credential: Credential, entity_kind: EntityKind, value: Any
    ) -> ResolvedReference:
        """Resolve value (identifier, display string or {"value": ...} object).

        Raises:
            UpstreamError: If the lookup query fails.
        """
        candidate = pick_id(value)
        text = "" if candidate is None else str(candidate).strip()
        if not text:
            return ResolvedReference(text, ReferenceStatus.PASSTHROUGH)
        if is_sys_id(text):
            return ResolvedReference(text, ReferenceStatus.CANONICAL)

        search_fields, return_fields = LOOKUP_FIELDS[entity_kind]
        path = table_path(
            entity_kind.value,
            fields=return_fields,
            limit=1,
            query=matches_any(search_fields, text),
        )
        data = await self._upstream.get(credential, path)
        rows = data.get("result") if isinstance(data, dict) else None
        if isinstance(rows, list) and rows:
            sys_id = raw_value(rows[0].get("sys_id"))
            if sys_id:
                return ResolvedReference(sys_id, ReferenceStatus.LOOKED_UP)
        logger.info("No %s matched reference input; passing it through", entity_kind.value)
        return ResolvedReference(text, ReferenceStatus.PASSTHROUGH)
