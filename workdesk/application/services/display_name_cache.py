"""Display-name cache for identifiers shown in history.

Maps (entity kind, identifier) to a human label for a fixed TTL. A miss
costs one upstream fetch; a failed fetch yields the identifier itself and is
not cached, so history rendering never fails on name resolution.
"""

from __future__ import annotations

import logging

from workdesk.core.constants import PLACEHOLDER
from workdesk.domain.entities import Credential
from workdesk.domain.enums import EntityKind
from workdesk.domain.exceptions import UpstreamError
from workdesk.domain.values import unwrap_value
from workdesk.infrastructure.cache import KeyValueStore, display_name_key
from workdesk.infrastructure.upstream import UpstreamClient, table_path

logger = logging.getLogger(__name__)

# Minimal field set per kind; labels are taken in this order
LABEL_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.USER: ("name", "user_name"),
    EntityKind.GROUP: ("name",),
}


class DisplayNameCache:
    """TTL cache of display labels backed by a KeyValueStore."""

    def __init__(
        self,
        upstream: UpstreamClient,
        store: KeyValueStore,
        *,
        ttl_seconds: int = 300,
    ) -> None:
        self._upstream = upstream
        self._store = store
        self._ttl = ttl_seconds

    async def resolve_name(
        self, credential: Credential, entity_kind: EntityKind, identifier: str | None
    ) -> str:
        """Return a label for identifier (the identifier itself if unresolvable)."""
        if not identifier:
            return PLACEHOLDER
        key = display_name_key(entity_kind.value, identifier)
        cached = await self._store.get(key)
        if cached:
            return cached

        fields = LABEL_FIELDS[entity_kind]
        path = table_path(
            entity_kind.value,
            identifier,
            display_value="all",
            fields=",".join(fields),
        )
        try:
            data = await self._upstream.get(credential, path)
        except UpstreamError as exc:
            logger.warning(
                "Name lookup failed for %s %s: %s", entity_kind.value, identifier, exc.message
            )
            return identifier

        record = data.get("result") if isinstance(data, dict) else None
        label = ""
        if isinstance(record, dict):
            label = next(
                (text for text in (unwrap_value(record.get(f)) for f in fields) if text), ""
            )
        label = label or identifier
        await self._store.set(key, label, ttl=self._ttl)
        return label
