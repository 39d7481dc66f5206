"""Upstream record store access: retrying HTTP client and Table API query builders."""

from workdesk.infrastructure.upstream.client import UpstreamClient
from workdesk.infrastructure.upstream.query import (
    conditions,
    in_list,
    matches_any,
    table_path,
    union,
)

__all__ = [
    "UpstreamClient",
    "conditions",
    "in_list",
    "matches_any",
    "table_path",
    "union",
]
