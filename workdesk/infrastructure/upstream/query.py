"""Path and encoded-query builders for the upstream Table API.

Encoded queries join conditions with "^", alternatives with "^OR" and
whole alternative queries with "^NQ". Values are inserted verbatim and the
whole query string is URL-encoded once by table_path.
"""

from urllib.parse import quote, urlencode

_TABLE_API = "/api/now/table"


def table_path(table: str, sys_id: str | None = None, **params: object) -> str:
    """Return /api/now/table/<table>[/<sys_id>] with sysparm_* query parameters.

    Keyword arguments are prefixed with "sysparm_" (display_value="all" becomes
    sysparm_display_value=all); None values are dropped.
    """
    path = f"{_TABLE_API}/{quote(table, safe='')}"
    if sys_id:
        path = f"{path}/{quote(sys_id, safe='')}"
    query = {f"sysparm_{k}": v for k, v in params.items() if v is not None}
    if not query:
        return path
    return f"{path}?{urlencode(query)}"


def matches_any(fields: tuple[str, ...], value: str) -> str:
    """Exact match on any field, then partial (LIKE) match on any field."""
    exact = [f"{field}={value}" for field in fields]
    partial = [f"{field}LIKE{value}" for field in fields]
    return "^OR".join(exact + partial)


def union(*queries: str) -> str:
    """Join independent encoded queries so rows matching any of them are returned."""
    return "^NQ".join(q for q in queries if q)


def conditions(*parts: str) -> str:
    """AND-join conditions, skipping empty ones."""
    return "^".join(p for p in parts if p)


def in_list(field: str, values: tuple[str, ...] | list[str], *, negate: bool = False) -> str:
    op = "NOT IN" if negate else "IN"
    return f"{field}{op}{','.join(values)}"
