"""Helpers for the value shapes the upstream returns.

With display values requested, a field comes back either as a bare scalar or
as an object such as {"display_value": "Jane Doe", "value": "<sys_id>"}.
References may also be nested ({"link": ..., "value": ...}). These helpers
flatten them into plain strings.
"""

from typing import Any

from workdesk.core.constants import PLACEHOLDER, SYS_ID_PATTERN

# Label-bearing keys tried in order when unwrapping an object
_LABEL_KEYS = ("display_value", "value", "name", "user_name")


def is_sys_id(value: Any) -> bool:
    """Return True if value is a string in canonical identifier shape."""
    return isinstance(value, str) and bool(SYS_ID_PATTERN.match(value))


def pick_id(value: Any) -> Any:
    """Return value["value"] for reference objects, otherwise value unchanged."""
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value


def raw_value(value: Any) -> str:
    """Return the raw (non-display) form of a field as a string.

    Used for timestamps and field names, where the display form may be
    localized but the raw form is fixed-width.
    """
    if isinstance(value, dict):
        if "value" in value:
            return raw_value(value["value"])
        if "display_value" in value:
            return raw_value(value["display_value"])
        return ""
    if value is None:
        return ""
    return str(value)


def _unwrap(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, dict):
        for key in _LABEL_KEYS:
            if key in value:
                return _unwrap(value[key])
        if len(value) == 1:
            return _unwrap(next(iter(value.values())))
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(s for s in (_unwrap(v) for v in value) if s)
    return str(value)


def unwrap_value(value: Any) -> str:
    """Flatten an upstream value into plain text ('' when there is nothing to show).

    Objects are walked through display_value, value, name and user_name in
    that order, then a lone remaining key; anything else has no text form.
    """
    return _unwrap(value).strip()


def display_or_placeholder(value: str) -> str:
    """Return value, or the placeholder dash when it is empty."""
    return value if value else PLACEHOLDER
