"""Store key builders. Single place for key format (DRY).

Key components must not contain CACHE_KEY_SEP to avoid ambiguous or
colliding keys.
"""

from workdesk.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_DISPLAY_NAME,
    CACHE_PREFIX_SESSION,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the key separator."""
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def session_key(token: str) -> str:
    """Store key for a session by bearer token."""
    _validate_key_component(token, "token")
    return f"{CACHE_PREFIX_SESSION}{CACHE_KEY_SEP}{token}"


def display_name_key(entity_kind: str, identifier: str) -> str:
    """Store key for the display label of (entity kind, identifier)."""
    _validate_key_component(entity_kind, "entity_kind")
    _validate_key_component(identifier, "identifier")
    return f"{CACHE_PREFIX_DISPLAY_NAME}{CACHE_KEY_SEP}{entity_kind}{CACHE_KEY_SEP}{identifier}"
