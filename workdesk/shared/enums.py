"""Shared enumerations for the workdesk proxy.

Cross-cutting enums used by application and infrastructure (e.g. which
credential performs upstream calls). Work-item enums live in
workdesk.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class CredentialMode(_ValuesMixin, str, Enum):
    """Which credential a session delegates to for upstream calls."""

    USER = "user"
    SERVICE = "service"
