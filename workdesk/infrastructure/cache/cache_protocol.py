"""Key-value store protocol for sessions and cached display names.

Process-wide soft state goes through this interface so handlers never touch
a module-level dict: the memory store serves one process, the Redis store
lets several instances share sessions.
"""

from typing import Any, Protocol


class KeyValueStore(Protocol):
    """Protocol for store backends. Values must be JSON-serializable."""

    async def get(self, key: str) -> Any:
        """Return stored value or None (missing or expired)."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value with optional TTL in seconds (None = no expiry).

        Returns False when the backend could not take the write.
        """
        ...

    async def delete(self, key: str) -> None:
        """Remove key from the store."""
        ...
