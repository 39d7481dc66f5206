"""Stores: key-value protocol, in-memory and Redis backends, key builders.

Sessions and display names are kept through KeyValueStore so the backend
can be swapped by configuration (STORE_BACKEND) without touching services.
"""

from workdesk.infrastructure.cache.cache_protocol import KeyValueStore
from workdesk.infrastructure.cache.keys import display_name_key, session_key
from workdesk.infrastructure.cache.memory_store import MemoryStore
from workdesk.infrastructure.cache.redis_cache import RedisStore

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "display_name_key",
    "session_key",
]
