"""Redis-backed key-value store for sessions and display names.

Lets several proxy instances share sessions. Values are stored as JSON with
SETEX; on a dropped connection each operation reconnects once before giving
up. Session lookups fail closed: an unavailable Redis reads as a miss, so the
caller is treated as unauthenticated rather than served stale state.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from workdesk.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedisStore:
    """Async Redis KeyValueStore.

    Call connect() at startup and disconnect() at shutdown. Keys are
    namespaced with settings.redis_key_prefix.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Optional settings (defaults to get_settings()).
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    def _key(self, key: str) -> str:
        return f"{self.settings.redis_key_prefix}:{key}"

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value()
                    if self.settings.redis_password
                    else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                await self.redis.ping()
                self._connected = True
                logger.info(
                    "Redis store connected: %s:%s",
                    self.settings.redis_host,
                    self.settings.redis_port,
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis connection failed: %s. Store unavailable.", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis store disconnected")

    async def _reconnect(self) -> bool:
        """Attempt to reconnect after a dropped connection. Returns True if reconnected."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing dropped Redis connection")
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _call(self, op: str, command: Callable[[redis.Redis], Awaitable[T]]) -> T | None:
        """Run command, reconnecting once on a dropped connection.

        Returns None when Redis is unavailable or the command fails; failures
        are logged, never raised.
        """
        if not self.is_available() or self.redis is None:
            logger.debug("Store %s skipped (Redis unavailable)", op)
            return None
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if not await self._reconnect() or self.redis is None:
                logger.warning("Store %s unavailable (Redis disconnected)", op)
                return None
            try:
                return await command(self.redis)
            except redis.RedisError:
                logger.exception("Store %s error after reconnect", op)
                return None
        except redis.RedisError:
            logger.exception("Store %s error", op)
            return None

    async def get(self, key: str) -> Any | None:
        """Return the stored value (JSON-decoded), or None if missing or unavailable."""
        full_key = self._key(key)
        value = await self._call("get", lambda r: r.get(full_key))
        return json.loads(value) if value is not None else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store value; ttl in seconds (None keeps it until deleted).

        Returns:
            False if Redis is unavailable or rejected the write.
        """
        full_key = self._key(key)
        serialized = json.dumps(value)
        if ttl:
            stored = await self._call("set", lambda r: r.setex(full_key, ttl, serialized))
        else:
            stored = await self._call("set", lambda r: r.set(full_key, serialized))
        return bool(stored)

    async def delete(self, key: str) -> None:
        full_key = self._key(key)
        await self._call("delete", lambda r: r.delete(full_key))
