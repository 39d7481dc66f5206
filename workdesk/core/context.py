"""Process context: the stores, upstream client and services of one proxy.

Built once by the lifespan and kept on app.state.context. Handlers reach
services through workdesk.api.v1.dependencies, never through module
globals, so tests can build a context around a fake upstream transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from workdesk.application.services import (
    ActivityReconciler,
    DisplayNameCache,
    RecordUpdatePipeline,
    ReferenceResolver,
    SessionService,
    WorkItemService,
)
from workdesk.core.config import Settings
from workdesk.domain.entities import Credential
from workdesk.infrastructure.cache import KeyValueStore, MemoryStore, RedisStore
from workdesk.infrastructure.upstream import UpstreamClient

logger = logging.getLogger(__name__)


@dataclass
class ProxyContext:
    """Everything request handlers share for the lifetime of the process."""

    settings: Settings
    upstream: UpstreamClient
    session_store: KeyValueStore
    name_store: KeyValueStore
    sessions: SessionService
    resolver: ReferenceResolver
    names: DisplayNameCache
    reconciler: ActivityReconciler
    updates: RecordUpdatePipeline
    work_items: WorkItemService
    redis: RedisStore | None = None

    async def aclose(self) -> None:
        """Release the upstream connection pool and the Redis connection."""
        await self.upstream.aclose()
        if self.redis is not None:
            await self.redis.disconnect()


def build_context(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    redis_store: RedisStore | None = None,
) -> ProxyContext:
    """Wire stores and services from settings.

    Args:
        settings: Loaded settings.
        http_client: Optional shared HTTP client (tests pass one with a mock transport).
        redis_store: Connected Redis store, required when store_backend is "redis".
    """
    upstream = UpstreamClient(
        settings.upstream_base_url,
        http_client=http_client,
        timeout_ms=settings.upstream_timeout_ms,
        retries=settings.upstream_retries,
        backoff_ms=settings.upstream_backoff_ms,
    )
    if settings.store_backend == "redis":
        if redis_store is None:
            raise ValueError("store_backend is 'redis' but no Redis store was provided")
        session_store: KeyValueStore = redis_store
        name_store: KeyValueStore = redis_store
    else:
        session_store = MemoryStore(settings.session_max_entries)
        name_store = MemoryStore(settings.name_cache_max_entries)

    service_credential = Credential(
        username=settings.upstream_username,
        password=settings.upstream_password.get_secret_value(),
    )
    sessions = SessionService(
        upstream,
        session_store,
        service_credential=service_credential,
        use_service_account=settings.use_service_account_for_all,
        ttl_seconds=settings.session_ttl_seconds,
    )
    resolver = ReferenceResolver(upstream)
    names = DisplayNameCache(upstream, name_store, ttl_seconds=settings.name_cache_ttl_seconds)
    logger.info(
        "Proxy context ready: upstream=%s store=%s service_account_for_all=%s",
        settings.upstream_base_url,
        settings.store_backend,
        settings.use_service_account_for_all,
    )
    return ProxyContext(
        settings=settings,
        upstream=upstream,
        session_store=session_store,
        name_store=name_store,
        sessions=sessions,
        resolver=resolver,
        names=names,
        reconciler=ActivityReconciler(upstream, names, audit_credential=service_credential),
        updates=RecordUpdatePipeline(
            upstream, resolver, strict_references=settings.strict_reference_resolution
        ),
        work_items=WorkItemService(upstream, sessions),
        redis=redis_store,
    )
