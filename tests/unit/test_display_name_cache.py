"""DisplayNameCache: TTL, fetch on miss, identifier fallback on failure."""

import httpx

from conftest import TABLE_API, query_of, sys_id
from workdesk.application.services import DisplayNameCache
from workdesk.core.constants import PLACEHOLDER
from workdesk.domain.enums import EntityKind
from workdesk.infrastructure.cache import MemoryStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def test_miss_fetches_then_serves_from_cache(upstream, fake_upstream, credential):
    ident = sys_id(1)
    fake_upstream.on_table(
        "sys_user", {"name": {"display_value": "Jane Doe", "value": "Jane Doe"}}, ident
    )
    names = DisplayNameCache(upstream, MemoryStore())

    assert await names.resolve_name(credential, EntityKind.USER, ident) == "Jane Doe"
    assert await names.resolve_name(credential, EntityKind.USER, ident) == "Jane Doe"

    assert len(fake_upstream.requests) == 1
    params = query_of(fake_upstream.requests[0])
    assert params["sysparm_fields"] == "name,user_name"
    assert params["sysparm_display_value"] == "all"


async def test_expired_entry_is_refetched(upstream, fake_upstream, credential):
    ident = sys_id(2)
    labels = iter(["Old Name", "New Name"])
    fake_upstream.on(
        "GET",
        f"{TABLE_API}/sys_user_group/{ident}",
        lambda r: httpx.Response(200, json={"result": {"name": next(labels)}}),
    )
    clock = FakeClock()
    names = DisplayNameCache(upstream, MemoryStore(clock=clock), ttl_seconds=300)

    assert await names.resolve_name(credential, EntityKind.GROUP, ident) == "Old Name"
    clock.now += 301
    assert await names.resolve_name(credential, EntityKind.GROUP, ident) == "New Name"
    assert len(fake_upstream.requests) == 2


async def test_user_name_used_when_name_missing(upstream, fake_upstream, credential):
    ident = sys_id(3)
    fake_upstream.on_table("sys_user", {"name": "", "user_name": "jdoe"}, ident)

    names = DisplayNameCache(upstream, MemoryStore())
    assert await names.resolve_name(credential, EntityKind.USER, ident) == "jdoe"


async def test_failure_returns_identifier_and_is_not_cached(upstream, fake_upstream, credential):
    ident = sys_id(4)
    fake_upstream.on("GET", f"{TABLE_API}/sys_user/{ident}", json={"error": {"message": "x"}}, status=403)
    store = MemoryStore()
    names = DisplayNameCache(upstream, store)

    assert await names.resolve_name(credential, EntityKind.USER, ident) == ident
    assert len(store) == 0


async def test_empty_identifier_is_placeholder(upstream, fake_upstream, credential):
    names = DisplayNameCache(upstream, MemoryStore())
    assert await names.resolve_name(credential, EntityKind.USER, "") == PLACEHOLDER
    assert fake_upstream.requests == []
