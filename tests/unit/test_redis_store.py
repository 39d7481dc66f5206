"""RedisStore over a mocked redis.asyncio client."""

import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from workdesk.infrastructure.cache import RedisStore


@pytest.fixture
def redis_client():
    return AsyncMock()


@pytest.fixture
def store(redis_client, settings):
    return RedisStore(redis_client=redis_client, settings=settings)


async def test_set_with_ttl_uses_setex_and_prefix(store, redis_client, settings):
    await store.set("session:abc", {"token": "abc"}, ttl=60)

    redis_client.setex.assert_awaited_once_with(
        f"{settings.redis_key_prefix}:session:abc", 60, json.dumps({"token": "abc"})
    )


async def test_set_without_ttl_uses_plain_set(store, redis_client):
    await store.set("name:sys_user:x", "Jane Doe")

    redis_client.set.assert_awaited_once()
    redis_client.setex.assert_not_awaited()


async def test_get_deserializes_json(store, redis_client):
    redis_client.get.return_value = json.dumps({"token": "abc"})

    assert await store.get("session:abc") == {"token": "abc"}


async def test_get_missing_is_none(store, redis_client):
    redis_client.get.return_value = None

    assert await store.get("session:abc") is None


async def test_redis_error_reads_as_miss(store, redis_client):
    redis_client.get.side_effect = redis.ResponseError("WRONGTYPE")

    assert await store.get("session:abc") is None


async def test_unavailable_store_is_a_no_op(settings):
    store = RedisStore(settings=settings)

    assert not store.is_available()
    assert await store.get("session:abc") is None
    assert await store.set("session:abc", {"a": 1}) is False
    await store.delete("session:abc")


async def test_delete(store, redis_client, settings):
    await store.delete("session:abc")

    redis_client.delete.assert_awaited_once_with(f"{settings.redis_key_prefix}:session:abc")


async def test_set_reports_success(store, redis_client):
    redis_client.setex.return_value = True

    assert await store.set("session:abc", {"a": 1}, ttl=60) is True


async def test_rejected_write_reports_failure(store, redis_client):
    redis_client.setex.side_effect = redis.ResponseError("OOM command not allowed")

    assert await store.set("session:abc", {"a": 1}, ttl=60) is False
