"""ReferenceResolver: canonical ids untouched, lookups tagged, misses passed through."""

from unittest.mock import AsyncMock

from conftest import query_of, sys_id
from workdesk.application.services import ReferenceResolver
from workdesk.domain.enums import EntityKind, ReferenceStatus


async def test_canonical_identifier_returned_without_upstream_call(credential):
    upstream = AsyncMock()
    resolver = ReferenceResolver(upstream)
    ident = sys_id(7)

    ref = await resolver.resolve(credential, EntityKind.USER, ident)

    assert ref.value == ident
    assert ref.status is ReferenceStatus.CANONICAL
    assert ref.resolved
    upstream.get.assert_not_awaited()


async def test_reference_object_is_unwrapped(credential):
    upstream = AsyncMock()
    ident = sys_id(8)

    ref = await ReferenceResolver(upstream).resolve(
        credential, EntityKind.GROUP, {"value": ident, "display_value": "Network"}
    )

    assert ref.value == ident
    upstream.get.assert_not_awaited()


async def test_name_looked_up_by_exact_or_partial_match(upstream, fake_upstream, credential):
    fake_upstream.on_table("sys_user", [{"sys_id": sys_id(9), "name": "Jane Doe"}])

    ref = await ReferenceResolver(upstream).resolve(credential, EntityKind.USER, "Jane Doe")

    assert ref.value == sys_id(9)
    assert ref.status is ReferenceStatus.LOOKED_UP
    params = query_of(fake_upstream.requests[0])
    assert params["sysparm_limit"] == "1"
    assert params["sysparm_query"] == (
        "user_name=Jane Doe^ORname=Jane Doe^ORemail=Jane Doe"
        "^ORuser_nameLIKEJane Doe^ORnameLIKEJane Doe^ORemailLIKEJane Doe"
    )


async def test_group_lookup_matches_name_only(upstream, fake_upstream, credential):
    fake_upstream.on_table("sys_user_group", [{"sys_id": sys_id(3)}])

    ref = await ReferenceResolver(upstream).resolve(credential, EntityKind.GROUP, "Network")

    assert ref.value == sys_id(3)
    assert query_of(fake_upstream.requests[0])["sysparm_query"] == "name=Network^ORnameLIKENetwork"


async def test_no_match_passes_input_through(upstream, fake_upstream, credential):
    fake_upstream.on_table("sys_user", [])

    ref = await ReferenceResolver(upstream).resolve(credential, EntityKind.USER, "nobody")

    assert ref.value == "nobody"
    assert ref.status is ReferenceStatus.PASSTHROUGH
    assert not ref.resolved
