"""UpstreamClient: success parsing, error detail, retry policy, cancellation."""

import base64

import httpx
import pytest

from conftest import UPSTREAM_BASE
from workdesk.domain.exceptions import RequestCancelledException, UpstreamError
from workdesk.infrastructure.upstream import UpstreamClient
from workdesk.shared.cancellation import CancellationToken

PATH = "/api/now/table/incident"


async def test_success_returns_parsed_body_with_basic_auth(upstream, fake_upstream, credential):
    fake_upstream.on("GET", PATH, json={"result": [{"number": "INC001"}]})

    data = await upstream.get(credential, PATH + "?sysparm_limit=1")

    assert data == {"result": [{"number": "INC001"}]}
    request = fake_upstream.requests[0]
    expected = base64.b64encode(b"jdoe:pw-jdoe").decode()
    assert request.headers["authorization"] == f"Basic {expected}"
    assert request.headers["accept"] == "application/json"


async def test_empty_body_returns_empty_dict(upstream, fake_upstream, credential):
    fake_upstream.on("PATCH", PATH, lambda r: httpx.Response(204))

    assert await upstream.patch(credential, PATH, {"state": "2"}) == {}


async def test_4xx_is_not_retried_and_uses_nested_detail(upstream, fake_upstream, credential):
    fake_upstream.on(
        "GET",
        PATH,
        json={"error": {"message": "Forbidden", "detail": "ACL denies read"}, "status": "failure"},
        status=403,
    )

    with pytest.raises(UpstreamError) as exc_info:
        await upstream.get(credential, PATH)

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "ACL denies read"
    assert "ACL denies read" in exc_info.value.raw
    assert len(fake_upstream.requests) == 1


async def test_error_message_used_when_no_detail(upstream, fake_upstream, credential):
    fake_upstream.on("GET", PATH, json={"error": {"message": "Invalid table"}}, status=400)

    with pytest.raises(UpstreamError, match="Invalid table"):
        await upstream.get(credential, PATH)


async def test_raw_text_then_status_line_as_detail(upstream, fake_upstream, credential):
    fake_upstream.on("GET", PATH, lambda r: httpx.Response(401, text="Bad auth"))
    with pytest.raises(UpstreamError, match="Bad auth"):
        await upstream.get(credential, PATH)

    fake_upstream.on("GET", PATH, lambda r: httpx.Response(404))
    with pytest.raises(UpstreamError, match="HTTP 404 Not Found"):
        await upstream.get(credential, PATH)


async def test_failure_marker_on_2xx_raises(upstream, fake_upstream, credential):
    fake_upstream.on(
        "GET",
        PATH,
        json={"status": "failure", "error": {"message": "Query failed", "detail": "bad field"}},
    )

    with pytest.raises(UpstreamError, match="bad field") as exc_info:
        await upstream.get(credential, PATH)
    assert exc_info.value.status_code == 200


async def test_5xx_retried_with_doubling_backoff(fake_upstream, http_client, credential):
    statuses = iter([503, 502, 200])
    fake_upstream.on(
        "GET",
        PATH,
        lambda r: httpx.Response(next(statuses), json={"result": []}),
    )
    delays = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    client = UpstreamClient(UPSTREAM_BASE, http_client=http_client, retries=2, sleep=record_sleep)

    assert await client.get(credential, PATH) == {"result": []}
    assert len(fake_upstream.requests) == 3
    assert delays == [0.1, 0.2]


async def test_5xx_gives_up_after_retry_budget(upstream, fake_upstream, credential):
    fake_upstream.on("GET", PATH, json={"error": {"message": "boom"}}, status=500)

    with pytest.raises(UpstreamError) as exc_info:
        await upstream.get(credential, PATH)

    assert exc_info.value.status_code == 500
    assert exc_info.value.retryable
    # default budget: one retry
    assert len(fake_upstream.requests) == 2


async def test_network_failure_is_retried(upstream, fake_upstream, credential):
    attempts = []

    def flaky(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json={"result": {"sys_id": "x"}})

    fake_upstream.on("GET", PATH, flaky)

    assert await upstream.get(credential, PATH) == {"result": {"sys_id": "x"}}
    assert len(attempts) == 2


async def test_timeout_becomes_retryable_upstream_error(upstream, fake_upstream, credential):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    fake_upstream.on("GET", PATH, slow)

    with pytest.raises(UpstreamError, match="timeout") as exc_info:
        await upstream.get(credential, PATH, timeout_ms=50, retries=0)
    assert exc_info.value.status_code is None
    assert exc_info.value.retryable


async def test_cancelled_token_stops_before_any_request(upstream, fake_upstream, credential):
    fake_upstream.on("GET", PATH, json={"result": []})
    token = CancellationToken()
    token.cancel("client disconnected")

    with pytest.raises(RequestCancelledException):
        await upstream.get(credential, PATH, cancel=token)
    assert fake_upstream.requests == []


async def test_owned_client_is_closed_but_injected_is_not(http_client):
    injected = UpstreamClient(UPSTREAM_BASE, http_client=http_client)
    await injected.aclose()
    assert not http_client.is_closed

    owned = UpstreamClient(UPSTREAM_BASE)
    await owned.aclose()
    assert owned._http.is_closed
