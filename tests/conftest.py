"""Pytest configuration and fixtures for workdesk.

The upstream record store is faked with httpx.MockTransport (FakeUpstream);
HTTP tests run the app through ASGITransport with a ProxyContext built
around that fake. Environment is set before workdesk.main is imported
because the app is created at import time.
"""

import os
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, urlsplit

os.environ["UPSTREAM_INSTANCE"] = "https://upstream.test"
os.environ["UPSTREAM_USERNAME"] = "svc.account"
os.environ["UPSTREAM_PASSWORD"] = "svc-secret"
os.environ["STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CANCEL_ON_DISCONNECT"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from workdesk.core.config import Settings, get_settings  # noqa: E402
from workdesk.core.context import ProxyContext, build_context  # noqa: E402
from workdesk.domain.entities import Credential  # noqa: E402
from workdesk.infrastructure.upstream import UpstreamClient  # noqa: E402
from workdesk.main import app  # noqa: E402

UPSTREAM_BASE = "https://upstream.test"
TABLE_API = "/api/now/table"

Responder = Callable[[httpx.Request], httpx.Response]


def sys_id(n: int) -> str:
    """Deterministic 32-hex identifier for fixtures."""
    return f"{n:032x}"


def query_of(target: httpx.Request | str) -> dict[str, str]:
    """Decoded query parameters of a request or path (first value per key)."""
    url = str(target.url) if isinstance(target, httpx.Request) else target
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


class FakeUpstream:
    """Table API double: routes (method, path) to canned responses and records requests.

    Unrouted requests get the upstream's 404 failure body.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        responder: Responder | None = None,
        *,
        json: Any = None,
        status: int = 200,
    ) -> None:
        if responder is None:

            def responder(request: httpx.Request) -> httpx.Response:
                return httpx.Response(status, json=json)

        self.routes[(method.upper(), path)] = responder

    def on_table(self, table: str, rows: Any, record_id: str | None = None, **kwargs: Any) -> None:
        """Serve {"result": rows} for GET /api/now/table/<table>[/<record_id>]."""
        path = f"{TABLE_API}/{table}" + (f"/{record_id}" if record_id else "")
        self.on("GET", path, json={"result": rows}, **kwargs)

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method.upper())
            and (path is None or r.url.path == path)
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(
                404,
                json={
                    "error": {"message": "No Record found", "detail": "Record doesn't exist"},
                    "status": "failure",
                },
            )
        return responder(request)


@pytest.fixture
def settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(fake_upstream: FakeUpstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream)) as client:
        yield client


@pytest.fixture
def upstream(http_client: httpx.AsyncClient) -> UpstreamClient:
    """UpstreamClient over the fake, with instant backoff."""

    async def no_sleep(_: float) -> None:
        return None

    return UpstreamClient(UPSTREAM_BASE, http_client=http_client, sleep=no_sleep)


@pytest.fixture
def credential() -> Credential:
    return Credential(username="jdoe", password="pw-jdoe")


@pytest.fixture
def service_credential() -> Credential:
    return Credential(username="svc.account", password="svc-secret")


@pytest.fixture
def context(settings: Settings, http_client: httpx.AsyncClient) -> ProxyContext:
    return build_context(settings, http_client=http_client)


@pytest.fixture
async def client(context: ProxyContext):
    """Async HTTP client against the FastAPI app (ASGI) with the fake upstream."""
    app.state.context = context
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.context = None


USER_ID = sys_id(10)
GROUP_IDS = [sys_id(20), sys_id(21)]


def register_directory(fake: FakeUpstream) -> None:
    """Identity and group rows for jdoe, as served to the login flow."""
    fake.on_table(
        "sys_user",
        [{"sys_id": USER_ID, "user_name": "jdoe", "name": "Jane Doe", "email": "jdoe@example.com"}],
    )
    fake.on_table("sys_user_grmember", [{"group": {"value": g}} for g in GROUP_IDS])


@pytest.fixture
async def auth_headers(client: AsyncClient, fake_upstream: FakeUpstream) -> dict[str, str]:
    """Bearer header for a session opened through POST /api/login."""
    register_directory(fake_upstream)
    response = await client.post("/api/login", json={"username": "jdoe", "password": "pw-jdoe"})
    assert response.status_code == 200, response.text
    fake_upstream.requests.clear()
    return {"Authorization": f"Bearer {response.json()['result']['token']}"}
