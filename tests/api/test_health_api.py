"""Health endpoint."""

from httpx import AsyncClient


async def test_health_returns_ok_with_uptime(client: AsyncClient) -> None:
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["result"]["status"] == "ok"
    assert data["result"]["uptime_seconds"] >= 0


async def test_health_echoes_request_id(client: AsyncClient) -> None:
    response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


async def test_unknown_route_uses_failure_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["ok"] is False
    assert response.json()["status"] == "failure"
