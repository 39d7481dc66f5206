"""Login, logout and session-token handling."""

from httpx import AsyncClient

from conftest import GROUP_IDS, TABLE_API, USER_ID, FakeUpstream, register_directory


async def test_login_returns_token_identity_and_groups(
    client: AsyncClient, fake_upstream: FakeUpstream
) -> None:
    register_directory(fake_upstream)

    response = await client.post("/api/login", json={"username": "jdoe", "password": "pw-jdoe"})

    assert response.status_code == 200
    result = response.json()["result"]
    assert len(result["token"]) == 48
    assert result["identity"]["sys_id"] == USER_ID
    assert result["identity"]["user_name"] == "jdoe"
    assert result["user"] == result["identity"]
    assert result["groups"] == GROUP_IDS
    assert result["mode"] == "service"


async def test_login_with_rejected_password_is_401(
    client: AsyncClient, fake_upstream: FakeUpstream
) -> None:
    fake_upstream.on(
        "GET",
        f"{TABLE_API}/sys_user",
        json={"error": {"message": "User Not Authenticated"}, "status": "failure"},
        status=401,
    )

    response = await client.post("/api/login", json={"username": "jdoe", "password": "nope"})

    assert response.status_code == 401
    body = response.json()
    assert body["ok"] is False
    assert body["status"] == "failure"
    assert body["error"]["message"] == "User Not Authorized"


async def test_login_body_validated(client: AsyncClient) -> None:
    response = await client.post("/api/login", json={"username": "jdoe"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_protected_route_without_token_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/incidents")

    assert response.status_code == 401
    assert response.json() == {
        "ok": False,
        "error": {
            "message": "User Not Authenticated",
            "detail": "Required to provide Auth information",
            "code": "NOT_AUTHENTICATED",
        },
        "status": "failure",
    }


async def test_unknown_token_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/incidents", headers={"Authorization": "Bearer " + "f" * 48})

    assert response.status_code == 401


async def test_token_accepted_from_query_parameter(
    client: AsyncClient, fake_upstream: FakeUpstream, auth_headers: dict[str, str]
) -> None:
    token = auth_headers["Authorization"].removeprefix("Bearer ")
    fake_upstream.on_table("incident", [])

    response = await client.get("/api/incidents", params={"token": token})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "result": []}


async def test_logout_revokes_token(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.post("/api/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["result"] is True

    response = await client.get("/api/session", headers=auth_headers)
    assert response.status_code == 401


async def test_session_reports_stored_and_fresh_groups(
    client: AsyncClient, fake_upstream: FakeUpstream, auth_headers: dict[str, str]
) -> None:
    response = await client.get("/api/session", headers=auth_headers)

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["mode"] == "service"
    assert result["user_sys_id"] == USER_ID
    assert result["stored_groups"] == GROUP_IDS
    assert result["fresh_groups"] == GROUP_IDS
