"""Auth API schemas."""

from typing import Any

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Upstream username and password, checked with one upstream identity lookup."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResult(BaseModel):
    """Result of POST /login.

    user repeats identity for UIs that read the upstream user record under
    that name.
    """

    token: str = Field(..., description="Bearer token for subsequent calls")
    identity: dict[str, Any]
    user: dict[str, Any]
    groups: list[str]
    mode: str = Field(..., description="'user' or 'service': whose credential performs upstream calls")


class SessionInfo(BaseModel):
    """Result of GET /session: stored versus freshly fetched group memberships."""

    mode: str
    user_sys_id: str
    user: dict[str, Any]
    stored_groups: list[str]
    fresh_groups: list[str]
    created_at: float
