"""Response envelope shared by every route: {"ok": true, "result": ...}."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response. Failures use the same shape with ok=false and error."""

    ok: bool = Field(default=True, description="False only on failure responses")
    result: T


class ErrorBody(BaseModel):
    message: str
    detail: Any = None


class ErrorEnvelope(BaseModel):
    """Failure response (documented for OpenAPI; produced by the exception handlers)."""

    ok: bool = False
    error: ErrorBody
    status: str = "failure"
