"""Request context management using contextvars.

Holds request-scoped data (the signed-in identity for log lines, the
cancellation token for upstream calls) without threading it through every
signature. Tasks spawned with asyncio.gather inherit the context, so
parallel upstream calls share the request's token.

Usage:
    bind_cancellation(token)
    token = get_cancellation_token()
"""

from contextvars import ContextVar

from workdesk.shared.cancellation import CancellationToken

_current_identity_id: ContextVar[str | None] = ContextVar(
    "current_identity_id", default=None
)
_current_cancellation: ContextVar[CancellationToken | None] = ContextVar(
    "current_cancellation", default=None
)


def bind_cancellation(token: CancellationToken | None) -> None:
    """Set the cancellation token for the current request."""
    _current_cancellation.set(token)


def bind_identity(identity_id: str | None) -> None:
    """Set the signed-in identity for the current request."""
    _current_identity_id.set(identity_id)


def clear_request_context() -> None:
    _current_identity_id.set(None)
    _current_cancellation.set(None)


def get_cancellation_token() -> CancellationToken | None:
    """Return the current request's cancellation token, if any."""
    return _current_cancellation.get()


def get_current_identity_id() -> str | None:
    return _current_identity_id.get()
