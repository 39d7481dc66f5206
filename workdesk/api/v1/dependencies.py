"""Presentation-layer dependency injection.

Routes reach the ProxyContext (built by the lifespan) and the signed-in
session only through these dependencies.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from workdesk.core.context import ProxyContext
from workdesk.domain.entities import Session
from workdesk.shared.cancellation import CancellationToken
from workdesk.shared.context import bind_cancellation, bind_identity, clear_request_context

logger = logging.getLogger(__name__)

_http_bearer = HTTPBearer(auto_error=False)


def get_context(request: Request) -> ProxyContext:
    """The process ProxyContext stored on app.state by the lifespan."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("Proxy context is not initialised (lifespan not run)")
    return context


def get_session_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    token: Annotated[str | None, Query(include_in_schema=False)] = None,
) -> str | None:
    """Session token from `Authorization: Bearer`, else from the ?token= query parameter."""
    if credentials and credentials.credentials:
        return credentials.credentials.strip()
    return token.strip() if token else None


async def get_current_session(
    context: Annotated[ProxyContext, Depends(get_context)],
    token: Annotated[str | None, Depends(get_session_token)],
) -> Session:
    """Signed-in session (raises NotAuthenticatedException when missing or expired)."""
    session = await context.sessions.require(token)
    bind_identity(session.identity.id)
    return session


async def _watch_disconnect(request: Request, token: CancellationToken, interval: float) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info("Client went away: %s %s", request.method, request.url.path)
            token.cancel("client disconnected")
            return
        await asyncio.sleep(interval)


async def request_cancellation(
    request: Request,
    context: Annotated[ProxyContext, Depends(get_context)],
) -> AsyncIterator[CancellationToken]:
    """Bind a CancellationToken for this request's upstream calls.

    When cancel_on_disconnect is set, a watcher polls for client disconnect
    and fires the token; the watcher stops when the request finishes.
    """
    token = CancellationToken()
    bind_cancellation(token)
    settings = context.settings
    watcher = None
    if settings.cancel_on_disconnect:
        watcher = asyncio.create_task(
            _watch_disconnect(request, token, settings.disconnect_poll_seconds)
        )
    try:
        yield token
    finally:
        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
        clear_request_context()


ContextDep = Annotated[ProxyContext, Depends(get_context)]
SessionDep = Annotated[Session, Depends(get_current_session)]
