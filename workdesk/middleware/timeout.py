"""End-to-end request timeout middleware.

Upstream timeouts are per call, so a request fanning out to many calls
could otherwise run for the sum of them. Past timeout_seconds the request
task is cancelled (which also cancels its in-flight upstream calls) and a
504 envelope is returned.
"""

import asyncio
import json
import logging
from typing import Callable

from workdesk.core.exception_handlers import failure_body

logger = logging.getLogger(__name__)


def TimeoutMiddleware(app: Callable, timeout_seconds: int) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        started = {"value": False}

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                started["value"] = True
            await send(message)

        try:
            await asyncio.wait_for(
                app(scope, receive, send_wrapper),
                timeout=float(timeout_seconds),
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Request timed out after %s seconds: %s %s",
                timeout_seconds,
                scope.get("method", ""),
                scope.get("path", ""),
            )
            if started["value"]:
                return
            body = json.dumps(
                failure_body(
                    "Gateway timeout",
                    f"Request timed out after {timeout_seconds} seconds",
                    code="GATEWAY_TIMEOUT",
                )
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 504,
                "headers": [(b"content-type", b"application/json")],
            })
            await send({"type": "http.response.body", "body": body, "more_body": False})

    return asgi_app
