"""Request log middleware: one INFO line per request.

Only method, path, status and duration are logged; query strings are not,
because the legacy ?token= form carries the session token.
"""

import logging
import time
from typing import Callable

logger = logging.getLogger("workdesk.access")


def RequestLogMiddleware(app: Callable) -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        started = time.perf_counter()
        status = {"code": 500}

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        try:
            await app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %s (%.0fms) [%s]",
                scope.get("method", ""),
                scope.get("path", ""),
                status["code"],
                elapsed_ms,
                scope.get("state", {}).get("request_id", "-"),
            )

    return asgi_app
