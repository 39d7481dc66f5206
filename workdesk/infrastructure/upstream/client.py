"""HTTP client for the upstream record store.

Every call carries basic authentication built from the credential chosen by
the session layer. Calls that fail with 5xx or at network level (timeout,
connection reset) are retried with exponential backoff; 4xx is reported
immediately. All HTTP goes through one shared httpx.AsyncClient so calls do
not block the event loop and connections are reused.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from workdesk.domain.entities import Credential
from workdesk.domain.exceptions import UpstreamError
from workdesk.shared.cancellation import CancellationToken
from workdesk.shared.context import get_cancellation_token, get_current_identity_id

logger = logging.getLogger(__name__)


def _parse_body(text: str) -> Any:
    """Return parsed JSON, or {} when the body is empty or not JSON."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {}


def _is_failure_payload(data: Any) -> bool:
    """True when a 2xx body still reports an upstream-side failure."""
    if not isinstance(data, dict):
        return False
    return data.get("status") == "failure" or bool(data.get("error"))


def _error_detail(data: Any, text: str, response: httpx.Response) -> str:
    """Most specific error detail: nested detail, message, raw text, status line."""
    error = data.get("error") if isinstance(data, dict) else None
    detail: Any = None
    if isinstance(error, dict):
        detail = error.get("detail") or error.get("message")
    elif error:
        detail = error
    if not detail:
        detail = text or f"HTTP {response.status_code} {response.reason_phrase}".strip()
    return detail if isinstance(detail, str) else json.dumps(detail)


class UpstreamClient:
    """Authenticated, retrying client for the upstream Table API."""

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_ms: int = 15_000,
        retries: int = 1,
        backoff_ms: int = 100,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Upstream base URL (scheme and host).
            http_client: Optional shared client; created (and owned) if omitted.
            timeout_ms: Default per-attempt timeout.
            retries: Default number of additional attempts for transient failures.
            backoff_ms: First retry delay; doubles on every further retry.
            sleep: Sleep function (injectable for tests).
        """
        self._base_url = base_url.rstrip("/")
        self._http = http_client if http_client is not None else httpx.AsyncClient()
        self._owns_http = http_client is None
        self._timeout_ms = timeout_ms
        self._retries = retries
        self._backoff_ms = backoff_ms
        self._sleep = sleep

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get(self, credential: Credential, path: str, **kwargs: Any) -> Any:
        return await self.call(credential, "GET", path, **kwargs)

    async def patch(
        self, credential: Credential, path: str, body: dict[str, Any], **kwargs: Any
    ) -> Any:
        return await self.call(credential, "PATCH", path, body, **kwargs)

    async def call(
        self,
        credential: Credential,
        method: str,
        path_with_query: str,
        body: dict[str, Any] | None = None,
        *,
        timeout_ms: int | None = None,
        retries: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> Any:
        """Issue one upstream request (plus retries) and return the parsed body.

        Args:
            credential: Basic-auth credential for this call.
            method: HTTP method.
            path_with_query: Path starting with "/" including the query string.
            body: Optional JSON body.
            timeout_ms: Per-attempt timeout (defaults to the client's).
            retries: Extra attempts on 5xx/network failures (defaults to the client's).
            cancel: Cancellation token; defaults to the current request's token.

        Returns:
            Parsed JSON body ({} when empty).

        Raises:
            UpstreamError: On 4xx, on an upstream failure marker, or once
                retries are exhausted.
            RequestCancelledException: If the request's client went away.
        """
        timeout_ms = self._timeout_ms if timeout_ms is None else timeout_ms
        retries = self._retries if retries is None else retries
        cancel = cancel if cancel is not None else get_cancellation_token()
        url = f"{self._base_url}{path_with_query}"
        headers = {"Accept": "application/json"}
        if body is not None:
            headers["Content-Type"] = "application/json"

        attempt = 0
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled()
            try:
                return await self._attempt(
                    credential, method, url, headers, body, timeout_ms, cancel
                )
            except UpstreamError as exc:
                if not exc.retryable or attempt >= retries:
                    raise
                delay = self._backoff_ms * (2**attempt) / 1000.0
                logger.warning(
                    "Upstream %s %s failed (%s) for identity %s; retry %s/%s in %.0fms",
                    method,
                    path_with_query.split("?", 1)[0],
                    exc.status_code or "network",
                    get_current_identity_id() or "-",
                    attempt + 1,
                    retries,
                    delay * 1000,
                )
                attempt += 1
                await self._sleep(delay)

    async def _attempt(
        self,
        credential: Credential,
        method: str,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any] | None,
        timeout_ms: int,
        cancel: CancellationToken | None,
    ) -> Any:
        request = self._http.request(
            method,
            url,
            headers=headers,
            json=body,
            auth=(credential.username, credential.password),
            timeout=timeout_ms / 1000.0,
        )
        try:
            response = await (cancel.run(request) if cancel is not None else request)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Request timeout after {timeout_ms}ms") from exc
        except httpx.TransportError as exc:
            raise UpstreamError(f"Upstream unreachable: {exc}") from exc

        text = response.text
        data = _parse_body(text)
        if response.is_success and not _is_failure_payload(data):
            return data
        raise UpstreamError(
            _error_detail(data, text, response),
            status_code=response.status_code,
            raw=text,
        )
