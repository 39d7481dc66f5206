"""Cancellation token for the upstream calls made on behalf of one request.

The API layer cancels the token when the client disconnects; the upstream
client checks it before each attempt and races in-flight calls against it,
so a closed browser tab stops consuming upstream quota.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from workdesk.domain.exceptions import RequestCancelledException

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared by all upstream calls of a request."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "client disconnected") -> None:
        """Signal cancellation. Idempotent; the first reason wins."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledException(self.reason or "cancelled")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await awaitable unless the token fires first.

        Raises:
            RequestCancelledException: If cancelled before awaitable finished
                (the awaitable is cancelled).
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        raise RequestCancelledException(self.reason or "cancelled")
