"""CancellationToken: races awaitables against the request's cancel signal."""

import asyncio

import pytest

from workdesk.domain.exceptions import RequestCancelledException
from workdesk.shared.cancellation import CancellationToken


async def test_run_returns_result_when_not_cancelled():
    async def work():
        return 42

    assert await CancellationToken().run(work()) == 42


async def test_cancel_interrupts_in_flight_awaitable():
    token = CancellationToken()
    started = asyncio.Event()
    finished = False

    async def slow():
        nonlocal finished
        started.set()
        await asyncio.sleep(10)
        finished = True

    async def cancel_soon():
        await started.wait()
        token.cancel("client disconnected")

    canceller = asyncio.create_task(cancel_soon())
    with pytest.raises(RequestCancelledException) as exc_info:
        await token.run(slow())
    await canceller

    assert exc_info.value.detail == "client disconnected"
    assert finished is False


async def test_already_cancelled_token_never_starts_work():
    token = CancellationToken()
    token.cancel("gone")
    started = False

    async def work():
        nonlocal started
        started = True

    with pytest.raises(RequestCancelledException):
        await token.run(work())
    assert started is False


def test_first_reason_wins():
    token = CancellationToken()
    token.cancel("first")
    token.cancel("second")

    assert token.cancelled
    assert token.reason == "first"
    with pytest.raises(RequestCancelledException):
        token.raise_if_cancelled()

