"""Tests for the health gate."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from agentry.runtime.health import wait_healthy

URL = "http://localhost:8080/health"


def _healthy_after(n: int) -> tuple[httpx.MockTransport, list[int]]:
    """Transport answering 503 until the *n*-th request, 200 from then on."""
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200 if len(calls) >= n else 503)

    return httpx.MockTransport(handler), calls


class TestWaitHealthy:
    async def test_immediately_healthy(self) -> None:
        transport, calls = _healthy_after(1)
        assert await wait_healthy(URL, timeout=1, interval=0.01, transport=transport)
        assert len(calls) == 1

    async def test_healthy_within_budget(self) -> None:
        transport, calls = _healthy_after(3)
        assert await wait_healthy(URL, timeout=2, interval=0.01, transport=transport)
        assert len(calls) == 3

    async def test_times_out_outside_budget(self) -> None:
        transport, calls = _healthy_after(10_000)
        assert not await wait_healthy(URL, timeout=0.05, interval=0.01, transport=transport)
        assert 1 <= len(calls) < 10_000

    async def test_connection_errors_count_as_unhealthy(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 2:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200)

        assert await wait_healthy(
            URL, timeout=1, interval=0.01, transport=httpx.MockTransport(handler)
        )
        assert len(attempts) == 2

    async def test_request_timeout_bounded_by_deadline(self) -> None:
        read_timeouts: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            read_timeouts.append(request.extensions["timeout"]["read"])
            return httpx.Response(503)

        assert not await wait_healthy(
            URL, timeout=0.2, interval=0.05, transport=httpx.MockTransport(handler)
        )
        assert read_timeouts
        assert all(t <= 0.2 for t in read_timeouts)
        assert read_timeouts[-1] < read_timeouts[0]

    async def test_cancel_before_start(self) -> None:
        transport, calls = _healthy_after(1)
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(asyncio.CancelledError):
            await wait_healthy(URL, timeout=1, interval=0.01, cancel=cancel, transport=transport)
        assert calls == []

    async def test_cancel_interrupts_sleep(self) -> None:
        transport, _ = _healthy_after(10_000)
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)

        async def _wait() -> bool:
            return await wait_healthy(URL, timeout=30, interval=10, cancel=cancel, transport=transport)

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(_wait(), timeout=2)
