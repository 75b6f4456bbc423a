"""Health gate: poll an HTTP endpoint until it answers 200 or a deadline passes."""

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 5.0
_MIN_REQUEST_TIMEOUT = 0.05


async def wait_healthy(
    url: str,
    *,
    timeout: float = 60.0,
    interval: float = 1.0,
    cancel: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Poll *url* every *interval* seconds for up to *timeout* seconds.

    Returns ``True`` as soon as the endpoint answers 200 and ``False`` once the
    deadline is reached.  Setting *cancel* stops the wait immediately with
    :class:`asyncio.CancelledError`, as does cancelling the calling task.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0

    async with httpx.AsyncClient(transport=transport) as client:
        while True:
            if cancel is not None and cancel.is_set():
                raise asyncio.CancelledError
            attempts += 1
            # A slow request must not carry the last poll past the deadline.
            budget = max(deadline - loop.time(), _MIN_REQUEST_TIMEOUT)
            try:
                response = await client.get(url, timeout=min(_REQUEST_TIMEOUT, budget))
                if response.status_code == 200:
                    logger.debug("%s healthy after %d attempt(s)", url, attempts)
                    return True
            except httpx.HTTPError:
                pass

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.debug("%s not healthy after %d attempt(s)", url, attempts)
                return False
            await _pause(min(interval, remaining), cancel)


async def _pause(delay: float, cancel: asyncio.Event | None) -> None:
    if cancel is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except TimeoutError:
        return
    raise asyncio.CancelledError
