"""A2AChatSession — line-oriented chat against a locally running agent."""

from __future__ import annotations

import asyncio
import logging
from itertools import count
from uuid import uuid4

import click
import httpx
from pydantic import ValidationError
from rich.console import Console

from agentry.runtime.a2a import A2AMessage, A2ATaskParams, A2ATaskRequest, A2ATaskResponse

logger = logging.getLogger(__name__)

EXIT_WORDS = frozenset({"exit", "quit"})


class ChatError(Exception):
    """A single chat turn failed; the session itself keeps going."""


class A2AChatSession:
    """Send user turns to an agent with ``tasks/send`` and print its replies.

    Usage::

        async with A2AChatSession("http://localhost:8080") as chat:
            reply = await chat.send("roll a d20")
    """

    def __init__(
        self,
        base_url: str,
        *,
        console: Console | None = None,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._console = console or Console()
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._session_id = uuid4().hex
        self._ids = count(1)

    async def __aenter__(self) -> A2AChatSession:
        self._client = httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "A2AChatSession must be used as an async context manager"
            raise RuntimeError(msg)
        return self._client

    async def send(self, text: str) -> str:
        """Send one user message and return the agent's reply text."""
        request = A2ATaskRequest(
            id=next(self._ids),
            params=A2ATaskParams(
                id=uuid4().hex[:12],
                session_id=self._session_id,
                message=A2AMessage.user_text(text),
            ),
        )
        try:
            response = await self._http().post("/", json=request.model_dump(by_alias=True))
            response.raise_for_status()
            task = A2ATaskResponse.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            raise ChatError(str(exc)) from exc

        if task.error is not None:
            raise ChatError(str(task.error.get("message", task.error)))
        return task.reply_text()

    async def loop(self) -> None:
        """Prompt until the user types ``exit``/``quit`` or closes stdin."""
        self._console.print(
            f"[bold]Chatting with[/bold] {self._base_url} "
            "[dim](type 'exit' to quit)[/dim]"
        )
        while True:
            try:
                line = await asyncio.to_thread(click.prompt, "you", prompt_suffix="> ")
            except (EOFError, click.Abort):
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_WORDS:
                break
            try:
                reply = await self.send(text)
            except ChatError as exc:
                logger.debug("chat turn failed", exc_info=True)
                self._console.print(f"[red]Error:[/red] {exc}")
                continue
            self._console.print(f"[cyan]agent>[/cyan] {reply}")


async def launch_chat(endpoint: str) -> None:
    """Default interactive session used by :class:`LocalRuntimeManager`."""
    async with A2AChatSession(endpoint) as chat:
        await chat.loop()
