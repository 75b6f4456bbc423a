"""LocalRuntimeManager — bring a topology up, gate on health, chat, tear down.

State machine::

    starting -> waiting-healthy -> ready -> interacting -> stopping -> stopped
        \\____________\\____________________________________> failed

Start failures are fatal and never tear anything down.  A health timeout
prints the container log tail and leaves the topology running so it can be
inspected.  Once the session has run, teardown is unconditional and a
teardown failure is only a warning.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Protocol

import httpx
from rich.console import Console

from agentry.config import RuntimeConfig
from agentry.errors import HealthTimeoutError, RuntimeStartError, TeardownError
from agentry.runtime.compose import ComposeRunner
from agentry.runtime.health import wait_healthy
from agentry.runtime.session import launch_chat
from agentry.utils.process import CommandError
from agentry.utils.telemetry import ATTR_AGENT_NAME, ATTR_RUN_STATE, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class RunState(StrEnum):
    STARTING = "starting"
    WAITING_HEALTHY = "waiting-healthy"
    READY = "ready"
    INTERACTING = "interacting"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


class SessionLauncher(Protocol):
    """Opens an interactive session against a running agent's endpoint."""

    async def __call__(self, endpoint: str) -> None: ...


class LocalRuntimeManager:
    """Run one rendered topology on the local container runtime.

    ``history`` records every state entered during the last run, in order.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        compose: ComposeRunner | None = None,
        launch_session: SessionLauncher | None = None,
        console: Console | None = None,
        health_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._compose = compose or ComposeRunner(config.compose_command, verbose=config.verbose)
        self._launch_session = launch_session or launch_chat
        self._console = console or Console(stderr=True)
        self._health_transport = health_transport
        self.history: list[RunState] = []

    @property
    def state(self) -> RunState | None:
        return self.history[-1] if self.history else None

    async def run_interactive(
        self,
        name: str,
        document: bytes,
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Run the full lifecycle for *name*; returns once the topology is stopped.

        Raises:
            RuntimeStartError: The compose tool could not bring the topology up.
            HealthTimeoutError: The agent never became healthy (topology left up).
        """
        self.history = []
        with _tracer.start_as_current_span("agentry.run") as span:
            span.set_attribute(ATTR_AGENT_NAME, name)
            await self._bring_up(name, document, cancel)
            self._enter(RunState.INTERACTING)
            try:
                await self._launch_session(self._config.agent_url)
            finally:
                await self._tear_down(name, document)
            span.set_attribute(ATTR_RUN_STATE, str(self.state))

    async def start_detached(
        self,
        name: str,
        document: bytes,
        *,
        cancel: asyncio.Event | None = None,
        wait: bool = True,
    ) -> None:
        """Bring *name* up and leave it running.

        With *wait* the call returns once the health endpoint answers;
        without it, as soon as the compose tool has started the services.
        """
        self.history = []
        with _tracer.start_as_current_span("agentry.start") as span:
            span.set_attribute(ATTR_AGENT_NAME, name)
            await self._bring_up(name, document, cancel, wait=wait)

    async def stop_project(self, project_name: str) -> bool:
        """Tear down a compose project by name. Returns ``False`` (and warns) on failure."""
        try:
            await self._compose.down_project(project_name)
        except CommandError as exc:
            self._warn_teardown(TeardownError(project_name, exc.detail))
            return False
        return True

    # -- steps -------------------------------------------------------------

    async def _bring_up(
        self,
        name: str,
        document: bytes,
        cancel: asyncio.Event | None,
        *,
        wait: bool = True,
    ) -> None:
        self._enter(RunState.STARTING)
        self._console.print(f"Starting [bold]{name}[/bold]...")
        try:
            await self._compose.up(document)
        except CommandError as exc:
            self._enter(RunState.FAILED)
            raise RuntimeStartError(name, exc.detail) from exc

        if not wait:
            self._enter(RunState.READY)
            return

        self._enter(RunState.WAITING_HEALTHY)
        self._console.print(f"Waiting for {self._config.health_url}...")
        try:
            healthy = await wait_healthy(
                self._config.health_url,
                timeout=self._config.health_timeout,
                interval=self._config.health_interval,
                cancel=cancel,
                transport=self._health_transport,
            )
        except asyncio.CancelledError:
            self._enter(RunState.FAILED)
            raise

        if not healthy:
            logs = await self._compose.logs(document, tail=self._config.log_tail)
            logs = logs or "(no container output captured)"
            self._console.print(f"[yellow]Last {self._config.log_tail} log lines:[/yellow]")
            self._console.print(logs, markup=False, highlight=False)
            self._enter(RunState.FAILED)
            raise HealthTimeoutError(name, self._config.health_timeout, logs=logs)

        self._enter(RunState.READY)
        self._console.print(f"[green]{name} is ready[/green] at {self._config.agent_url}")

    async def _tear_down(self, name: str, document: bytes) -> None:
        self._enter(RunState.STOPPING)
        try:
            await self._compose.down(document)
        except CommandError as exc:
            self._warn_teardown(TeardownError(name, exc.detail))
        self._enter(RunState.STOPPED)

    def _warn_teardown(self, error: TeardownError) -> None:
        logger.warning("%s", error)
        self._console.print(f"[yellow]Warning:[/yellow] {error}")

    def _enter(self, state: RunState) -> None:
        logger.debug("run state -> %s", state)
        self.history.append(state)
