"""Local container runtime: compose, health gate, lifecycle and chat session."""

from agentry.runtime.compose import ComposeRunner
from agentry.runtime.health import wait_healthy
from agentry.runtime.local import LocalRuntimeManager, RunState, SessionLauncher
from agentry.runtime.session import A2AChatSession, launch_chat

__all__ = [
    "A2AChatSession",
    "ComposeRunner",
    "LocalRuntimeManager",
    "RunState",
    "SessionLauncher",
    "launch_chat",
    "wait_healthy",
]
