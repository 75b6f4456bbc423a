"""A2A wire models for the ``tasks/send`` JSON-RPC exchange with a running agent."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class A2APart(BaseModel):
    type: str = "text"
    text: str = ""


class A2AMessage(BaseModel):
    role: Literal["user", "agent"] = "user"
    parts: list[A2APart] = []

    @classmethod
    def user_text(cls, text: str) -> A2AMessage:
        return cls(role="user", parts=[A2APart(text=text)])

    def text(self) -> str:
        return "\n".join(part.text for part in self.parts if part.text)


class A2ATaskParams(BaseModel):
    """``tasks/send`` parameters; ``sessionId`` groups the turns of one chat."""

    model_config = {"populate_by_name": True}

    id: str = ""
    session_id: str = Field(default="", alias="sessionId")
    message: A2AMessage = Field(default_factory=A2AMessage)


class A2ATaskRequest(BaseModel):
    jsonrpc: str = "2.0"
    method: str = "tasks/send"
    id: str | int = 1
    params: A2ATaskParams = Field(default_factory=A2ATaskParams)


class A2AArtifact(BaseModel):
    parts: list[A2APart] = []
    name: str = ""


class A2ATaskStatus(BaseModel):
    state: str = "completed"
    message: A2AMessage | None = None


class A2ATaskResult(BaseModel):
    id: str = ""
    status: A2ATaskStatus = Field(default_factory=A2ATaskStatus)
    artifacts: list[A2AArtifact] = []


class A2ATaskResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: str | int = 1
    result: A2ATaskResult | None = None
    error: dict[str, Any] | None = None

    def reply_text(self) -> str:
        """Text of the first artifact, falling back to the status message."""
        if self.result is None:
            return ""
        for artifact in self.result.artifacts:
            for part in artifact.parts:
                if part.text:
                    return part.text
        if self.result.status.message:
            return self.result.status.message.text()
        return ""
