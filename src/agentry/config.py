"""Runtime configuration threaded through every entry point."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_REGISTRY_URL = "http://localhost:12121/v0"

_TRUTHY = {"1", "true", "yes", "on"}


class RuntimeConfig(BaseModel):
    """Explicit configuration for resolution, runtime and dispatch.

    Core components never read process state themselves; the CLI builds one of
    these with :meth:`from_env` and hands it down.
    """

    registry_url: str = Field(default=DEFAULT_REGISTRY_URL, description="Registry API base URL.")
    api_token: str | None = Field(default=None, description="Bearer token for the registry API.")
    verbose: bool = Field(default=False, description="Stream external tool output.")
    agent_port: int = Field(default=8080, description="Port the primary resource listens on.")
    health_path: str = Field(default="/health", description="Health endpoint path.")
    health_timeout: float = Field(default=60.0, description="Max seconds to wait for health.")
    health_interval: float = Field(default=1.0, description="Seconds between health polls.")
    log_tail: int = Field(default=50, description="Container log lines captured on failure.")
    compose_command: list[str] = Field(
        default_factory=lambda: ["docker", "compose"],
        description="Compose-equivalent command prefix.",
    )
    docker_binary: str = Field(default="docker", description="Container build tool binary.")
    state_dir: Path = Field(
        default_factory=lambda: Path.home() / ".agentry",
        description="Where detached local deployments keep their resolved-server config.",
    )
    request_timeout: float = Field(default=30.0, description="Registry HTTP timeout in seconds.")
    environ: dict[str, str] = Field(
        default_factory=dict,
        description="Environment visible to credential checks and injected config.",
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str], **overrides: object) -> RuntimeConfig:
        """Build a config from an environment mapping plus explicit overrides."""
        values: dict[str, object] = {"environ": dict(environ)}
        if environ.get("AGENTRY_REGISTRY_URL"):
            values["registry_url"] = environ["AGENTRY_REGISTRY_URL"]
        if environ.get("AGENTRY_API_TOKEN"):
            values["api_token"] = environ["AGENTRY_API_TOKEN"]
        if environ.get("AGENTRY_STATE_DIR"):
            values["state_dir"] = Path(environ["AGENTRY_STATE_DIR"])
        if environ.get("AGENTRY_VERBOSE", "").lower() in _TRUTHY:
            values["verbose"] = True
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)

    @property
    def agent_url(self) -> str:
        return f"http://localhost:{self.agent_port}"

    @property
    def health_url(self) -> str:
        return self.agent_url + self.health_path
