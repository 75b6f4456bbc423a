"""Shared error types for resolution, build, runtime and deployment."""


class AgentryError(Exception):
    """Base error for all agentry failures."""


class ManifestValidationError(AgentryError):
    """The manifest (or a reference inside it) violates a schema rule."""

    def __init__(self, detail: str, *, field: str = "") -> None:
        self.detail = detail
        self.field = field
        prefix = f"Invalid manifest field '{field}'" if field else "Invalid manifest"
        super().__init__(f"{prefix}: {detail}")


class RegistryError(AgentryError):
    """A registry API call failed (transport error or non-success status)."""

    def __init__(self, operation: str, detail: str = "", *, status_code: int | None = None) -> None:
        self.operation = operation
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Registry {operation} failed" + (f": {detail}" if detail else ""))


class RegistryNotFoundError(RegistryError):
    """The requested registry resource does not exist."""


class ResolutionError(AgentryError):
    """A registry-typed reference could not be resolved."""

    def __init__(self, server_name: str, detail: str = "") -> None:
        self.server_name = server_name
        self.detail = detail
        msg = f"Failed to resolve MCP server '{server_name}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class BuildError(AgentryError):
    """The container build tool failed for one image."""

    def __init__(self, server_name: str, detail: str = "", *, output: str = "") -> None:
        self.server_name = server_name
        self.detail = detail
        self.output = output
        msg = f"Image build failed for '{server_name}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class RuntimeStartError(AgentryError):
    """Bringing the topology up on the local container runtime failed."""

    def __init__(self, resource_name: str, detail: str = "") -> None:
        self.resource_name = resource_name
        self.detail = detail
        super().__init__(
            f"Failed to start '{resource_name}'" + (f": {detail}" if detail else "")
        )


class HealthTimeoutError(AgentryError):
    """The primary service did not report healthy before the deadline."""

    def __init__(self, resource_name: str, timeout: float, *, logs: str = "") -> None:
        self.resource_name = resource_name
        self.timeout = timeout
        self.logs = logs
        super().__init__(
            f"Timed out after {timeout}s waiting for '{resource_name}' to become healthy"
        )


class TeardownError(AgentryError):
    """Tearing the topology down failed. Reported as a warning only."""

    def __init__(self, resource_name: str, detail: str = "") -> None:
        self.resource_name = resource_name
        self.detail = detail
        super().__init__(
            f"Failed to stop '{resource_name}'" + (f": {detail}" if detail else "")
        )


class CredentialError(AgentryError):
    """A credential required by the selected model provider is missing."""

    def __init__(self, env_var: str, provider: str) -> None:
        self.env_var = env_var
        self.provider = provider
        super().__init__(
            f"Required API key {env_var} not set for model provider {provider}"
        )


class DispatchError(AgentryError):
    """A deployment could not be created, executed or removed."""

    def __init__(self, resource_name: str, version: str, detail: str = "") -> None:
        self.resource_name = resource_name
        self.version = version
        self.detail = detail
        super().__init__(
            f"Deployment of '{resource_name}' version {version} failed"
            + (f": {detail}" if detail else "")
        )
