"""DeploymentDispatcher — create deployment records and run them.

Every deployment starts as a record in the registry.  A local deployment
(provider id empty or ``"local"``) is then started here and its record moved
to ``deployed``, ``failed`` or ``cancelled``; any other provider is left to the registry
service, which owns the external orchestration system.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Literal

from opentelemetry import trace

from agentry.config import RuntimeConfig
from agentry.credentials import api_key_env_var, validate_credentials
from agentry.errors import AgentryError, DispatchError, ManifestValidationError
from agentry.manifest.models import Manifest
from agentry.registry.client import RegistryClient
from agentry.registry.models import (
    LOCAL_PROVIDER_ID,
    Deployment,
    DeploymentRequest,
    DeploymentStatus,
    is_local_provider,
)
from agentry.resolve.server_config import remove_server_config
from agentry.runner import AgentRunner
from agentry.topology.renderer import TELEMETRY_ENV_VAR, compose_project_name
from agentry.utils.telemetry import (
    ATTR_PROVIDER_ID,
    ATTR_RESOURCE_TYPE,
    ATTR_SERVER_NAME,
    ATTR_VERSION,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

NAMESPACE_ENV_VAR = "KAGENT_NAMESPACE"
ARG_PREFIX = "ARG_"
HEADER_PREFIX = "HEADER_"

ResourceType = Literal["agent", "mcp"]


def parse_key_values(entries: Iterable[str], *, prefix: str = "", option: str = "--env") -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a mapping, prefixing every key.

    Raises:
        ManifestValidationError: For an entry without ``=`` or with an empty key.
    """
    parsed: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise ManifestValidationError(f"expected KEY=VALUE, got {entry!r}", field=option)
        parsed[prefix + key.strip()] = value
    return parsed


def build_agent_env(
    manifest: Manifest,
    environ: Mapping[str, str],
    *,
    namespace: str = "",
) -> dict[str, str]:
    """Environment handed to a deployed agent.

    Includes the provider API key value, the telemetry endpoint and the
    target namespace when each applies.
    """
    env: dict[str, str] = {}
    key_var = api_key_env_var(manifest.model_provider)
    if key_var and environ.get(key_var):
        env[key_var] = environ[key_var]
    if manifest.telemetry_endpoint:
        env[TELEMETRY_ENV_VAR] = manifest.telemetry_endpoint
    if namespace:
        env[NAMESPACE_ENV_VAR] = namespace
    return env


class DeploymentDispatcher:
    """Route deployments to the local runtime or, via the registry, to a provider."""

    def __init__(
        self,
        config: RuntimeConfig,
        registry: RegistryClient,
        *,
        runner: AgentRunner | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._runner = runner or AgentRunner(config, registry)

    async def deploy_agent(
        self,
        name: str,
        version: str = "latest",
        *,
        provider_id: str = "",
        namespace: str = "",
    ) -> Deployment:
        """Deploy the registry agent *name* at *version*.

        Raises:
            CredentialError: The model provider's key is missing; nothing was created.
            DispatchError: The local deployment failed to start (record marked failed).
        """
        definition = await self._registry.get_agent(name, version)
        manifest = definition.manifest
        validate_credentials(manifest.model_provider, self._config.environ)

        env = build_agent_env(manifest, self._config.environ, namespace=namespace)
        request = self._request(name, definition.version, "agent", provider_id, env, namespace)

        with _tracer.start_as_current_span("agentry.deploy") as span:
            self._annotate(span, name, definition.version, "agent", request.provider_id)
            deployment = await self._registry.create_deployment(request)
            if not is_local_provider(provider_id):
                return deployment

            # The API key reaches the compose tool through its own environment.
            key_var = api_key_env_var(manifest.model_provider)
            local_env = {k: v for k, v in env.items() if k != key_var}
            return await self._run_local(
                deployment,
                lambda: self._runner.start_agent(definition, extra_env=local_env),
            )

    async def deploy_server(
        self,
        name: str,
        version: str = "latest",
        *,
        env: Iterable[str] = (),
        args: Iterable[str] = (),
        headers: Iterable[str] = (),
        prefer_remote: bool = False,
        provider_id: str = "",
        namespace: str = "",
    ) -> Deployment:
        """Deploy the registry MCP server *name* at *version*.

        ``env``, ``args`` and ``headers`` are ``KEY=VALUE`` strings; arguments
        and headers are carried in the environment as ``ARG_*`` / ``HEADER_*``.
        """
        config_env = parse_key_values(env, option="--env")
        config_env.update(parse_key_values(args, prefix=ARG_PREFIX, option="--arg"))
        config_env.update(parse_key_values(headers, prefix=HEADER_PREFIX, option="--header"))
        if namespace:
            config_env[NAMESPACE_ENV_VAR] = namespace

        definition = await self._registry.get_server(name, version)
        resolved_version = definition.version or version
        request = self._request(name, resolved_version, "mcp", provider_id, config_env, namespace)
        request.prefer_remote = prefer_remote

        with _tracer.start_as_current_span("agentry.deploy") as span:
            self._annotate(span, name, resolved_version, "mcp", request.provider_id)
            deployment = await self._registry.create_deployment(request)
            if not is_local_provider(provider_id):
                return deployment
            return await self._run_local(
                deployment,
                lambda: self._runner.start_server(
                    name, resolved_version, prefer_remote=prefer_remote, env=config_env
                ),
            )

    async def remove(self, name: str, version: str, resource_type: ResourceType) -> Deployment:
        """Delete the deployment record, then stop its local containers.

        A local agent also loses the resolved-server config kept under
        ``state_dir``.

        The record goes first so that nothing re-scanning deployments tries
        to bring back a resource that is being torn down.
        """
        deployment = await self._registry.get_deployment(name, version, resource_type)
        if deployment is None:
            raise DispatchError(name, version, f"no {resource_type} deployment found")

        await self._registry.delete_deployment(deployment.id)
        logger.info("Deleted deployment record %s for %s@%s", deployment.id, name, version)
        if deployment.is_local:
            await self._runner.runtime.stop_project(compose_project_name(name, version))
            if resource_type == "agent":
                remove_server_config(self._config.state_dir, name, version=version)
        return deployment

    async def list_deployments(
        self,
        *,
        resource_type: ResourceType | None = None,
        provider_id: str | None = None,
    ) -> list[Deployment]:
        return await self._registry.list_deployments(
            resource_type=resource_type, provider_id=provider_id
        )

    async def status(self, name: str, version: str, resource_type: ResourceType) -> Deployment | None:
        return await self._registry.get_deployment(name, version, resource_type)

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _request(
        name: str,
        version: str,
        resource_type: ResourceType,
        provider_id: str,
        env: dict[str, str],
        namespace: str,
    ) -> DeploymentRequest:
        return DeploymentRequest(
            resource_name=name,
            version=version,
            resource_type=resource_type,
            provider_id=provider_id or LOCAL_PROVIDER_ID,
            env=env,
            provider_config={"namespace": namespace} if namespace else {},
        )

    async def _run_local(
        self,
        deployment: Deployment,
        start: Callable[[], Awaitable[object]],
    ) -> Deployment:
        try:
            await start()
        except AgentryError as exc:
            logger.error("Local deployment of %s failed: %s", deployment.resource_name, exc)
            await self._registry.update_deployment(
                deployment.id, status=DeploymentStatus.FAILED, error=str(exc)
            )
            raise DispatchError(deployment.resource_name, deployment.version, str(exc)) from exc
        except (asyncio.CancelledError, KeyboardInterrupt):
            logger.warning("Local deployment of %s was cancelled", deployment.resource_name)
            await self._registry.update_deployment(
                deployment.id, status=DeploymentStatus.CANCELLED, error="cancelled"
            )
            raise
        except Exception as exc:
            logger.exception("Local deployment of %s failed", deployment.resource_name)
            await self._registry.update_deployment(
                deployment.id, status=DeploymentStatus.FAILED, error=str(exc) or type(exc).__name__
            )
            raise
        return await self._registry.update_deployment(
            deployment.id, status=DeploymentStatus.DEPLOYED
        )

    @staticmethod
    def _annotate(span: trace.Span, name: str, version: str, resource_type: str, provider_id: str) -> None:
        for key, value in (
            (ATTR_SERVER_NAME, name),
            (ATTR_VERSION, version),
            (ATTR_RESOURCE_TYPE, resource_type),
            (ATTR_PROVIDER_ID, provider_id),
        ):
            span.set_attribute(key, value)
