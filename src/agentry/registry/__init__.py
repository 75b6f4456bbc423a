"""Registry API client and payload models."""

from agentry.registry.client import RegistryClient
from agentry.registry.models import (
    LOCAL_PROVIDER_ID,
    AgentDefinition,
    Deployment,
    DeploymentOrigin,
    DeploymentRequest,
    DeploymentStatus,
    ServerDefinition,
    is_local_provider,
)

__all__ = [
    "LOCAL_PROVIDER_ID",
    "AgentDefinition",
    "Deployment",
    "DeploymentOrigin",
    "DeploymentRequest",
    "DeploymentStatus",
    "RegistryClient",
    "ServerDefinition",
    "is_local_provider",
]
