"""Model-provider credential table and the pre-dispatch check."""

from __future__ import annotations

from collections.abc import Mapping

from agentry.errors import CredentialError

PROVIDER_API_KEYS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azureopenai": "AZUREOPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}


def api_key_env_var(model_provider: str) -> str | None:
    """Return the env var holding the key for *model_provider*, if one is required."""
    return PROVIDER_API_KEYS.get(model_provider.lower()) or None


def validate_credentials(model_provider: str, environ: Mapping[str, str]) -> None:
    """Raise :class:`CredentialError` if the provider's key is missing from *environ*.

    Providers without an entry in :data:`PROVIDER_API_KEYS` need no credential.
    """
    env_var = api_key_env_var(model_provider)
    if env_var is None:
        return
    if not environ.get(env_var):
        raise CredentialError(env_var, model_provider)
