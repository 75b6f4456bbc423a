"""Tests for model-provider credential validation."""

from __future__ import annotations

import pytest

from agentry.credentials import api_key_env_var, validate_credentials
from agentry.errors import CredentialError


class TestCredentials:
    @pytest.mark.parametrize(
        ("provider", "env_var"),
        [
            ("openai", "OPENAI_API_KEY"),
            ("Anthropic", "ANTHROPIC_API_KEY"),
            ("azureopenai", "AZUREOPENAI_API_KEY"),
            ("gemini", "GOOGLE_API_KEY"),
            ("ollama", None),
            ("", None),
        ],
    )
    def test_env_var(self, provider: str, env_var: str | None) -> None:
        assert api_key_env_var(provider) == env_var

    def test_missing_key(self) -> None:
        with pytest.raises(CredentialError) as exc_info:
            validate_credentials("openai", {})
        assert exc_info.value.env_var == "OPENAI_API_KEY"

    def test_empty_key_is_missing(self) -> None:
        with pytest.raises(CredentialError):
            validate_credentials("gemini", {"GOOGLE_API_KEY": ""})

    def test_present_key(self) -> None:
        validate_credentials("openai", {"OPENAI_API_KEY": "sk"})

    def test_provider_without_key(self) -> None:
        validate_credentials("ollama", {})
