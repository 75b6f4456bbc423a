"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest

from agentry.errors import (
    AgentryError,
    BuildError,
    CredentialError,
    DispatchError,
    HealthTimeoutError,
    ManifestValidationError,
    RegistryError,
    RegistryNotFoundError,
    ResolutionError,
    RuntimeStartError,
    TeardownError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [
            BuildError,
            CredentialError,
            DispatchError,
            HealthTimeoutError,
            ManifestValidationError,
            RegistryError,
            ResolutionError,
            RuntimeStartError,
            TeardownError,
        ],
    )
    def test_all_are_agentry_errors(self, cls: type) -> None:
        assert issubclass(cls, AgentryError)

    def test_not_found_is_registry_error(self) -> None:
        assert issubclass(RegistryNotFoundError, RegistryError)


class TestMessages:
    def test_manifest_field(self) -> None:
        err = ManifestValidationError("duplicate name", field="mcpServers")
        assert str(err) == "Invalid manifest field 'mcpServers': duplicate name"

    def test_manifest_without_field(self) -> None:
        assert str(ManifestValidationError("bad")) == "Invalid manifest: bad"

    def test_registry(self) -> None:
        err = RegistryError("get server weather@1.0.0", "timeout", status_code=504)
        assert str(err) == "Registry get server weather@1.0.0 failed: timeout"
        assert err.status_code == 504

    def test_resolution_names_server(self) -> None:
        err = ResolutionError("weather", "not found")
        assert err.server_name == "weather"
        assert "'weather'" in str(err)

    def test_build_keeps_output(self) -> None:
        err = BuildError("weather", "exit status 1", output="npm ERR!")
        assert err.output == "npm ERR!"
        assert str(err) == "Image build failed for 'weather': exit status 1"

    def test_health_timeout(self) -> None:
        err = HealthTimeoutError("dice", 60, logs="tail")
        assert "60s" in str(err)
        assert err.logs == "tail"

    def test_credential(self) -> None:
        err = CredentialError("OPENAI_API_KEY", "openai")
        assert "OPENAI_API_KEY" in str(err)
        assert "openai" in str(err)

    def test_dispatch(self) -> None:
        err = DispatchError("dice", "1.0.0", "failed to start")
        assert str(err) == "Deployment of 'dice' version 1.0.0 failed: failed to start"
