"""Tests for deterministic image naming."""

from __future__ import annotations

from agentry.build.naming import agent_image_name, mcp_server_image_name


class TestImageNaming:
    def test_agent_image_defaults_to_latest(self) -> None:
        assert agent_image_name("DiceAgent") == "dice-agent:latest"

    def test_agent_image_sanitizes_version(self) -> None:
        assert agent_image_name("dice", "1.0+build/7") == "dice:1.0-build-7"

    def test_server_image_is_deterministic(self) -> None:
        first = mcp_server_image_name("dice", "weather")
        assert first == mcp_server_image_name("dice", "weather")
        assert first == "dice-weather:latest"

    def test_server_image_kebab_cases(self) -> None:
        assert mcp_server_image_name("acme.dice", "Weather_Server") == "acme-dice-weather-server:latest"
