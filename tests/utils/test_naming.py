"""Tests for name normalisation and the version sanitizer."""

from __future__ import annotations

import pytest

from agentry.utils.naming import kebab_case, sanitize_segment, sanitize_version, service_name

_VERSIONS = [
    "1.0.0",
    "latest",
    "1.0.0+build/7",
    "v2 beta",
    "..",
    ".",
    "../../etc",
    "ünïcode-1",
    "",
    "a:b@c",
]


class TestSanitizeVersion:
    @pytest.mark.parametrize("version", _VERSIONS)
    def test_idempotent(self, version: str) -> None:
        once = sanitize_version(version)
        assert sanitize_version(once) == once

    @pytest.mark.parametrize("version", _VERSIONS)
    def test_single_safe_segment(self, version: str) -> None:
        result = sanitize_version(version)
        assert "/" not in result
        assert result not in {".", ".."}
        assert all(c.isascii() and (c.isalnum() or c in "._-") for c in result)

    def test_safe_versions_unchanged(self) -> None:
        assert sanitize_version("1.2.3-rc.1") == "1.2.3-rc.1"

    def test_unsafe_characters_replaced(self) -> None:
        assert sanitize_version("1.0.0+build/7") == "1.0.0-build-7"

    def test_dot_only(self) -> None:
        assert sanitize_segment("..") == "--"


class TestKebabCase:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("dice", "dice"),
            ("DiceAgent", "dice-agent"),
            ("my_agent.v2", "my-agent-v2"),
            ("--Weird--", "weird"),
        ],
    )
    def test_kebab(self, name: str, expected: str) -> None:
        assert kebab_case(name) == expected

    def test_idempotent(self) -> None:
        assert kebab_case(kebab_case("AcmeDice.v2")) == kebab_case("AcmeDice.v2")


class TestServiceName:
    def test_registry_style_name(self) -> None:
        assert service_name("io.github.acme/weather") == "io.github.acme-weather"

    def test_plain_name_unchanged(self) -> None:
        assert service_name("weather") == "weather"
