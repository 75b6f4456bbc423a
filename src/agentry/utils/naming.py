"""Name normalisation shared by image naming, topology rendering and config paths."""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def kebab_case(name: str) -> str:
    """``"MyAgent_v2"`` -> ``"my-agent-v2"``."""
    spaced = _CAMEL_BOUNDARY.sub("-", name)
    return _NON_ALNUM.sub("-", spaced.lower()).strip("-")


def sanitize_segment(value: str) -> str:
    """Make *value* safe as a single path segment or compose identifier.

    Every character outside ``[A-Za-z0-9._-]`` becomes ``-``.  A result made
    only of dots (``.`` or ``..``) would address a parent directory, so its
    dots are replaced too.  Applying the function twice gives the same result
    as applying it once.
    """
    cleaned = _UNSAFE_SEGMENT_CHARS.sub("-", value)
    if cleaned and set(cleaned) == {"."}:
        cleaned = cleaned.replace(".", "-")
    return cleaned


def sanitize_version(version: str) -> str:
    """Version strings end up in config paths and topology identifiers."""
    return sanitize_segment(version)


def service_name(server_name: str) -> str:
    """Compose service name of an MCP server, which is also its hostname."""
    return sanitize_segment(server_name)
