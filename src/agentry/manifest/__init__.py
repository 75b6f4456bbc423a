"""Manifest models and parsing."""

from agentry.manifest.loader import MANIFEST_FILENAME, load_manifest, parse_manifest
from agentry.manifest.models import (
    CommandServer,
    Manifest,
    McpServerRef,
    RegistryServer,
    RemoteServer,
    SkillRef,
)

__all__ = [
    "MANIFEST_FILENAME",
    "CommandServer",
    "Manifest",
    "McpServerRef",
    "RegistryServer",
    "RemoteServer",
    "SkillRef",
    "load_manifest",
    "parse_manifest",
]
