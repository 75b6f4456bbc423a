"""Manifest parsing — turn raw YAML/JSON text into a validated :class:`Manifest`."""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import Any

import yaml
from pydantic import ValidationError

from agentry.errors import ManifestValidationError
from agentry.manifest.models import Manifest, manifest_error_from

MANIFEST_FILENAME = "agent.yaml"


def parse_manifest(raw: str, *, format: str = "yaml") -> Manifest:
    """Parse a raw string into a validated :class:`Manifest`.

    Args:
        raw: The raw document.
        format: ``"yaml"`` (default) or ``"json"``.

    Raises:
        ManifestValidationError: On parse errors or schema violations.
    """
    try:
        data: Any = json.loads(raw) if format == "json" else yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ManifestValidationError(f"parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestValidationError("manifest must be a mapping")

    try:
        return Manifest.model_validate(data)
    except ValidationError as exc:
        raise manifest_error_from(exc) from exc


def load_manifest(project_dir: Path) -> Manifest:
    """Read and validate ``agent.yaml`` from *project_dir*."""
    path = project_dir / MANIFEST_FILENAME
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestValidationError(f"cannot read {path}: {exc}") from exc
    return parse_manifest(raw)
