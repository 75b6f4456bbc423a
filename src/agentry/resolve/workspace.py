"""Scoped resolution workspaces."""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "agentry-registry-resolve-"


@contextmanager
def resolution_workspace() -> Iterator[Path]:
    """Yield a fresh temporary directory and remove it on every exit path.

    Removal is best effort: a failure is logged and never replaces the
    outcome of the body.
    """
    path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            logger.warning("Failed to remove temporary directory %s: %s", path, exc)
