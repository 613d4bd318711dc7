"""Discovery of workspace packages that declare a dev script."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from devpick.core.manifest import WorkspaceConfig

logger = structlog.get_logger(__name__)


def read_descriptor(path: Path) -> dict[str, Any]:
    """Read a package descriptor (package.json) into a dict.

    Raises OSError when the file cannot be read and ValueError when it is not a
    JSON object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def has_task(descriptor: dict[str, Any], task: str) -> bool:
    """Whether the descriptor declares a non-empty script named `task`."""
    scripts = descriptor.get("scripts")
    return isinstance(scripts, dict) and bool(scripts.get(task))


def _probe(config: WorkspaceConfig) -> Iterator[tuple[str, Path]]:
    for name in config.packages:
        yield name, config.descriptor_path(name)
    for folder in config.e2e_folders:
        name = f"{config.reserved_prefix}{folder}"
        yield name, config.descriptor_path(name)


def discover_candidates(config: WorkspaceConfig) -> list[str]:
    """Return the names of packages whose descriptor declares the configured task.

    Packages are probed in manifest order, plain packages first, then e2e folders.
    Missing or unparsable descriptors are skipped.
    """
    candidates: list[str] = []
    for name, path in _probe(config):
        if not path.exists():
            continue
        try:
            descriptor = read_descriptor(path)
        except (OSError, ValueError) as e:
            logger.debug("descriptor_skipped", package=name, path=str(path), error=str(e))
            continue
        if has_task(descriptor, config.task):
            candidates.append(name)

    logger.debug("candidates_discovered", candidates=candidates, task=config.task)
    return candidates
