"""Shared helpers for devpick tests."""

from __future__ import annotations

import json
from pathlib import Path

from devpick.core.manifest import WorkspaceConfig


def write_package(root: Path, relative: str, scripts: dict | None = None, raw: str | None = None) -> Path:
    """Create <root>/<relative>/package.json and return the package directory."""
    path = root / relative
    path.mkdir(parents=True, exist_ok=True)
    content = raw if raw is not None else json.dumps({"name": relative, "scripts": scripts or {}})
    (path / "package.json").write_text(content)
    return path


def make_config(root: Path, **overrides) -> WorkspaceConfig:
    values = {
        "root": root,
        "packages": ("agents", "hub", "inference", "tasks"),
        "e2e_folders": ("svelte", "ts"),
        "default_package": "inference",
        "selection_timeout_ms": 5000,
    }
    values.update(overrides)
    return WorkspaceConfig(**values)


class FakeInput:
    """Input source returning a canned line; None simulates the countdown winning."""

    def __init__(self, line: str | None = None) -> None:
        self.line = line
        self.timeouts: list[float | None] = []

    def read_line(self, timeout: float | None) -> str | None:
        self.timeouts.append(timeout)
        return self.line


