"""Workspace configuration for devpick.

Package lists, the default package and the selection timeout live in
workspace.yaml next to the package and are materialised into a frozen
WorkspaceConfig that is passed explicitly to discovery, selection and launch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import structlog
import yaml

from devpick.core.errors import ConfigError

logger = structlog.get_logger(__name__)

REPO_ROOT = Path(__file__).resolve().parent.parent.parent
MANIFEST_FILE = Path(__file__).parent.parent / "workspace.yaml"

ROOT_ENV = "DEVPICK_WORKSPACE_ROOT"
DEFAULT_PACKAGE_ENV = "DEVPICK_DEFAULT_PACKAGE"
TIMEOUT_ENV = "DEVPICK_SELECTION_TIMEOUT_MS"
WORKSPACE_MARKER = "pnpm-workspace.yaml"


@dataclass(frozen=True)
class WorkspaceConfig:
    """Where packages live and how a dev server is picked and started."""

    root: Path = REPO_ROOT
    packages_dir: str = "packages"
    packages: tuple[str, ...] = ()
    e2e_dir: str = "e2e"
    e2e_folders: tuple[str, ...] = ()
    reserved_prefix: str = "e2e/"
    descriptor: str = "package.json"
    task: str = "dev"
    default_package: str | None = None
    selection_timeout_ms: int = 10000
    package_managers: tuple[str, ...] = field(default_factory=lambda: ("pnpm", "npm"))
    fallback_package_manager: str = "npm"

    @property
    def packages_root(self) -> Path:
        return self.root / self.packages_dir

    @property
    def e2e_root(self) -> Path:
        return self.root / self.e2e_dir

    def package_path(self, name: str) -> Path:
        """Map a package name to its directory.

        Names carrying the reserved prefix (e.g. "e2e/svelte") live under the
        e2e root with the prefix stripped; every other name lives under the
        packages root.
        """
        if self.reserved_prefix and name.startswith(self.reserved_prefix):
            return self.e2e_root / name[len(self.reserved_prefix) :]
        return self.packages_root / name

    def descriptor_path(self, name: str) -> Path:
        return self.package_path(name) / self.descriptor


_LIST_FIELDS = {"packages", "e2e_folders", "package_managers"}


def _read_manifest(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def _coerce(data: dict[str, Any], source: Path) -> dict[str, Any]:
    known = {f.name for f in fields(WorkspaceConfig)} - {"root"}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown key(s) in {source}: {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key in _LIST_FIELDS:
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigError(f"'{key}' in {source} must be a list of strings")
            values[key] = tuple(value)
        elif key == "selection_timeout_ms":
            values[key] = _parse_timeout(value, source)
        elif key == "default_package":
            values[key] = str(value) if value else None
        else:
            values[key] = str(value)
    return values


def _parse_timeout(value: Any, source: Path | str) -> int:
    try:
        timeout = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"selection_timeout_ms from {source} must be an integer, got {value!r}") from e
    if timeout < 0:
        raise ConfigError(f"selection_timeout_ms from {source} must be >= 0, got {timeout}")
    return timeout


def _apply_env(config: WorkspaceConfig, env: dict[str, str]) -> WorkspaceConfig:
    overrides: dict[str, Any] = {}
    if root := env.get(ROOT_ENV):
        overrides["root"] = Path(root).expanduser().resolve()
    if DEFAULT_PACKAGE_ENV in env:
        overrides["default_package"] = env[DEFAULT_PACKAGE_ENV] or None
    if timeout := env.get(TIMEOUT_ENV):
        overrides["selection_timeout_ms"] = _parse_timeout(timeout, TIMEOUT_ENV)
    if overrides:
        logger.debug("workspace_config_env_overrides", overrides=sorted(overrides))
    return replace(config, **overrides)


def find_workspace_root(packages_dir: str = "packages", start: Path | None = None) -> Path:
    """Find the workspace root from `start` (the current directory by default).

    The nearest directory holding pnpm-workspace.yaml or a `packages_dir`
    directory wins. Falls back to the repository containing devpick.
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / WORKSPACE_MARKER).is_file() or (parent / packages_dir).is_dir():
            return parent
    return REPO_ROOT


def load_workspace_config(
    path: Path | None = None,
    root: Path | None = None,
    env: dict[str, str] | None = None,
) -> WorkspaceConfig:
    """Load workspace configuration from YAML, then apply environment overrides.

    Args:
        path: Manifest to read, defaults to the packaged workspace.yaml
        root: Workspace root, found from the current directory by default
        env: Environment to read overrides from, defaults to os.environ
    """
    source = path or MANIFEST_FILE
    values = _coerce(_read_manifest(source), source)
    if root is None:
        root = find_workspace_root(values.get("packages_dir", "packages"))
    config = WorkspaceConfig(root=root, **values)
    return _apply_env(config, dict(os.environ) if env is None else env)


_config_instance: WorkspaceConfig | None = None


def get_workspace_config() -> WorkspaceConfig:
    """Get or create the workspace config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = load_workspace_config()
    return _config_instance
