"""Start a package's dev script with the workspace package manager."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import click
import structlog

from devpick.core.discovery import has_task, read_descriptor
from devpick.core.errors import DescriptorError, LaunchError, MissingTaskError, PackageNotFoundError
from devpick.core.manifest import WorkspaceConfig

logger = structlog.get_logger(__name__)

Which = Callable[[str], "str | None"]


@dataclass(frozen=True)
class PackageManager:
    name: str
    executable: str


def resolve_package(name: str, config: WorkspaceConfig) -> Path:
    """Return the directory of `name`, checking that it declares the configured task.

    Raises:
        PackageNotFoundError: there is no descriptor for the package
        DescriptorError: the descriptor cannot be read or parsed
        MissingTaskError: the descriptor has no such script
    """
    path = config.package_path(name)
    descriptor_path = config.descriptor_path(name)
    if not descriptor_path.exists():
        raise PackageNotFoundError(name)

    try:
        descriptor = read_descriptor(descriptor_path)
    except (OSError, ValueError) as e:
        raise DescriptorError(f"Error reading {config.descriptor} for {name}: {e}") from e

    if not has_task(descriptor, config.task):
        raise MissingTaskError(name, config.task)
    return path


def detect_package_manager(config: WorkspaceConfig, which: Which = shutil.which) -> PackageManager:
    """Pick the first configured package manager found on PATH, else the fallback."""
    for name in config.package_managers:
        if executable := which(name):
            return PackageManager(name, executable)
        logger.debug("package_manager_missing", package_manager=name)

    fallback = config.fallback_package_manager
    return PackageManager(fallback, which(fallback) or fallback)


def _exit_code(returncode: int) -> int:
    # Negative codes mean the child was killed by that signal
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_foreground(command: list[str], cwd: Path) -> int:
    """Run `command` in `cwd` with inherited stdio and return its exit code.

    A terminal interrupt reaches the child through the shared process group, so
    on KeyboardInterrupt (however many) the parent keeps waiting for the child.
    """
    try:
        process = subprocess.Popen(command, cwd=cwd)
    except OSError as e:
        raise LaunchError(f"Error starting dev server: {e}") from e

    while True:
        try:
            returncode = process.wait()
            break
        except KeyboardInterrupt:
            logger.debug("interrupt_forwarded", pid=process.pid)
    return _exit_code(returncode)


def start_dev_server(name: str, config: WorkspaceConfig, which: Which = shutil.which) -> int:
    """Start the dev script of `name` and return the child's exit code."""
    click.echo(f"Starting dev server for {name}...")
    path = resolve_package(name, config)

    click.echo(f"Changing to directory: {path}")
    manager = detect_package_manager(config, which)
    click.echo(f"Using package manager: {manager.name}")
    click.echo(f"Running command: {manager.name} run {config.task}")

    code = run_foreground([manager.executable, "run", config.task], cwd=path)
    click.echo(f"Dev server for {name} has exited with code {code}")
    return code
