"""Run the inference package's dev loop without pnpm.

Builds the templates with `npm run export-templates` (falling back to running
scripts/export-templates.ts through tsx), then keeps `tsup` in watch mode in
the foreground until it exits or the user hits Ctrl+C.
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
from pathlib import Path

import click
import structlog

from devpick.core.cli import fail_with_message
from devpick.core.errors import DevPickError, LaunchError, PackageNotFoundError
from devpick.core.logs import configure_logging
from devpick.core.manifest import WorkspaceConfig, get_workspace_config

logger = structlog.get_logger(__name__)

INFERENCE_PACKAGE = "inference"
EXPORT_TEMPLATES_SCRIPT = Path("scripts") / "export-templates.ts"
TSUP_ARGS = ["tsup", "src/index.ts", "--format", "cjs,esm", "--watch"]


def _run_step(command: list[str], cwd: Path) -> int | None:
    """Run a build step, returning its exit code or None if it could not start."""
    try:
        return subprocess.run(command, cwd=cwd).returncode
    except OSError as e:
        logger.debug("step_not_started", command=command, error=str(e))
        return None


def _executable(name: str) -> str:
    """Resolve a tool on PATH so Windows .cmd shims run without a shell."""
    return shutil.which(name) or name


def _local_tsx(package_path: Path) -> Path | None:
    bin_dir = package_path / "node_modules" / ".bin"
    names = ("tsx.cmd", "tsx") if os.name == "nt" else ("tsx", "tsx.cmd")
    return next((bin_dir / name for name in names if (bin_dir / name).exists()), None)


def export_templates(package_path: Path) -> bool:
    """Export the templates, returning whether any attempt succeeded.

    Failures are reported and never stop the dev loop.
    """
    click.echo("Running export-templates...")
    code = _run_step([_executable("npm"), "run", "export-templates"], package_path)
    if code == 0:
        return True

    reason = "could not start npm" if code is None else f"Exit code: {code}"
    click.secho(f"Error running export-templates: {reason}", fg="red", err=True)
    click.echo("Trying to run export-templates directly...")

    tsx = _local_tsx(package_path)
    if tsx is None:
        click.secho("tsx not found in node_modules. Continuing anyway...", fg="yellow", err=True)
        return False
    if not (package_path / EXPORT_TEMPLATES_SCRIPT).exists():
        click.secho("Could not find export-templates.ts script. Continuing anyway...", fg="yellow", err=True)
        return False

    click.echo("Found export-templates.ts script, running directly...")
    if _run_step([str(tsx), str(EXPORT_TEMPLATES_SCRIPT)], package_path) != 0:
        click.secho("Failed to run export-templates directly. Continuing anyway...", fg="yellow", err=True)
        return False
    return True


def watch(package_path: Path) -> int:
    """Run tsup in watch mode and return the exit code for this process.

    Ctrl+C stops the watcher and counts as a clean exit.
    """
    click.echo("Starting tsup watch mode...")
    try:
        process = subprocess.Popen([_executable("npx"), *TSUP_ARGS], cwd=package_path)
    except OSError as e:
        raise LaunchError(f"Error starting tsup: {e}") from e

    click.echo(f"Dev server for {INFERENCE_PACKAGE} is running...")
    try:
        code = process.wait()
    except KeyboardInterrupt:
        click.echo("Stopping tsup process...")
        if process.poll() is None:
            process.send_signal(signal.SIGINT)
            process.wait()
        return 0

    click.echo(f"tsup process exited with code {code}")
    return code if code > 0 else 0


def run_inference_dev(config: WorkspaceConfig | None = None) -> int:
    config = config or get_workspace_config()
    package_path = config.package_path(INFERENCE_PACKAGE)
    if not package_path.exists():
        raise PackageNotFoundError(INFERENCE_PACKAGE)

    click.echo(f"Changing to directory: {package_path}")
    export_templates(package_path)
    return watch(package_path)


@click.command(name="devpick-inference", help="Run the inference dev loop (templates + tsup watch) without pnpm")
@click.option("--verbose", "-v", is_flag=True, help="Log build step details to stderr")
def cli(verbose: bool) -> None:
    configure_logging(verbose)
    try:
        code = run_inference_dev()
    except DevPickError as e:
        fail_with_message(e)
    raise SystemExit(code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
