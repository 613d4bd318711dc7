"""devpick - start a workspace package's dev server.

Usage:
    devpick                 pick from the packages that have a dev script
    devpick hub             start packages/hub directly
    devpick e2e/svelte      start e2e/svelte directly
    devpick -i hub          ignore the argument and show the menu
"""

from __future__ import annotations

from typing import NoReturn

import click
import structlog

from devpick.core.discovery import discover_candidates
from devpick.core.errors import DevPickError
from devpick.core.launcher import start_dev_server
from devpick.core.logs import configure_logging
from devpick.core.manifest import WorkspaceConfig, get_workspace_config
from devpick.core.selection import InputSource, resolve_selection

logger = structlog.get_logger(__name__)


def fail_with_message(error: DevPickError) -> NoReturn:
    click.secho(f"Error: {error}", fg="red", bold=True, err=True)
    raise SystemExit(error.exit_code) from error


def run(
    package: str | None,
    *,
    interactive: bool = False,
    config: WorkspaceConfig | None = None,
    input_source: InputSource | None = None,
) -> int:
    """Resolve the package to start, launch it and return the child's exit code."""
    config = config or get_workspace_config()

    # An explicit package skips discovery entirely
    skip_discovery = bool(package) and not interactive
    candidates = [] if skip_discovery else discover_candidates(config)
    choice = resolve_selection(
        candidates,
        explicit_choice=package,
        force_interactive=interactive,
        default_name=config.default_package,
        timeout_ms=config.selection_timeout_ms,
        input_source=input_source,
    )

    logger.debug("package_selected", package=choice)
    return start_dev_server(choice, config)


@click.command(
    name="devpick",
    help="Start the dev server of a workspace package. Without PACKAGE, pick one from a menu.",
)
@click.argument("package", required=False)
@click.option("--interactive", "-i", is_flag=True, help="Show the menu even when PACKAGE is given")
@click.option("--verbose", "-v", is_flag=True, help="Log discovery and launch details to stderr")
def cli(package: str | None, interactive: bool, verbose: bool) -> None:
    configure_logging(verbose)
    try:
        code = run(package, interactive=interactive)
    except DevPickError as e:
        fail_with_message(e)
    raise SystemExit(code)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
