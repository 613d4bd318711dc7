"""Errors raised by devpick.

Library code raises these; only the CLI layer turns them into output and an
exit status.
"""

from __future__ import annotations


class DevPickError(RuntimeError):
    """Base class for every failure that ends an invocation with exit code 1."""

    exit_code = 1


class ConfigError(DevPickError):
    """Raised when workspace.yaml holds an unknown key or a bad value."""


class NoCandidatesError(DevPickError):
    """Raised when discovery found no package with a dev script."""

    def __init__(self, message: str = "No packages with dev scripts found!") -> None:
        super().__init__(message)


class InvalidSelectionError(DevPickError):
    """Raised when the entered selection is unusable and there is no default to fall back to."""

    def __init__(self, answer: str, count: int) -> None:
        self.answer = answer
        self.count = count
        super().__init__(f"Invalid selection! Expected a number between 1 and {count}, got {answer.strip()!r}")


class PackageNotFoundError(DevPickError):
    """Raised when a package has no descriptor on disk."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Package {name} not found.")


class MissingTaskError(DevPickError):
    """Raised when a package descriptor exists but does not declare the task."""

    def __init__(self, name: str, task: str) -> None:
        self.name = name
        self.task = task
        super().__init__(f"Package {name} does not have a {task} script.")


class DescriptorError(DevPickError):
    """Raised when a package descriptor cannot be read or parsed."""


class LaunchError(DevPickError):
    """Raised when the package manager process could not be started."""
