"""Command-line entry point for devpick."""

from __future__ import annotations

from devpick.core.cli import main

if __name__ == "__main__":  # pragma: no cover - module entry point
    main()
