from __future__ import annotations

from pathlib import Path

import pytest

from devpick.core.logs import configure_logging
from devpick.tests.utils import write_package

configure_logging()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace with hub and inference dev servers, plus e2e/svelte."""
    write_package(tmp_path, "packages/agents", {"build": "tsup"})
    write_package(tmp_path, "packages/hub", {"dev": "vite"})
    write_package(tmp_path, "packages/inference", {"dev": "tsup --watch"})
    write_package(tmp_path, "e2e/svelte", {"dev": "vite dev"})
    return tmp_path
