"""Tests for workspace configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from devpick.core.errors import ConfigError
from devpick.core.discovery import discover_candidates
from devpick.core.manifest import MANIFEST_FILE, WorkspaceConfig, find_workspace_root, load_workspace_config
from parameterized import parameterized


class TestPackagedManifest:
    def test_packaged_manifest_loads(self) -> None:
        """The shipped workspace.yaml parses into the expected defaults."""
        config = load_workspace_config(env={})

        assert MANIFEST_FILE.exists()
        assert config.default_package == "inference"
        assert config.selection_timeout_ms == 10000
        assert config.packages[0] == "agents"
        assert "tasks-gen" in config.packages
        assert config.e2e_folders == ("svelte", "ts", "deno", "yarn")
        assert config.package_managers == ("pnpm", "npm")
        assert config.fallback_package_manager == "npm"

    def test_missing_manifest_uses_builtin_defaults(self, tmp_path: Path) -> None:
        config = load_workspace_config(path=tmp_path / "absent.yaml", root=tmp_path, env={})

        assert config.root == tmp_path
        assert config.packages == ()
        assert config.default_package is None


class TestManifestValidation:
    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        manifest = tmp_path / "workspace.yaml"
        manifest.write_text("packages: [hub]\nrestart_policy: always\n")

        with pytest.raises(ConfigError, match="restart_policy"):
            load_workspace_config(path=manifest, env={})

    @parameterized.expand(
        [
            ("negative", "-1"),
            ("not_a_number", "soon"),
        ]
    )
    def test_bad_timeout_rejected(self, _name: str, value: str) -> None:
        with pytest.raises(ConfigError, match="selection_timeout_ms"):
            load_workspace_config(env={"DEVPICK_SELECTION_TIMEOUT_MS": value})

    def test_list_fields_must_be_string_lists(self, tmp_path: Path) -> None:
        manifest = tmp_path / "workspace.yaml"
        manifest.write_text("packages: hub\n")

        with pytest.raises(ConfigError, match="packages"):
            load_workspace_config(path=manifest, env={})

    def test_null_default_disables_fallback(self, tmp_path: Path) -> None:
        manifest = tmp_path / "workspace.yaml"
        manifest.write_text("default_package: null\n")

        assert load_workspace_config(path=manifest, env={}).default_package is None


class TestEnvironmentOverrides:
    def test_env_overrides_manifest(self, tmp_path: Path) -> None:
        config = load_workspace_config(
            env={
                "DEVPICK_WORKSPACE_ROOT": str(tmp_path),
                "DEVPICK_DEFAULT_PACKAGE": "hub",
                "DEVPICK_SELECTION_TIMEOUT_MS": "2500",
            }
        )

        assert config.root == tmp_path.resolve()
        assert config.default_package == "hub"
        assert config.selection_timeout_ms == 2500

    def test_empty_default_env_clears_default(self) -> None:
        config = load_workspace_config(env={"DEVPICK_DEFAULT_PACKAGE": ""})

        assert config.default_package is None


class TestPackagePath:
    @parameterized.expand(
        [
            ("hub", "packages/hub"),
            ("tasks-gen", "packages/tasks-gen"),
            ("e2e/svelte", "e2e/svelte"),
            ("e2e/deno", "e2e/deno"),
        ]
    )
    def test_package_path(self, name: str, expected: str) -> None:
        config = WorkspaceConfig(root=Path("/workspace"))

        assert config.package_path(name) == Path("/workspace") / expected
        assert config.descriptor_path(name) == Path("/workspace") / expected / "package.json"


class TestWorkspaceRoot:
    def test_root_found_from_nested_cwd(self, workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without an explicit root the workspace is found by walking up from the current directory."""
        monkeypatch.chdir(workspace / "packages" / "hub")

        config = load_workspace_config(env={})

        assert config.root == workspace.resolve()
        assert discover_candidates(config) == ["hub", "inference", "e2e/svelte"]

    def test_pnpm_workspace_marker(self, tmp_path: Path) -> None:
        (tmp_path / "pnpm-workspace.yaml").write_text("packages: ['packages/*']\n")
        nested = tmp_path / "docs" / "guides"
        nested.mkdir(parents=True)

        assert find_workspace_root(start=nested) == tmp_path.resolve()

    def test_custom_packages_dir(self, tmp_path: Path) -> None:
        (tmp_path / "libs").mkdir()

        assert find_workspace_root("libs", start=tmp_path / "libs") == tmp_path.resolve()

    def test_explicit_root_wins(self, tmp_path_factory: pytest.TempPathFactory) -> None:
        other = tmp_path_factory.mktemp("other")

        assert load_workspace_config(root=other, env={}).root == other
