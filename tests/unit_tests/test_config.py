"""Tests for config module including project discovery and settings."""

from pathlib import Path

import pytest

from opencode_agents.config import (
    DEFAULT_LOG_MAX_BYTES,
    DEFAULT_REPO_URL,
    DEFAULT_REQUIRED_COMMANDS,
    Settings,
    default_global_config_dir,
    find_project_root,
)


class TestProjectRootDetection:
    """Test project root detection via .git directory."""

    def test_find_project_root_with_git(self, tmp_path: Path) -> None:
        """Test that project root is found from a subdirectory."""
        project_root = tmp_path / "my-project"
        (project_root / ".git").mkdir(parents=True)
        subdir = project_root / "src" / "components"
        subdir.mkdir(parents=True)

        assert find_project_root(subdir) == project_root.resolve()

    def test_find_project_root_no_git(self, tmp_path: Path) -> None:
        """Test that None is returned when no .git directory exists."""
        no_git_dir = tmp_path / "no-git"
        no_git_dir.mkdir()

        assert find_project_root(no_git_dir) is None

    def test_find_project_root_nested_git(self, tmp_path: Path) -> None:
        """Test that the nearest .git directory wins."""
        outer_repo = tmp_path / "outer"
        (outer_repo / ".git").mkdir(parents=True)
        inner_repo = outer_repo / "inner"
        (inner_repo / ".git").mkdir(parents=True)

        assert find_project_root(inner_repo) == inner_repo.resolve()


class TestGlobalConfigDir:
    """Test the per-platform global configuration directory."""

    def test_linux(self, tmp_path: Path) -> None:
        assert default_global_config_dir(tmp_path, "linux") == tmp_path / ".config" / "opencode"

    def test_macos(self, tmp_path: Path) -> None:
        assert default_global_config_dir(tmp_path, "darwin") == tmp_path / ".config" / "opencode"

    def test_windows(self, tmp_path: Path) -> None:
        expected = tmp_path / "AppData" / "Local" / "opencode"
        assert default_global_config_dir(tmp_path, "win32") == expected


class TestSettings:
    """Test Settings.from_environment and helpers."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "OPENCODE_AGENTS_GLOBAL_DIR",
            "OPENCODE_AGENTS_REPO",
            "OPENCODE_AGENTS_REF",
            "OPENCODE_AGENTS_REQUIRED_COMMANDS",
            "OPENCODE_AGENTS_LOG_MAX_BYTES",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self, tmp_path: Path) -> None:
        """Test defaults when no environment overrides are set."""
        settings = Settings.from_environment(start_path=tmp_path)

        assert settings.repo_url == DEFAULT_REPO_URL
        assert settings.repo_ref is None
        assert settings.required_commands == DEFAULT_REQUIRED_COMMANDS
        assert settings.session_log_max_bytes == DEFAULT_LOG_MAX_BYTES
        assert settings.global_config_dir == default_global_config_dir(Path.home())

    def test_environment_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override the defaults."""
        monkeypatch.setenv("OPENCODE_AGENTS_GLOBAL_DIR", str(tmp_path / "global"))
        monkeypatch.setenv("OPENCODE_AGENTS_REPO", "https://example.com/agents.git")
        monkeypatch.setenv("OPENCODE_AGENTS_REF", "v2")
        monkeypatch.setenv("OPENCODE_AGENTS_REQUIRED_COMMANDS", "git, node ,")
        monkeypatch.setenv("OPENCODE_AGENTS_LOG_MAX_BYTES", "1024")

        settings = Settings.from_environment(start_path=tmp_path)

        assert settings.global_config_dir == tmp_path / "global"
        assert settings.repo_url == "https://example.com/agents.git"
        assert settings.repo_ref == "v2"
        assert settings.required_commands == ("git", "node")
        assert settings.session_log_max_bytes == 1024

    def test_empty_required_commands(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an empty list disables the prerequisite check."""
        monkeypatch.setenv("OPENCODE_AGENTS_REQUIRED_COMMANDS", "")

        settings = Settings.from_environment(start_path=tmp_path)

        assert settings.required_commands == ()

    def test_invalid_log_limit_falls_back(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a malformed size limit uses the default."""
        monkeypatch.setenv("OPENCODE_AGENTS_LOG_MAX_BYTES", "lots")

        settings = Settings.from_environment(start_path=tmp_path)

        assert settings.session_log_max_bytes == DEFAULT_LOG_MAX_BYTES

    def test_docs_url_strips_git_suffix(self, tmp_path: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path)
        assert settings.docs_url == "https://github.com/shahboura/agents-opencode"

    def test_session_log_path_uses_project_root(self, tmp_path: Path) -> None:
        """Test AGENTS.md lives in the project root when inside a git project."""
        (tmp_path / ".git").mkdir()
        subdir = tmp_path / "src"
        subdir.mkdir()

        settings = Settings.from_environment(start_path=subdir)

        assert settings.has_project
        assert settings.get_session_log_path() == tmp_path.resolve() / "AGENTS.md"

    def test_session_log_path_without_project(self, tmp_path: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")

        assert not settings.has_project
        assert settings.get_session_log_path(tmp_path) == tmp_path / "AGENTS.md"

    def test_project_install_dir(self, tmp_path: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")
        assert settings.get_project_install_dir(tmp_path) == tmp_path / ".opencode"
