"""Unit tests for fetching and inspecting the distribution."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from opencode_agents.config import Settings
from opencode_agents.errors import AgentsError, ErrorCategory
from opencode_agents.repository import (
    checkout_repository,
    clone_repository,
    describe_version,
    read_version,
    validate_repository,
)


class TestCloneRepository:
    """Tests for clone_repository."""

    def test_shallow_clone_command(self, tmp_path: Path) -> None:
        with patch("opencode_agents.repository.subprocess.run") as mock_run:
            clone_repository("https://example.com/agents.git", tmp_path / "repo")

        cmd = mock_run.call_args[0][0]
        assert cmd == [
            "git",
            "clone",
            "--depth",
            "1",
            "--quiet",
            "https://example.com/agents.git",
            str(tmp_path / "repo"),
        ]
        assert mock_run.call_args[1]["check"] is True

    def test_clone_with_ref(self, tmp_path: Path) -> None:
        with patch("opencode_agents.repository.subprocess.run") as mock_run:
            clone_repository("https://example.com/agents.git", tmp_path, ref="v1.0.0")

        cmd = mock_run.call_args[0][0]
        assert cmd[cmd.index("--branch") + 1] == "v1.0.0"

    def test_clone_failure_is_network_error(self, tmp_path: Path) -> None:
        failure = subprocess.CalledProcessError(
            128, ["git", "clone"], stderr="fatal: unable to access"
        )
        with patch("opencode_agents.repository.subprocess.run", side_effect=failure):
            with pytest.raises(AgentsError) as exc_info:
                clone_repository("https://example.com/agents.git", tmp_path)

        assert exc_info.value.category == ErrorCategory.NETWORK_ERROR
        assert exc_info.value.message == (
            "Failed to clone repository. Please check your internet connection."
        )
        assert exc_info.value.context["detail"] == "fatal: unable to access"


class TestValidateRepository:
    def test_valid(self, distribution: Path) -> None:
        validate_repository(distribution)

    def test_missing_opencode_dir(self, tmp_path: Path) -> None:
        with pytest.raises(AgentsError) as exc_info:
            validate_repository(tmp_path)

        assert exc_info.value.category == ErrorCategory.INVALID_REPOSITORY
        assert "Missing .opencode directory" in exc_info.value.message


class TestVersion:
    """Tests for read_version and describe_version."""

    def test_read_version(self, distribution: Path) -> None:
        assert read_version(distribution) == "1.2.3"

    def test_read_version_missing_file(self, tmp_path: Path) -> None:
        assert read_version(tmp_path) is None

    def test_read_version_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
        assert read_version(tmp_path) is None

    def test_describe_version(self, distribution: Path) -> None:
        text = describe_version(distribution, "https://github.com/shahboura/agents-opencode")
        assert text == (
            "OpenCode Agents v1.2.3\nRepository: https://github.com/shahboura/agents-opencode"
        )

    def test_describe_version_unknown(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(json.dumps({"name": "x"}), encoding="utf-8")
        assert describe_version(tmp_path, "url") == "OpenCode Agents (version unknown)"

    def test_describe_version_failed(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("[1, 2", encoding="utf-8")
        assert describe_version(tmp_path, "url") == "OpenCode Agents (version check failed)"


class TestCheckoutRepository:
    """Tests for checkout_repository."""

    def test_local_source(self, tmp_path: Path, distribution: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")

        with checkout_repository(settings, distribution) as repo_dir:
            assert repo_dir == distribution.resolve()

        assert distribution.exists()

    def test_missing_local_source(self, tmp_path: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")

        with pytest.raises(AgentsError) as exc_info:
            with checkout_repository(settings, tmp_path / "missing"):
                pass

        assert exc_info.value.category == ErrorCategory.TARGET_NOT_FOUND

    def test_clone_into_temp_dir_is_cleaned_up(self, tmp_path: Path) -> None:
        settings = Settings(
            home_dir=tmp_path, global_config_dir=tmp_path / "global", repo_ref="main"
        )

        def fake_clone(repo_url: str, dest: Path, ref: str | None = None) -> None:
            assert repo_url == settings.repo_url
            assert ref == "main"
            (dest / ".opencode" / "agent").mkdir(parents=True)

        with patch("opencode_agents.repository.clone_repository", side_effect=fake_clone):
            with checkout_repository(settings) as repo_dir:
                assert (repo_dir / ".opencode").is_dir()
                checkout = repo_dir

        assert not checkout.exists()

    def test_invalid_clone_is_cleaned_up(self, tmp_path: Path) -> None:
        settings = Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")
        created: list[Path] = []

        def fake_clone(repo_url: str, dest: Path, ref: str | None = None) -> None:
            created.append(dest)

        with patch("opencode_agents.repository.clone_repository", side_effect=fake_clone):
            with pytest.raises(AgentsError) as exc_info:
                with checkout_repository(settings):
                    pass

        assert exc_info.value.category == ErrorCategory.INVALID_REPOSITORY
        assert created and not created[0].exists()
