"""Unit tests for the doctor command."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

from opencode_agents.config import Settings
from opencode_agents.doctor import (
    FAIL,
    INFO,
    PASS,
    WARN,
    check_repository_access,
    collect_checks,
    run_doctor,
)
from opencode_agents.installer import install_project


def _settings(tmp_path: Path) -> Settings:
    return Settings(home_dir=tmp_path, global_config_dir=tmp_path / "global")


def _rows(results: list[tuple[str, str, str]]) -> dict[str, str]:
    return {check: status for status, check, _ in results}


class TestCheckRepositoryAccess:
    def test_reachable(self) -> None:
        with patch("opencode_agents.doctor.requests.head", return_value=MagicMock(status_code=200)) as head:
            ok, detail = check_repository_access("https://github.com/org/repo.git")

        assert ok
        assert detail == "https://github.com/org/repo"
        assert head.call_args[0][0] == "https://github.com/org/repo"

    def test_http_error(self) -> None:
        with patch("opencode_agents.doctor.requests.head", return_value=MagicMock(status_code=404)):
            ok, detail = check_repository_access("https://github.com/org/missing.git")

        assert not ok
        assert detail == "HTTP 404"

    def test_connection_error(self) -> None:
        with patch(
            "opencode_agents.doctor.requests.head",
            side_effect=requests.ConnectionError("no route"),
        ):
            ok, _ = check_repository_access("https://github.com/org/repo.git")

        assert not ok

    def test_ssh_url_skipped(self) -> None:
        with patch("opencode_agents.doctor.requests.head") as head:
            ok, _ = check_repository_access("git@github.com:org/repo.git")

        assert ok
        head.assert_not_called()


class TestCollectChecks:
    """Tests for collect_checks."""

    def test_fresh_machine(self, tmp_path: Path) -> None:
        with (
            patch("opencode_agents.doctor.command_exists", side_effect=lambda c: c == "git"),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            rows = _rows(collect_checks(_settings(tmp_path), cwd=tmp_path))

        assert rows["Git installed"] == PASS
        assert rows["Node.js/npm not found"] == WARN
        assert rows["Repository reachable"] == PASS
        assert rows["No global installation"] == INFO
        assert rows["No project installation"] == INFO
        assert rows["No session log"] == INFO

    def test_missing_git_fails(self, tmp_path: Path) -> None:
        with (
            patch("opencode_agents.doctor.command_exists", return_value=False),
            patch("opencode_agents.doctor.check_repository_access", return_value=(False, "HTTP 500")),
        ):
            rows = _rows(collect_checks(_settings(tmp_path), cwd=tmp_path))

        assert rows["Git not found"] == FAIL
        assert rows["Repository not reachable"] == WARN

    def test_project_installation(self, tmp_path: Path, distribution: Path, project: Path) -> None:
        install_project(distribution, project)

        with (
            patch("opencode_agents.doctor.command_exists", return_value=True),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            rows = _rows(collect_checks(_settings(tmp_path), cwd=project))

        assert rows["Project installation verified"] == PASS
        assert any(check.startswith("Session log size OK") for check in rows)

    def test_incomplete_global_installation(self, tmp_path: Path) -> None:
        (tmp_path / "global" / "agent").mkdir(parents=True)

        with (
            patch("opencode_agents.doctor.command_exists", return_value=True),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            rows = _rows(collect_checks(_settings(tmp_path), cwd=tmp_path))

        assert rows["Global installation incomplete"] == FAIL

    def test_non_utf8_session_log_warns(self, tmp_path: Path) -> None:
        (tmp_path / "AGENTS.md").write_bytes(b"# Log\n## caf\xe9\n")

        with (
            patch("opencode_agents.doctor.command_exists", return_value=True),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            rows = _rows(collect_checks(_settings(tmp_path), cwd=tmp_path))

        assert rows["Session log unreadable"] == WARN


class TestRunDoctor:
    def test_exit_code_zero_without_failures(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        with (
            patch("opencode_agents.doctor.command_exists", return_value=True),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            assert run_doctor(_settings(tmp_path)) == 0

    def test_exit_code_one_with_failures(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        with (
            patch("opencode_agents.doctor.command_exists", return_value=False),
            patch("opencode_agents.doctor.check_repository_access", return_value=(True, "url")),
        ):
            assert run_doctor(_settings(tmp_path)) == 1
