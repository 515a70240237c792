"""
Unit tests for the track_commit CLI.

The service is patched for option handling and exit codes; one test runs
the command against a real repository.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

import track_commit
from services.commit_tracker.exceptions import GitQueryError, RecordValidationError
from services.commit_tracker.hooks import HOOK_MARKER


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_service(make_record):
    with patch("track_commit.CommitTrackerService") as service_class:
        service = service_class.return_value
        service.track_commit.return_value = make_record()
        service.history.return_value = []
        yield service


class TestTrackCommitCommand:
    """Test cases for the track_commit command."""

    def test_records_commit(self, runner, mock_service, tmp_path):
        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path)])

        assert result.exit_code == 0
        assert "Commit recorded successfully" in result.output
        mock_service.track_commit.assert_called_once_with(dry_run=False, run_tests=True)

    def test_quiet_prints_nothing_on_success(self, runner, mock_service, tmp_path):
        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path), "--quiet"])

        assert result.exit_code == 0
        assert result.output == ""

    def test_dry_run_and_skip_tests(self, runner, mock_service, tmp_path):
        result = runner.invoke(
            track_commit.track_commit, ["--repo-path", str(tmp_path), "--dry-run", "--skip-tests"]
        )

        assert result.exit_code == 0
        assert "dry run" in result.output
        assert "Commit Details" in result.output
        mock_service.track_commit.assert_called_once_with(dry_run=True, run_tests=False)

    def test_validation_error_exits_1(self, runner, mock_service, tmp_path):
        mock_service.track_commit.side_effect = RecordValidationError("Invalid commit hash: 'HEAD'")

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid commit hash" in result.output

    def test_git_error_exits_1(self, runner, tmp_path):
        with patch("track_commit.CommitTrackerService", side_effect=GitQueryError("Invalid Git repository")):
            result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid Git repository" in result.output

    def test_unexpected_error_exits_1(self, runner, mock_service, tmp_path):
        mock_service.track_commit.side_effect = PermissionError("read-only file system")

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path)])

        assert result.exit_code == 1
        assert "read-only file system" in result.output

    def test_history_table(self, runner, mock_service, record_data, tmp_path):
        mock_service.history.return_value = [record_data()]

        result = runner.invoke(
            track_commit.track_commit,
            ["--repo-path", str(tmp_path), "--history", "--branch", "main", "--limit", "5"],
        )

        assert result.exit_code == 0
        assert "Commit History (main)" in result.output
        mock_service.history.assert_called_once_with("main", 5)
        mock_service.track_commit.assert_not_called()

    def test_empty_history(self, runner, mock_service, tmp_path):
        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path), "--history"])

        assert result.exit_code == 0
        assert "No commits recorded yet" in result.output

    def test_missing_repo_path(self, runner, tmp_path):
        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(tmp_path / "missing")])

        assert result.exit_code == 2


class TestTrackCommitRepository:
    """CLI against a real repository."""

    def test_dry_run_then_record(self, runner, git_repo):
        git_repo.commit("init", {"file.txt": "a\nb\n"})
        history_file = git_repo.path / "script" / "commit-history.json"

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(git_repo.path), "--dry-run"])
        assert result.exit_code == 0
        assert not history_file.exists()

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(git_repo.path)])
        assert result.exit_code == 0
        data = json.loads(history_file.read_text(encoding="utf-8"))
        assert len(data) == 1
        assert data[0]["stats"]["additions"] == 2

    def test_install_hook(self, runner, git_repo):
        git_repo.commit("init", {"file.txt": "a\n"})

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(git_repo.path), "--install-hook"])

        assert result.exit_code == 0
        hook = git_repo.path / ".git" / "hooks" / "post-commit"
        assert HOOK_MARKER in hook.read_text(encoding="utf-8")
        assert json.loads((git_repo.path / "script" / "commit-history.json").read_text(encoding="utf-8")) == []

    def test_install_hook_refuses_foreign_hook(self, runner, git_repo):
        git_repo.commit("init", {"file.txt": "a\n"})
        hook = git_repo.path / ".git" / "hooks" / "post-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text("#!/bin/sh\necho mine\n", encoding="utf-8")

        result = runner.invoke(track_commit.track_commit, ["--repo-path", str(git_repo.path), "--install-hook"])

        assert result.exit_code == 1
        assert "echo mine" in hook.read_text(encoding="utf-8")
