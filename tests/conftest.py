"""
Shared fixtures for commit tracker tests.

The ``git_repo`` fixture builds a throwaway repository with a ``main`` branch
and a committer identity; tests that need it are skipped without git.
"""

import shutil
from pathlib import Path
from typing import Dict, Optional

import pytest
from git import Repo

from shared.models import CommitRecord


class GitRepoHelper:
    """Small wrapper to write files and commit them in a test repository."""

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        self.repo.git.symbolic_ref("HEAD", "refs/heads/main")
        with self.repo.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")
            config.set_value("commit", "gpgsign", "false")

    def write(self, relative: str, content: str):
        target = self.path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def commit(self, message: str, files: Optional[Dict[str, str]] = None, date: Optional[str] = None) -> str:
        for relative, content in (files or {}).items():
            self.write(relative, content)
        self.repo.git.add("--all")
        env = {"GIT_COMMITTER_DATE": date, "GIT_AUTHOR_DATE": date} if date else None
        self.repo.git.commit("-m", message, "--allow-empty", env=env)
        return self.repo.head.commit.hexsha

    def checkout_new_branch(self, name: str):
        self.repo.git.checkout("-b", name)


@pytest.fixture
def git_repo(tmp_path):
    """A fresh repository on branch ``main``."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    return GitRepoHelper(tmp_path / "repo")


def _record_data(**overrides):
    data = {
        "sha": "abc123def4567890abc123def4567890abc123de",
        "author": "Test User",
        "branch": "main",
        "commit": {
            "date": "2024-03-01T10:00:00+00:00",
            "message": "feat: add new feature",
            "url": "https://github.com/acme/widgets/commit/abc123def4567890abc123def4567890abc123de",
        },
        "stats": {"total": 60, "additions": 50, "deletions": 10, "date": "2024-03-01"},
        "coverage": 85.5,
        "test_count": 10,
        "failed_tests": 0,
        "conclusion": "success",
    }
    data.update(overrides)
    return data


@pytest.fixture
def record_data():
    """Factory for plain dicts of a valid CommitRecord, with optional overrides."""
    return _record_data


@pytest.fixture
def make_record():
    """Factory for validated CommitRecord instances."""
    def factory(**overrides):
        return CommitRecord.model_validate(_record_data(**overrides))
    return factory
