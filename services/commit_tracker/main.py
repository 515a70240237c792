"""
Commit Tracker Service.

This service records the commit HEAD points at:
- Resolves the commit hash, branch and metadata from git
- Measures the diff against the first parent, ignoring history files
- Runs the test suite for coverage and pass/fail counts when possible
- Validates the record and appends it to the global and branch history files

Git and validation failures abort the run before anything is written; diff,
test and history-read failures degrade to zeros or an empty history.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.settings import Settings, get_settings
from services.commit_tracker.coverage_runner import CoverageRunner
from services.commit_tracker.exceptions import GitQueryError, RecordValidationError
from services.commit_tracker.git_reader import GitReader
from services.commit_tracker.history import HistoryStore
from shared.models import SHA_PATTERN, CommitRecord, SuiteResults

logger = logging.getLogger(__name__)


class CommitTrackerService:
    """Builds commit records and persists them to history files."""

    def __init__(
        self,
        repo_path: str = ".",
        settings: Optional[Settings] = None,
        git_reader: Optional[GitReader] = None,
        runner: Optional[CoverageRunner] = None,
        store: Optional[HistoryStore] = None,
    ):
        self.settings = settings or get_settings()
        self.git = git_reader or GitReader(repo_path, remote=self.settings.git.remote)
        root = self.git.work_tree
        self.runner = runner or CoverageRunner(root, self.settings.test_runner)
        self.store = store or HistoryStore(root, self.settings.history)

    def resolve_sha(self) -> str:
        """HEAD commit hash; raises unless it is 7 to 40 hex characters."""
        sha = self.git.head_sha()
        if not SHA_PATTERN.match(sha):
            raise RecordValidationError(f"Invalid commit hash: {sha!r}")
        return sha.lower()

    def resolve_branch(self) -> str:
        branch = self.git.current_branch()
        if not branch:
            raise RecordValidationError("Could not determine the current branch")
        return branch

    def build_record(self, run_tests: bool = True) -> CommitRecord:
        """Collect everything about HEAD into a validated record."""
        sha = self.resolve_sha()
        message, date, author = self.git.commit_metadata(sha)
        branch = self.resolve_branch()
        url = self.git.commit_url(sha)

        additions, deletions = self.git.diff_stats(sha, exclude=self.store.exclude_patterns())
        logger.debug(f"Diff stats for {sha}: +{additions} -{deletions}")

        results = self.runner.run() if run_tests else SuiteResults()

        try:
            record = CommitRecord.build(
                sha=sha,
                author=author,
                branch=branch,
                date=date,
                message=message,
                url=url,
                additions=additions,
                deletions=deletions,
                results=results,
            )
        except ValidationError as e:
            raise RecordValidationError(f"Invalid commit record for {sha}: {e}")

        if record.sha != sha:
            raise RecordValidationError(f"Record hash {record.sha} does not match resolved hash {sha}")
        return record

    def track_commit(self, dry_run: bool = False, run_tests: bool = True) -> CommitRecord:
        """Record HEAD in the history files (or only build it when ``dry_run``)."""
        try:
            record = self.build_record(run_tests=run_tests)
        except (GitQueryError, RecordValidationError) as e:
            logger.error(f"Error tracking commit: {e}")
            raise

        if dry_run:
            logger.info(f"Dry run, not writing commit {record.sha}")
            return record

        written = self.store.save(record)
        logger.info(
            f"Recorded commit {record.sha[:8]} on {record.branch} "
            f"in {', '.join(str(p) for p in written)}"
        )
        return record

    def history_path(self, branch: Optional[str] = None) -> Path:
        return self.store.branch_path(branch) if branch else self.store.main_path

    def history(self, branch: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Most recent ``limit`` entries of the global or a branch history, oldest first."""
        entries = self.store.load(self.history_path(branch))
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries
