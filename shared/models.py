"""
Data models for the commit history recorder.

This module provides:
- The persisted CommitRecord and its nested commit/stats objects
- Record validation rules (hash format, commit URL, stats consistency)
- Test-run results and the machine-readable test report shape
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

SHA_PATTERN = re.compile(r"^[0-9a-f]{7,40}$", re.IGNORECASE)


def parse_commit_date(value: str) -> datetime:
    """Parse an ISO-8601 commit timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Conclusion(Enum):
    """Verdict on test health for a commit."""
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"

    @classmethod
    def from_counts(cls, test_count: int, failed_tests: int) -> "Conclusion":
        if test_count == 0:
            return cls.NEUTRAL
        if failed_tests > 0:
            return cls.FAILURE
        return cls.SUCCESS


class CommitInfo(BaseModel):
    """Commit date, message and web URL."""

    date: str = Field(..., description="Committer date, ISO-8601")
    message: str = Field(default="", description="Full commit message")
    url: str = Field(default="", description="Web URL of the commit, empty when unknown")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        """Validate commit timestamp format."""
        try:
            parse_commit_date(v)
        except (TypeError, ValueError):
            raise ValueError(f"Commit date is not ISO-8601: {v!r}")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if v.endswith("/commit/HEAD"):
            raise ValueError("Commit URL points at HEAD instead of a commit hash")
        return v


class CommitStats(BaseModel):
    """Line counts of a commit against its first parent."""

    total: int = Field(default=0, ge=0, description="Lines added plus lines deleted")
    additions: int = Field(default=0, ge=0, description="Lines added")
    deletions: int = Field(default=0, ge=0, description="Lines deleted")
    date: str = Field(default="", description="Commit day, YYYY-MM-DD")

    @model_validator(mode="after")
    def validate_total(self):
        if self.total != self.additions + self.deletions:
            raise ValueError("Stats total must equal additions plus deletions")
        return self


class SuiteResults(BaseModel):
    """Outcome of one test-runner invocation."""

    test_count: int = Field(default=0, ge=0)
    failed_tests: int = Field(default=0, ge=0)
    coverage: float = Field(default=0.0, ge=0, le=100)

    @property
    def conclusion(self) -> Conclusion:
        return Conclusion.from_counts(self.test_count, self.failed_tests)


class CommitRecord(BaseModel):
    """One entry of a history file."""

    sha: str = Field(..., description="Full commit hash")
    author: str = Field(default="", description="Author display name")
    branch: str = Field(..., min_length=1, description="Branch at commit time")
    commit: CommitInfo
    stats: CommitStats
    coverage: float = Field(default=0.0, ge=0, le=100, description="Statement coverage percentage")
    test_count: int = Field(default=0, ge=0)
    failed_tests: int = Field(default=0, ge=0)
    conclusion: Conclusion

    model_config = {
        "use_enum_values": True,
    }

    @field_validator("sha")
    @classmethod
    def validate_sha(cls, v):
        """Validate Git commit hash format."""
        if v == "HEAD":
            raise ValueError("Commit hash was not resolved (got literal HEAD)")
        if not SHA_PATTERN.match(v):
            raise ValueError(f"Invalid commit hash: {v!r}")
        return v.lower()

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, v):
        if not v.strip():
            raise ValueError("Branch name cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_record(self):
        """Cross-field checks: URL target, stats day and conclusion."""
        if self.commit.url and not self.commit.url.endswith(self.sha):
            raise ValueError(f"Commit URL {self.commit.url!r} does not end with {self.sha}")

        expected_day = self.commit.date.split("T")[0]
        if self.stats.date != expected_day:
            raise ValueError(f"Stats date {self.stats.date!r} does not match commit date {expected_day!r}")

        expected = Conclusion.from_counts(self.test_count, self.failed_tests).value
        if self.conclusion != expected:
            raise ValueError(f"Conclusion {self.conclusion!r} is inconsistent with test counts (expected {expected!r})")
        return self

    @property
    def committed_at(self) -> datetime:
        return parse_commit_date(self.commit.date)

    @classmethod
    def build(
        cls,
        sha: str,
        author: str,
        branch: str,
        date: str,
        message: str,
        url: str,
        additions: int,
        deletions: int,
        results: Optional[SuiteResults] = None,
    ) -> "CommitRecord":
        """Assemble a record, deriving total, stats day and conclusion."""
        results = results or SuiteResults()
        return cls(
            sha=sha,
            author=author,
            branch=branch,
            commit=CommitInfo(date=date, message=message, url=url),
            stats=CommitStats(
                total=additions + deletions,
                additions=additions,
                deletions=deletions,
                date=(date or "").split("T")[0],
            ),
            coverage=results.coverage,
            test_count=results.test_count,
            failed_tests=results.failed_tests,
            conclusion=results.conclusion,
        )


# Test report models (Jest ``--json`` output)
class FileCoverage(BaseModel):
    """Per-file coverage entry; ``s`` maps statement ids to hit counts."""

    s: Dict[str, int] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class JestReport(BaseModel):
    """The parts of a Jest JSON report used for a commit record."""

    numTotalTests: int = Field(default=0, ge=0)
    numFailedTests: int = Field(default=0, ge=0)
    coverageMap: Optional[Dict[str, FileCoverage]] = None

    model_config = {"extra": "ignore"}

    def statement_coverage(self) -> float:
        """Covered statements over all statements, as a percentage rounded to 2 places."""
        if not self.coverageMap:
            return 0.0
        covered = 0
        total = 0
        for file_coverage in self.coverageMap.values():
            total += len(file_coverage.s)
            covered += sum(1 for hits in file_coverage.s.values() if hits > 0)
        if total == 0:
            return 0.0
        return round(covered / total * 100, 2)

    def to_results(self) -> SuiteResults:
        return SuiteResults(
            test_count=self.numTotalTests,
            failed_tests=self.numFailedTests,
            coverage=self.statement_coverage(),
        )


__all__ = [
    'SHA_PATTERN', 'parse_commit_date',
    'Conclusion', 'CommitInfo', 'CommitStats', 'SuiteResults', 'CommitRecord',
    'FileCoverage', 'JestReport',
]
