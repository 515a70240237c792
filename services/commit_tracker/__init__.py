"""
Commit Tracker for the commit history recorder.

This package is responsible for:
- Reading commit metadata and diff statistics from git
- Running the project's test suite for coverage and pass/fail counts
- Appending validated commit records to JSON history files
- Installing itself as a git post-commit hook
"""

__version__ = "1.0.0"
__description__ = "Git post-commit history recorder"
