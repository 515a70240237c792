"""
Git queries used to build a commit record.

All calls go through GitPython's ``Repo.git`` command wrapper, which runs the
git binary inside the work tree.
"""

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from services.commit_tracker.exceptions import GitQueryError

logger = logging.getLogger(__name__)

INSERTIONS_RE = re.compile(r"(\d+)\s+insertion")
DELETIONS_RE = re.compile(r"(\d+)\s+deletion")
SCP_REMOTE_RE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(?!/)(.+)$")


def parse_shortstat(output: str) -> Tuple[int, int]:
    """Read insertion and deletion counts from ``--stat``/``--shortstat`` output."""
    add_match = INSERTIONS_RE.search(output or "")
    del_match = DELETIONS_RE.search(output or "")
    additions = int(add_match.group(1)) if add_match else 0
    deletions = int(del_match.group(1)) if del_match else 0
    return additions, deletions


def remote_to_http_url(raw: str) -> str:
    """
    Convert a remote URL to the web URL of the repository.

    ``git@host:owner/repo.git`` and ``ssh://git@host/owner/repo`` become
    ``https://host/owner/repo``; http(s) remotes lose their credentials and
    ``.git`` suffix. Unknown forms give an empty string.
    """
    url = (raw or "").strip()
    if url.endswith(".git"):
        url = url[:-4]
    url = url.rstrip("/")
    if not url:
        return ""

    if url.startswith(("http://", "https://", "ssh://")):
        parts = urlsplit(url)
        if not parts.hostname:
            return ""
        scheme = parts.scheme if parts.scheme != "ssh" else "https"
        netloc = parts.hostname
        if parts.port and parts.scheme != "ssh":
            netloc = f"{netloc}:{parts.port}"
        return f"{scheme}://{netloc}{parts.path}"

    match = SCP_REMOTE_RE.match(url)
    if match:
        return f"https://{match.group(1)}/{match.group(2)}"
    return ""


class GitReader:
    """Read-only view of a repository for the recorder."""

    def __init__(self, repo_path: str = ".", remote: str = "origin"):
        try:
            self.repo = Repo(repo_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise GitQueryError(f"Invalid Git repository: {repo_path}")
        if self.repo.bare:
            raise GitQueryError(f"Bare repository has no work tree: {repo_path}")
        self.remote = remote

    @property
    def work_tree(self) -> str:
        return self.repo.working_tree_dir

    def _query(self, command: str, *args: str, context: str) -> str:
        try:
            return getattr(self.repo.git, command)(*args)
        except GitCommandError as e:
            raise GitQueryError(f"{context} failed: {e.stderr.strip() if e.stderr else e}")

    def head_sha(self) -> str:
        """Hash of the commit HEAD points at."""
        return self._query("rev_parse", "HEAD", context="Resolving HEAD").strip()

    def current_branch(self) -> str:
        """Short branch name; ``HEAD`` when detached."""
        return self._query("rev_parse", "--abbrev-ref", "HEAD", context="Resolving branch").strip()

    def commit_metadata(self, sha: str) -> Tuple[str, str, str]:
        """Return ``(message, committer date, author name)`` for a commit."""
        message = self._query("log", "-1", "--pretty=%B", sha, context=f"Reading message of {sha}")
        date = self._query("log", "-1", "--pretty=%cI", sha, context=f"Reading date of {sha}")
        author = self._query("log", "-1", "--pretty=%an", sha, context=f"Reading author of {sha}")
        if not date.strip():
            raise GitQueryError(f"Commit {sha} has no committer date")
        return message.strip(), date.strip(), author.strip()

    def parents(self, sha: str) -> List[str]:
        """Parent hashes in the order git lists them."""
        output = self._query("log", "-1", "--pretty=%P", sha, context=f"Reading parents of {sha}")
        return output.split()

    def remote_url(self) -> str:
        """Web URL of the configured remote, or an empty string."""
        try:
            raw = self.repo.git.config("--get", f"remote.{self.remote}.url")
        except GitCommandError:
            logger.debug(f"No URL configured for remote {self.remote}")
            return ""
        return remote_to_http_url(raw)

    def commit_url(self, sha: str) -> str:
        repo_url = self.remote_url()
        return f"{repo_url}/commit/{sha}" if repo_url else ""

    def diff_stats(self, sha: str, exclude: Optional[List[str]] = None) -> Tuple[int, int]:
        """
        Insertions and deletions of ``sha`` against its first parent.

        A root commit is measured with ``git show`` so all of its content
        counts as added. Paths in ``exclude`` are git pathspec globs left out
        of the count. Failures degrade to ``(0, 0)``.
        """
        pathspecs = ["--"] + [f":(exclude){pattern}" for pattern in (exclude or [])]

        parent: Optional[str] = None
        try:
            parent_list = self.parents(sha)
            parent = parent_list[0] if parent_list else None
        except GitQueryError as e:
            logger.debug(f"Could not list parents of {sha}: {e}")

        if parent:
            try:
                output = self.repo.git.diff("--shortstat", parent, sha, *pathspecs)
                return parse_shortstat(output)
            except GitCommandError as e:
                logger.debug(f"git diff against {parent} failed, falling back to git show: {e}")

        try:
            output = self.repo.git.show("--shortstat", "--format=", sha, *pathspecs)
            return parse_shortstat(output)
        except GitCommandError as e:
            logger.warning(f"Could not compute diff stats for {sha}: {e}")
            return 0, 0
