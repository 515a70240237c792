"""
History files: JSON arrays of commit records sorted by commit date.

Every append reads the whole file, adds the record, re-sorts and rewrites
the file. There is no locking.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

from config.settings import HistorySettings
from shared.models import CommitRecord, parse_commit_date

logger = logging.getLogger(__name__)

UNSAFE_BRANCH_CHARS = re.compile(r"[^A-Za-z0-9._-]")
DETACHED_HEAD = "HEAD"
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def sanitize_branch(branch: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return UNSAFE_BRANCH_CHARS.sub("_", branch)


def commit_date_key(entry: Dict[str, Any]) -> datetime:
    """Sort key for a stored entry; unreadable dates sort first."""
    try:
        return parse_commit_date(entry["commit"]["date"])
    except (KeyError, TypeError, ValueError, AttributeError):
        return _OLDEST


class HistoryStore:
    """Reads and writes the history files of one work tree."""

    def __init__(self, root: str, config: Optional[HistorySettings] = None):
        self.config = config or HistorySettings()
        self.root = Path(root)
        self.directory = self.root / self.config.directory

    @property
    def main_path(self) -> Path:
        return self.directory / f"{self.config.file_prefix}.json"

    def branch_path(self, branch: str) -> Path:
        return self.directory / f"{self.config.file_prefix}-{sanitize_branch(branch)}.json"

    def exclude_patterns(self) -> List[str]:
        """Pathspec globs matching every history file, relative to the work tree."""
        return [str(PurePosixPath(self.config.directory) / f"{self.config.file_prefix}*.json")]

    def targets(self, branch: str) -> List[Path]:
        """Files a record on ``branch`` is written to."""
        paths = [self.main_path]
        if branch and branch != DETACHED_HEAD:
            paths.append(self.branch_path(branch))
        else:
            logger.warning("Detached HEAD, skipping the per-branch history file")
        return paths

    def load(self, path: Path) -> List[Dict[str, Any]]:
        """Entries stored in ``path``; missing or unreadable files count as empty."""
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read history file {path}, starting empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"History file {path} is not a JSON array, starting empty")
            return []
        return data

    def write(self, path: Path, entries: List[Dict[str, Any]]):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(entries, indent=self.config.indent, ensure_ascii=False),
            encoding="utf-8",
        )

    def append(self, path: Path, record: CommitRecord) -> List[Dict[str, Any]]:
        """Add ``record`` to ``path``, sort by commit date and rewrite the file."""
        entries = self.load(path)
        entries.append(record.model_dump(mode="json"))
        entries.sort(key=commit_date_key)
        self.write(path, entries)
        logger.debug(f"Wrote {len(entries)} entries to {path}")
        return entries

    def save(self, record: CommitRecord) -> List[Path]:
        """Append ``record`` to the global and branch history files."""
        written = []
        for path in self.targets(record.branch):
            self.append(path, record)
            written.append(path)
        return written

    def ensure_main(self):
        """Create the global history file as an empty array if it is missing."""
        if not self.main_path.exists():
            self.write(self.main_path, [])
