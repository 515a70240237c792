"""Exceptions raised by the commit tracker."""


class CommitTrackerError(Exception):
    """Base class for failures that abort a recording run."""


class GitQueryError(CommitTrackerError):
    """A git query failed or the repository could not be opened."""


class RecordValidationError(CommitTrackerError):
    """The assembled commit record is malformed or forbidden."""


class HookInstallError(CommitTrackerError):
    """The post-commit hook could not be installed."""
