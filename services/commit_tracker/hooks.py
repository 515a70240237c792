"""Install the recorder as a git post-commit hook."""

import logging
import os
import stat
from pathlib import Path

from git import Repo, InvalidGitRepositoryError, NoSuchPathError

from services.commit_tracker.exceptions import HookInstallError

logger = logging.getLogger(__name__)

HOOK_MARKER = "# commit-tracker post-commit hook"

HOOK_TEMPLATE = """#!/bin/sh
{marker}
ROOT_DIR=$(git rev-parse --show-toplevel)
cd "$ROOT_DIR" || exit 1
exec {command}
"""


def _hooks_dir(repo_path: str) -> Path:
    try:
        repo = Repo(repo_path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise HookInstallError(f"Invalid Git repository: {repo_path}")
    # core.hooksPath overrides .git/hooks
    with repo.config_reader() as config:
        hooks_path = config.get_value("core", "hooksPath", default="")
    if hooks_path:
        hooks = Path(hooks_path)
        if not hooks.is_absolute():
            hooks = Path(repo.working_tree_dir or repo.git_dir) / hooks
        return hooks
    return Path(repo.git_dir) / "hooks"


def hook_path(repo_path: str = ".") -> Path:
    return _hooks_dir(repo_path) / "post-commit"


def is_hook_installed(repo_path: str = ".") -> bool:
    path = hook_path(repo_path)
    return path.exists() and HOOK_MARKER in path.read_text(encoding="utf-8", errors="replace")


def install_post_commit_hook(repo_path: str, command: str, force: bool = False) -> Path:
    """
    Write an executable post-commit hook that runs ``command`` from the work tree root.

    A hook written by someone else is only replaced when ``force`` is set.
    """
    path = hook_path(repo_path)
    if path.exists() and not force and not is_hook_installed(repo_path):
        raise HookInstallError(f"A different post-commit hook already exists at {path} (use --force to replace it)")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HOOK_TEMPLATE.format(marker=HOOK_MARKER, command=command), encoding="utf-8")
    mode = os.stat(path).st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info(f"Installed post-commit hook at {path}")
    return path
