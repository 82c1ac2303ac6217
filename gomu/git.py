from __future__ import annotations

import logging
import pathlib
from typing import Optional

from . import util
from .exceptions import ProgramExecutionError

logger = logging.getLogger(__name__)

GIT = "git"


def run_git(*args: str, cwd: pathlib.Path, git: str = GIT) -> str:
    """Run ``git`` and return its output."""
    return util.run_program(git, *args, cwd=cwd)


def reset_files(repo_root: pathlib.Path, *files: str, git: str = GIT) -> str:
    """
    Run git checkout -- on specific files of a module.

    Parameters
    ----------
    repo_root : pathlib.Path
        The module repository root.
    *files : str
        Files relative to the repository root.
    """
    return run_git("checkout", "--", *files, cwd=repo_root, git=git)


def get_git_hash(path: pathlib.Path, git: str = GIT) -> str:
    return run_git("log", "-n1", "--pretty=format:%H", cwd=path, git=git).strip()


def get_current_branch(path: pathlib.Path, git: str = GIT) -> str:
    return run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=path, git=git).strip()


def branch_exists(path: pathlib.Path, branch: str, git: str = GIT) -> bool:
    try:
        run_git("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}", cwd=path, git=git)
    except ProgramExecutionError:
        return False
    return True


def checkout(path: pathlib.Path, branch: str, git: str = GIT) -> bool:
    """
    Check out ``branch``, creating it if it does not exist.

    Returns
    -------
    bool
        True if the branch was created.
    """
    if branch_exists(path, branch, git=git):
        run_git("checkout", branch, cwd=path, git=git)
        return False
    logger.info("Creating branch %s in %s", branch, path)
    run_git("checkout", "-b", branch, cwd=path, git=git)
    return True


def pull(path: pathlib.Path, git: str = GIT) -> str:
    return run_git("pull", cwd=path, git=git)


def has_changes(path: pathlib.Path, git: str = GIT) -> bool:
    return bool(run_git("status", "--porcelain", cwd=path, git=git).strip())


def commit_all(path: pathlib.Path, message: str, git: str = GIT) -> bool:
    """
    Commit all local changes.

    Returns
    -------
    bool
        False if there was nothing to commit.
    """
    if not has_changes(path, git=git):
        logger.debug("Nothing to commit in %s", path)
        return False
    run_git("add", "--all", cwd=path, git=git)
    run_git("commit", "-m", message, cwd=path, git=git)
    return True


def push(path: pathlib.Path, remote: str, branch: str, git: str = GIT) -> str:
    return run_git("push", "--follow-tags", "--set-upstream", remote, branch, cwd=path, git=git)


def get_latest_tag(path: pathlib.Path, git: str = GIT) -> Optional[str]:
    try:
        return run_git("describe", "--tags", "--abbrev=0", cwd=path, git=git).strip()
    except ProgramExecutionError:
        return None


def commits_since(path: pathlib.Path, ref: str, git: str = GIT) -> int:
    return int(run_git("rev-list", "--count", f"{ref}..HEAD", cwd=path, git=git).strip())


def bump_patch_version(tag: str) -> str:
    """
    Increment the last numeric component of a ``vX.Y.Z`` tag.

    Raises
    ------
    ValueError
        If the tag does not end in a number.
    """
    prefix, _, patch = tag.rpartition(".")
    if not prefix or not patch.isdigit():
        raise ValueError(f"Tag does not look like a semantic version: {tag}")
    return f"{prefix}.{int(patch) + 1}"


def tag_if_changed(path: pathlib.Path, git: str = GIT) -> Optional[str]:
    """
    Create a new patch tag if there are commits since the last tag.

    Returns
    -------
    str or None
        The new tag, or None if no tag was created.
    """
    latest = get_latest_tag(path, git=git)
    if latest is None:
        logger.warning("No previous tag in %s; not tagging", path)
        return None
    if commits_since(path, latest, git=git) == 0:
        logger.debug("No commits since %s in %s", latest, path)
        return None
    new_tag = bump_patch_version(latest)
    run_git("tag", new_tag, cwd=path, git=git)
    return new_tag
