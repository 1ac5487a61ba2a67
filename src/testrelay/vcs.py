# src/testrelay/vcs.py

"""
Read-only access to the local Git repository using pygit2.
"""

from pathlib import Path

import pygit2
import structlog

from testrelay.exceptions import RepositoryError

log = structlog.get_logger("vcs")


def open_repository(working_dir: Path) -> pygit2.Repository:
    """Discovers and opens the repository containing `working_dir`."""
    try:
        repo_path = pygit2.discover_repository(str(working_dir))
        if not repo_path:
            raise RepositoryError(
                "Not a Git repository (or any of the parent directories)", repo_path=str(working_dir)
            )
        return pygit2.Repository(repo_path)
    except pygit2.GitError as e:
        log.error("Failed to open Git repository", path=str(working_dir), error=str(e))
        raise RepositoryError(f"Failed to open Git repository: {e}", repo_path=str(working_dir)) from e


def resolve_head_commit(working_dir: Path) -> str:
    """Returns the full SHA of the commit HEAD points to."""
    repo = open_repository(working_dir)
    if repo.is_empty or repo.head_is_unborn:
        raise RepositoryError("Repository has no commits yet", repo_path=str(working_dir))

    try:
        commit = repo.head.peel(pygit2.Commit)
    except (pygit2.GitError, KeyError) as e:
        raise RepositoryError(f"Cannot resolve HEAD: {e}", repo_path=str(working_dir)) from e

    sha = str(commit.id)
    log.debug("Resolved HEAD commit", path=str(working_dir), commit_sha=sha)
    return sha


# 🔼⚙️
