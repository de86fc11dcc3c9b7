"""Git operations module.

Usage:
    from tagsync.git import Repository

    repo = Repository(Path("."))
    repo.fetch_tags("upstream")
"""

from tagsync.git.repository import GitError, Repository

__all__ = ["GitError", "Repository"]
