from __future__ import annotations

from tagsync.core.config import Config
from tagsync.core.result import Err, Ok, Result
from tagsync.git.repository import GitError, Repository
from tagsync.output.console import ConsoleProtocol, Style
from tagsync.services.errors import ErrorKind, ServiceError
from tagsync.services.mirror.model import SyncReport
from tagsync.services.mirror.tags import compute_missing, parse_ls_remote_tags
from tagsync.services.mirror.versions import sort_versions


def _from_git(error: GitError, *, kind: ErrorKind, message: str) -> ServiceError:
    return ServiceError(kind=kind, message=message, hint=error.message or None)


class TagMirror:
    """Copies upstream tags that the fork does not have yet.

    Each run re-diffs both tag sets, so a run that failed halfway is repaired
    by the next one: already pushed tags simply drop out of the missing set.
    """

    def __init__(self, *, repo: Repository, config: Config, console: ConsoleProtocol) -> None:
        self._repo = repo
        self._config = config
        self._console = console

    def _remote_tags(self, remote: str) -> Result[frozenset[str], ServiceError]:
        out = self._repo.ls_remote_tags(remote)
        if isinstance(out, Err):
            return Err(
                _from_git(
                    out.error, kind="fetch_failed", message=f"failed to list tags of {remote}"
                )
            )
        return Ok(parse_ls_remote_tags(out.value))

    def tag_sets(self) -> Result[tuple[frozenset[str], frozenset[str]], ServiceError]:
        """Return ``(fork, upstream)`` tag sets, fetching upstream tags.

        The fork set is read from the push target, not from the checkout: the
        fetch brings every upstream tag into the local namespace, so local tags
        say nothing about what the fork still lacks.
        """
        upstream = self._config.upstream

        added = self._repo.ensure_remote(upstream.remote, upstream.url)
        if isinstance(added, Err):
            return Err(
                _from_git(added.error, kind="git_failed", message="failed to configure upstream")
            )
        if added.value:
            self._console.print(f"remote {upstream.remote}: {upstream.url}", Style.DIM)

        fork = self._remote_tags(self._config.origin.remote)
        if isinstance(fork, Err):
            return fork

        fetched = self._repo.fetch_tags(upstream.remote)
        if isinstance(fetched, Err):
            return Err(
                _from_git(
                    fetched.error,
                    kind="fetch_failed",
                    message=f"failed to fetch tags from {upstream.remote}",
                )
            )

        remote = self._remote_tags(upstream.remote)
        if isinstance(remote, Err):
            return remote

        return Ok((fork.value, remote.value))

    def sync(self, *, dry_run: bool = False) -> Result[SyncReport, ServiceError]:
        if not self._repo.exists():
            return Err(
                ServiceError(
                    kind="not_a_repo",
                    message=f"not a git repository: {self._repo.path}",
                    hint="Run from a checkout with full history (fetch-depth: 0).",
                )
            )

        if not dry_run:
            ident = self._repo.set_config("user.name", self._config.git.user_name)
            if isinstance(ident, Err):
                return Err(
                    _from_git(ident.error, kind="git_failed", message="failed to set git identity")
                )

        sets = self.tag_sets()
        if isinstance(sets, Err):
            return sets
        fork, upstream = sets.value

        missing = sort_versions(compute_missing(fork, upstream))
        if not missing:
            self._console.print("No new tags")
            return Ok(SyncReport(synced_tags=(), dry_run=dry_run))

        self._console.print(f"Found: {len(missing)} tags")
        if dry_run:
            for tag in missing:
                self._console.print(f"would push {tag}", Style.DIM)
            return Ok(SyncReport(synced_tags=tuple(missing), dry_run=True))

        pushed, failed = self._push_all(missing)
        if failed:
            details = [f"{tag}: {msg}" for tag, msg in failed]
            if pushed:
                details.append(f"pushed: {' '.join(pushed)}")
            return Err(
                ServiceError(
                    kind="push_failed",
                    message=f"{len(failed)} of {len(missing)} tags failed to push",
                    hint="Rerun the sync; tags already pushed are not retried.",
                    details=tuple(details),
                )
            )

        self._console.success(f"Synced: {' '.join(pushed)}")
        return Ok(SyncReport(synced_tags=tuple(missing)))

    def _push_all(self, tags: list[str]) -> tuple[list[str], list[tuple[str, str]]]:
        """Push tags one ref at a time; a failed push does not stop the rest."""
        origin = self._config.origin.remote
        pushed: list[str] = []
        failed: list[tuple[str, str]] = []
        for tag in tags:
            result = self._repo.push_tag(origin, tag)
            match result:
                case Ok(_):
                    pushed.append(tag)
                    self._console.print(f"pushed {tag}", Style.DIM)
                case Err(e):
                    failed.append((tag, e.message))
                    self._console.warning(f"push {tag} failed")
        return pushed, failed
