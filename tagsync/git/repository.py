"""Git repository abstraction.

Tag-oriented operations on a single checkout: listing remote tags, talking to the
upstream remote, pushing tags one ref at a time, and checking out the release
ref before a build. All operations return Result types.

Usage:
    repo = Repository(Path("."))
    match repo.ls_remote_tags("origin"):
        case Ok(output):
            print(output)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagsync.core.result import Err, Ok, Result
from tagsync.platform.process import ProcessError
from tagsync.platform.process import run as run_process

GIT_TIMEOUT_SECONDS = 30.0
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

_NETWORK_COMMANDS = frozenset({"fetch", "push", "ls-remote", "clone", "pull"})

__all__ = [
    "GIT_NETWORK_TIMEOUT_SECONDS",
    "GIT_TIMEOUT_SECONDS",
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "push")
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
        env: Extra environment for every git call (credentials, prompts)
    """

    def __init__(self, path: Path, *, env: Mapping[str, str] | None = None) -> None:
        self.path = path
        self.env = dict(env) if env else None

    def exists(self) -> bool:
        """Check if this is a valid git repository (.git dir or worktree file)."""
        return (self.path / ".git").exists()

    def has_tag(self, tag: str) -> bool:
        """True if ``refs/tags/<tag>`` resolves in this repository."""
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/tags/{tag}"])
        return isinstance(result, Ok)

    def remotes(self) -> Result[frozenset[str], GitError]:
        result = self._run(["remote"])
        match result:
            case Err(e):
                return Err(_git_error("remote", e, "git remote failed"))
            case Ok(stdout):
                return Ok(frozenset(ln.strip() for ln in stdout.splitlines() if ln.strip()))

    def remote_url(self, name: str) -> Result[str, GitError]:
        result = self._run(["remote", "get-url", name])
        match result:
            case Err(e):
                return Err(_git_error("remote get-url", e, f"no url for remote {name}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def ensure_remote(self, name: str, url: str) -> Result[bool, GitError]:
        """Make remote ``name`` point at ``url``, adding it when missing.

        An existing remote with a different URL is repointed, so tags are never
        fetched from a repository other than the configured one.

        Returns:
            Ok(True) if the remote was added or repointed, Ok(False) if it
            already pointed at ``url``.
        """
        existing = self.remotes()
        if isinstance(existing, Err):
            return existing

        if name not in existing.value:
            result = self._run(["remote", "add", name, url])
            match result:
                case Err(e):
                    return Err(_git_error("remote add", e, f"failed to add remote {name}"))
                case Ok(_):
                    return Ok(True)

        current = self.remote_url(name)
        if isinstance(current, Err):
            return current
        if current.value == url:
            return Ok(False)

        result = self._run(["remote", "set-url", name, url])
        match result:
            case Err(e):
                return Err(_git_error("remote set-url", e, f"failed to update remote {name}"))
            case Ok(_):
                return Ok(True)

    def set_config(self, key: str, value: str) -> Result[None, GitError]:
        result = self._run(["config", key, value])
        match result:
            case Err(e):
                return Err(_git_error("config", e, f"failed to set {key}"))
            case Ok(_):
                return Ok(None)

    def fetch_tags(self, remote: str) -> Result[None, GitError]:
        """Fetch all tags from ``remote`` (quiet)."""
        result = self._run(["fetch", remote, "--tags", "-q"])
        match result:
            case Err(e):
                return Err(_git_error("fetch", e, f"fetch from {remote} failed"))
            case Ok(_):
                return Ok(None)

    def ls_remote_tags(self, remote: str) -> Result[str, GitError]:
        """Raw ``git ls-remote --tags`` output (``<sha>\\trefs/tags/<name>`` lines)."""
        result = self._run(["ls-remote", "--tags", remote])
        match result:
            case Err(e):
                return Err(_git_error("ls-remote", e, f"ls-remote {remote} failed"))
            case Ok(stdout):
                return Ok(stdout)

    def push_tag(self, remote: str, tag: str) -> Result[None, GitError]:
        """Push a single tag ref to ``remote``."""
        ref = f"refs/tags/{tag}"
        result = self._run(["push", remote, f"{ref}:{ref}"])
        match result:
            case Err(e):
                return Err(_git_error("push", e, f"push {tag} failed"))
            case Ok(_):
                return Ok(None)

    def checkout_detached(self, ref: str) -> Result[None, GitError]:
        """Check out ``ref`` with a detached HEAD."""
        result = self._run(["checkout", "--quiet", "--detach", ref])
        match result:
            case Err(e):
                return Err(_git_error("checkout", e, f"checkout {ref} failed"))
            case Ok(_):
                return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else GIT_TIMEOUT_SECONDS
        )
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            env=self.env,
            timeout=timeout,
        )
