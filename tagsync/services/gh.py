from __future__ import annotations

import json
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from tagsync.core.result import Err, Ok, Result
from tagsync.core.structured import as_obj_list, as_str_dict, get_bool, get_str
from tagsync.platform.process import ProcessError
from tagsync.platform.process import run as run_process
from tagsync.services.errors import ErrorKind, ServiceError
from tagsync.services.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)

_NOT_FOUND_MARKERS = ("release not found", "http 404")


@dataclass(frozen=True, slots=True)
class GhRelease:
    tag: str
    url: str | None
    draft: bool
    prerelease: bool
    asset_names: frozenset[str]


def token_env(var_name: str) -> dict[str, str]:
    """Expose the token held in ``var_name`` to gh as GH_TOKEN (empty if unset)."""
    value = os.environ.get(var_name, "").strip()
    if not value:
        return {}
    return {"GH_TOKEN": value}


def _repo_args(repo: str | None) -> list[str]:
    return ["--repo", repo] if repo else []


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def _is_not_found(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _NOT_FOUND_MARKERS)


def run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    kind: ErrorKind,
    message: str,
    env: Mapping[str, str] | None = None,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError | ServiceError]:
    """Run an idempotent gh query, retrying transient failures.

    Non-transient failures come back as the raw ProcessError so callers can
    tell "not found" apart from other errors; exhausted retries become a
    ServiceError.
    """
    attempts = max(1, retry_attempts)
    last: ProcessError | None = None
    for attempt in range(attempts):
        result = run_process(cmd, cwd=cwd, env=env, timeout=timeout)
        if isinstance(result, Ok):
            return result

        last = result.error
        if not _is_transient_gh_error(last):
            return Err(last)
        if attempt < attempts - 1:
            sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))

    detail = last.detail if last is not None else None
    return Err(ServiceError(kind=kind, message=message, hint=detail or hint))


def ensure_gh_available() -> Result[None, ServiceError]:
    if shutil.which("gh") is None:
        return Err(
            ServiceError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(
    *, cwd: Path, env: Mapping[str, str] | None = None
) -> Result[None, ServiceError]:
    if env and env.get("GH_TOKEN"):
        # gh uses GH_TOKEN directly; `gh auth status` would inspect stored logins.
        return Ok(None)
    result = run_process(["gh", "auth", "status"], cwd=cwd, env=env, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ServiceError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Set the release token variable or run: gh auth login",
            )
        )
    return Ok(None)


def _parse_release(payload: str, *, tag: str) -> Result[GhRelease, ServiceError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            ServiceError(kind="release_failed", message=f"invalid JSON from gh release view: {e}")
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ServiceError(kind="release_failed", message=f"unexpected release payload: {tag}")
        )

    names: set[str] = set()
    for item in as_obj_list(data.get("assets")) or []:
        asset = as_str_dict(item)
        if asset is None:
            continue
        name = get_str(asset, "name")
        if name is not None:
            names.add(name)

    return Ok(
        GhRelease(
            tag=get_str(data, "tagName") or tag,
            url=get_str(data, "url"),
            draft=bool(get_bool(data, "isDraft")),
            prerelease=bool(get_bool(data, "isPrerelease")),
            asset_names=frozenset(names),
        )
    )


def view_release(
    *,
    cwd: Path,
    tag: str,
    repo: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[GhRelease | None, ServiceError]:
    """Look up the release for ``tag``; Ok(None) when there is none."""
    cmd = [
        "gh",
        "release",
        "view",
        tag,
        *_repo_args(repo),
        "--json",
        "tagName,url,isDraft,isPrerelease,assets",
    ]
    result = run_gh_read(
        cwd=cwd,
        cmd=cmd,
        kind="release_failed",
        message=f"failed to query release {tag}",
        env=env,
    )
    if isinstance(result, Err):
        error = result.error
        if isinstance(error, ServiceError):
            return Err(error)
        if _is_not_found(error):
            return Ok(None)
        return Err(
            ServiceError(
                kind="release_failed",
                message=f"failed to query release {tag}",
                hint=error.detail,
            )
        )

    parsed = _parse_release(result.value, tag=tag)
    if isinstance(parsed, Err):
        return parsed
    return Ok(parsed.value)


def create_release(
    *,
    cwd: Path,
    tag: str,
    title: str,
    notes: str,
    prerelease: bool,
    draft: bool,
    repo: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[str, ServiceError]:
    """Create the release for an existing remote tag; returns the release URL.

    Not retried: a second attempt after a timed-out create could duplicate it.
    """
    cmd = [
        "gh",
        "release",
        "create",
        tag,
        *_repo_args(repo),
        "--verify-tag",
        "--title",
        title,
        "--notes",
        notes,
    ]
    if prerelease:
        cmd.append("--prerelease")
    if draft:
        cmd.append("--draft")

    result = run_process(cmd, cwd=cwd, env=env, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        e = result.error
        text = f"{e.stderr}\n{e.stdout}".lower()
        if "already exists" in text:
            return Err(
                ServiceError(
                    kind="release_exists",
                    message=f"release already exists: {tag}",
                    hint="Delete the existing release or skip this tag.",
                )
            )
        return Err(
            ServiceError(
                kind="release_failed",
                message=f"failed to create release {tag}",
                hint=e.detail,
            )
        )
    return Ok(result.value.strip())


def upload_release_assets(
    *,
    cwd: Path,
    tag: str,
    files: list[Path],
    clobber: bool,
    repo: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[None, ServiceError]:
    cmd = ["gh", "release", "upload", tag, *[str(f) for f in files], *_repo_args(repo)]
    if clobber:
        cmd.append("--clobber")

    result = run_process(cmd, cwd=cwd, env=env, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ServiceError(
                kind="upload_failed",
                message=f"failed to upload {', '.join(f.name for f in files)} to {tag}",
                hint=result.error.detail,
            )
        )
    return Ok(None)


def dispatch_workflow(
    *,
    cwd: Path,
    workflow_file: str,
    inputs: tuple[tuple[str, str], ...],
    ref: str | None = None,
    repo: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[None, ServiceError]:
    cmd = ["gh", "workflow", "run", workflow_file, *_repo_args(repo)]
    if ref:
        cmd.extend(["--ref", ref])
    for k, v in inputs:
        cmd.extend(["-f", f"{k}={v}"])

    result = run_process(cmd, cwd=cwd, env=env, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ServiceError(
                kind="dispatch_failed",
                message=f"failed to dispatch workflow {workflow_file}",
                hint=result.error.detail,
            )
        )
    return Ok(None)
