"""Hand the newest synced tag to the release publisher."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from tagsync.core.config import Config
from tagsync.core.result import Ok, Result
from tagsync.output.console import ConsoleProtocol, Style
from tagsync.services.errors import ServiceError
from tagsync.services.gh import dispatch_workflow, token_env
from tagsync.services.mirror.model import SyncReport


class ReleaseTrigger(str, Enum):
    """How ``tagsync sync`` starts a release for new tags."""

    none = "none"
    local = "local"
    dispatch = "dispatch"


def release_tag_for(report: SyncReport) -> str | None:
    """The tag a release should be published for, or None when nothing synced."""
    if report.dry_run or not report.has_new_tags:
        return None
    return report.latest_tag


def dispatch_release(
    *,
    cwd: Path,
    config: Config,
    tag: str,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[None, ServiceError]:
    """Start the release workflow for ``tag`` on the hosted CI."""
    workflow = config.release.workflow
    console.print(f"gh workflow run {workflow} -f tag={tag}", Style.DIM)
    if dry_run:
        return Ok(None)
    return dispatch_workflow(
        cwd=cwd,
        workflow_file=workflow,
        inputs=(("tag", tag),),
        repo=config.origin.slug,
        env=token_env(config.tokens.push),
    )
