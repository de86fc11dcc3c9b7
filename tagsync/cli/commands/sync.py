"""Sync command - mirror upstream tags into the fork."""

from __future__ import annotations

from pathlib import Path

import typer

from tagsync.cli.commands._helpers import exit_with_error
from tagsync.cli.commands.release import publish_tag
from tagsync.cli.context import build_context
from tagsync.core.result import Err
from tagsync.git.repository import Repository
from tagsync.output.console import Style
from tagsync.services.mirror.handoff import ReleaseTrigger, dispatch_release, release_tag_for
from tagsync.services.mirror.outputs import report_outputs, write_outputs
from tagsync.services.mirror.service import TagMirror
from tagsync.services.publish.trigger import ExplicitTag


def sync(
    dry_run: bool = typer.Option(False, "--dry-run", help="Report missing tags, push nothing"),
    github_output: Path | None = typer.Option(
        None,
        "--github-output",
        envvar="GITHUB_OUTPUT",
        help="Append step outputs to this file",
    ),
    trigger_release: ReleaseTrigger = typer.Option(
        ReleaseTrigger.none,
        "--trigger-release",
        help="Start a release for the newest synced tag (none | local | dispatch)",
    ),
    checkout: bool = typer.Option(
        True,
        "--checkout/--no-checkout",
        help="With --trigger-release local, check out the tag before building",
    ),
) -> None:
    """Push upstream tags missing from the fork."""
    ctx = build_context()
    mirror = TagMirror(repo=Repository(ctx.root), config=ctx.config, console=ctx.console)

    result = mirror.sync(dry_run=dry_run)
    if isinstance(result, Err):
        exit_with_error(result.error, ctx.console)
    report = result.value

    for name, value in report_outputs(report).items():
        shown = value.replace("\n", " ")
        ctx.console.print(f"{name}: {shown}", Style.DIM)

    if github_output is not None and not dry_run:
        written = write_outputs(github_output, report)
        if isinstance(written, Err):
            exit_with_error(written.error, ctx.console)

    tag = release_tag_for(report)
    if tag is None or trigger_release == ReleaseTrigger.none:
        return

    ctx.console.header(f"Release {tag}")
    if trigger_release == ReleaseTrigger.dispatch:
        dispatched = dispatch_release(cwd=ctx.root, config=ctx.config, tag=tag, console=ctx.console)
        if isinstance(dispatched, Err):
            exit_with_error(dispatched.error, ctx.console)
        ctx.console.success(f"release workflow dispatched for {tag}")
        return

    if checkout:
        ctx.console.warning(
            f"checking out {tag} detaches HEAD in {ctx.root}; pass --no-checkout to build"
            " the current tree"
        )
    publish_tag(ctx, ExplicitTag(name=tag), checkout=checkout)
