"""Release commands - create the release and build/upload the target archives."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from tagsync.cli.commands._helpers import error_code, exit_with_error
from tagsync.cli.context import CLIContext, build_context
from tagsync.core.errors import ErrorCode
from tagsync.core.result import Err
from tagsync.git.repository import Repository
from tagsync.services.gh import token_env
from tagsync.services.publish.model import MatrixReport
from tagsync.services.publish.service import ReleasePublisher
from tagsync.services.publish.trigger import TriggerSource, trigger_from_env

release_app = typer.Typer(add_completion=False, no_args_is_help=True)

_STATUS_STYLE = {"success": "green", "failed": "red bold", "skipped": "dim"}


def _publisher(ctx: CLIContext, out_dir: Path | None) -> ReleasePublisher:
    return ReleasePublisher(
        repo=Repository(ctx.root),
        config=ctx.config,
        console=ctx.console,
        out_dir=out_dir or ctx.root / "dist",
        repo_slug=ctx.repo_slug,
        gh_env=token_env(ctx.config.tokens.release),
    )


def _source(ctx: CLIContext, tag: str | None) -> TriggerSource:
    source = trigger_from_env(ctx.environ, input_tag=tag)
    if isinstance(source, Err):
        exit_with_error(source.error, ctx.console)
    return source.value


def _ready(ctx: CLIContext, publisher: ReleasePublisher, *, dry_run: bool) -> None:
    if dry_run:
        return
    ok = publisher.ensure_ready()
    if isinstance(ok, Err):
        exit_with_error(ok.error, ctx.console)


def print_matrix_report(report: MatrixReport) -> None:
    table = Table(title=f"release {report.tag}", title_justify="left")
    table.add_column("target")
    table.add_column("status")
    table.add_column("assets / reason")
    for r in report.results:
        detail = ", ".join(r.assets) if r.status == "success" else r.reason or ""
        if r.status == "failed" and r.error is not None:
            detail = r.error.message
        table.add_row(
            r.entry.target,
            f"[{_STATUS_STYLE[r.status]}]{r.status}[/]",
            detail,
        )
    Console(highlight=False).print(table)


def matrix_exit_code(report: MatrixReport) -> ErrorCode:
    for r in report.failed:
        if r.error is not None:
            return error_code(r.error.kind)
    return ErrorCode.BUILD_ERROR if report.failed else ErrorCode.OK


def publish_tag(
    ctx: CLIContext,
    source: TriggerSource,
    *,
    out_dir: Path | None = None,
    all_hosts: bool = False,
    checksum: bool = False,
    checkout: bool = True,
    dry_run: bool = False,
) -> None:
    """Create the release and run the matrix; exit non-zero if anything failed."""
    publisher = _publisher(ctx, out_dir)
    _ready(ctx, publisher, dry_run=dry_run)

    result = publisher.publish(
        source,
        all_hosts=all_hosts,
        checksum=checksum,
        checkout=checkout,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        exit_with_error(result.error, ctx.console)

    _, report = result.value
    print_matrix_report(report)
    code = matrix_exit_code(report)
    if code != ErrorCode.OK:
        ctx.console.error(f"{len(report.failed)} of {len(report.results)} targets failed")
        raise typer.Exit(code=int(code))


@release_app.command("create")
def create(
    tag: str | None = typer.Option(None, "--tag", help="Release tag (default: pushed tag ref)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Check only, create nothing"),
) -> None:
    """Create the release for a tag. Fails if it already exists."""
    ctx = build_context()
    source = _source(ctx, tag)
    publisher = _publisher(ctx, None)
    _ready(ctx, publisher, dry_run=dry_run)

    created = publisher.create(source, dry_run=dry_run)
    if isinstance(created, Err):
        exit_with_error(created.error, ctx.console)


@release_app.command("build")
def build(
    tag: str | None = typer.Option(None, "--tag", help="Release tag (default: pushed tag ref)"),
    target: str | None = typer.Option(None, "--target", help="Build a single matrix target"),
    all_hosts: bool = typer.Option(
        False, "--all-hosts", help="Also build targets pinned to other host OSes"
    ),
    clobber: bool = typer.Option(False, "--clobber", help="Replace archives already attached"),
    checksum: bool = typer.Option(False, "--checksum", help="Also upload a .sha256 per archive"),
    checkout: bool = typer.Option(
        True, "--checkout/--no-checkout", help="Check out the release ref before building"
    ),
    out_dir: Path | None = typer.Option(None, "--out-dir", help="Archive directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without building"),
) -> None:
    """Build, package and upload the archives of an existing release."""
    ctx = build_context()
    source = _source(ctx, tag)
    publisher = _publisher(ctx, out_dir)
    _ready(ctx, publisher, dry_run=dry_run)

    result = publisher.build(
        source,
        target=target,
        all_hosts=all_hosts,
        clobber=clobber,
        checksum=checksum,
        checkout=checkout,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        exit_with_error(result.error, ctx.console)

    report = result.value
    print_matrix_report(report)
    code = matrix_exit_code(report)
    if code != ErrorCode.OK:
        ctx.console.error(f"{len(report.failed)} of {len(report.results)} targets failed")
        raise typer.Exit(code=int(code))


@release_app.command("publish")
def publish(
    tag: str | None = typer.Option(None, "--tag", help="Release tag (default: pushed tag ref)"),
    all_hosts: bool = typer.Option(
        False, "--all-hosts", help="Also build targets pinned to other host OSes"
    ),
    checksum: bool = typer.Option(False, "--checksum", help="Also upload a .sha256 per archive"),
    checkout: bool = typer.Option(
        True, "--checkout/--no-checkout", help="Check out the release ref before building"
    ),
    out_dir: Path | None = typer.Option(None, "--out-dir", help="Archive directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
) -> None:
    """Create the release, then build and upload this host's archives."""
    ctx = build_context()
    publish_tag(
        ctx,
        _source(ctx, tag),
        out_dir=out_dir,
        all_hosts=all_hosts,
        checksum=checksum,
        checkout=checkout,
        dry_run=dry_run,
    )
