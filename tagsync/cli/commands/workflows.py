"""Workflows command - write the CI workflow files that call tagsync."""

from __future__ import annotations

from pathlib import Path

import typer

from tagsync.cli.commands._helpers import exit_with_error
from tagsync.cli.context import build_context
from tagsync.core.result import Err
from tagsync.services.workflows import render_workflows, write_workflows

workflows_app = typer.Typer(add_completion=False, no_args_is_help=True)


@workflows_app.command("render")
def render(
    out: Path | None = typer.Option(
        None, "--out", help="Target directory (default: .github/workflows)"
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing workflow files"),
    stdout: bool = typer.Option(False, "--stdout", help="Print instead of writing files"),
) -> None:
    """Render the sync and release workflows."""
    ctx = build_context()

    if stdout:
        rendered = render_workflows(ctx.config)
        if isinstance(rendered, Err):
            exit_with_error(rendered.error, ctx.console)
        for name, content in rendered.value.items():
            typer.echo(f"# {name}")
            typer.echo(content)
        return

    out_dir = out or ctx.root / ".github" / "workflows"
    written = write_workflows(out_dir, ctx.config, force=force)
    if isinstance(written, Err):
        exit_with_error(written.error, ctx.console)
    for path in written.value:
        ctx.console.success(str(path))
