from __future__ import annotations

import os
from pathlib import Path

import typer

from tagsync import __version__
from tagsync.cli.commands.release import release_app
from tagsync.cli.commands.sync import sync
from tagsync.cli.commands.workflows import workflows_app
from tagsync.cli.context import CONFIG_ENV, REPO_ENV
from tagsync.core.errors import ErrorCode

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(sync)

# Sub-apps
app.add_typer(release_app, name="release", help="Create releases and upload binaries.")
app.add_typer(workflows_app, name="workflows", help="Render the CI workflow files.")


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository checkout to operate on (default: current directory)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: <repo>/tagsync.toml)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if repo is not None:
        root = repo.expanduser().resolve()
        if not (root / ".git").exists():
            typer.echo(f"error: --repo '{root}' is not a git checkout", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        os.environ[REPO_ENV] = str(root)

    if config is not None:
        path = config.expanduser().resolve()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' not found", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV] = str(path)


def main() -> None:
    app()
