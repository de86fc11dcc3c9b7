from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from tagsync.core.config import CONFIG_FILENAME, Config, load_config_or_default
from tagsync.core.errors import ErrorCode
from tagsync.core.result import Err
from tagsync.output.console import ConsoleProtocol, RichConsole

# Set by the --repo / --config global options.
REPO_ENV = "TAGSYNC_REPO"
CONFIG_ENV = "TAGSYNC_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol
    environ: Mapping[str, str]

    @property
    def repo_slug(self) -> str | None:
        return self.config.repo_slug(self.environ)


def build_context() -> CLIContext:
    environ = dict(os.environ)
    root = Path(environ.get(REPO_ENV) or Path.cwd())
    config_path = Path(environ.get(CONFIG_ENV) or root / CONFIG_FILENAME)

    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        root=root,
        config=config_result.value,
        console=RichConsole(),
        environ=environ,
    )
