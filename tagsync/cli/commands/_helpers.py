"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from tagsync.core.errors import ErrorCode
from tagsync.output.console import ConsoleProtocol, Style
from tagsync.services.errors import ErrorKind, ServiceError

_KIND_CODES: dict[ErrorKind, ErrorCode] = {
    "not_a_repo": ErrorCode.ENV_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "gh_missing": ErrorCode.ENV_ERROR,
    "gh_auth_required": ErrorCode.ENV_ERROR,
    "fetch_failed": ErrorCode.NETWORK_ERROR,
    "push_failed": ErrorCode.NETWORK_ERROR,
    "release_failed": ErrorCode.NETWORK_ERROR,
    "upload_failed": ErrorCode.NETWORK_ERROR,
    "dispatch_failed": ErrorCode.NETWORK_ERROR,
    "build_failed": ErrorCode.BUILD_ERROR,
    "archive_failed": ErrorCode.IO_ERROR,
    "output_failed": ErrorCode.IO_ERROR,
}


def error_code(kind: ErrorKind) -> ErrorCode:
    """Exit code for an error kind; input and conflict errors are user errors."""
    return _KIND_CODES.get(kind, ErrorCode.USER_ERROR)


def print_service_error(error: ServiceError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    for line in error.details:
        console.print(f"  {line}", Style.DIM)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def exit_with_error(error: ServiceError, console: ConsoleProtocol) -> NoReturn:
    print_service_error(error, console)
    raise typer.Exit(code=int(error_code(error.kind)))
