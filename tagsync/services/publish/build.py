from __future__ import annotations

import shutil
from pathlib import Path

from tagsync.core.result import Err, Ok, Result
from tagsync.output.console import ConsoleProtocol, Style
from tagsync.platform.detection import Host, detect_host, detect_machine
from tagsync.platform.process import run as run_process
from tagsync.services.errors import ServiceError
from tagsync.services.publish.matrix import MatrixEntry
from tagsync.services.timeouts import CARGO_BUILD_TIMEOUT_SECONDS


def needs_cross(entry: MatrixEntry, *, host: Host, machine: str) -> bool:
    """True when a Linux target's CPU differs from this Linux host's."""
    if host != Host.LINUX or entry.host != Host.LINUX:
        return False
    return not entry.target.startswith(f"{machine}-")


def build_command(entry: MatrixEntry, bins: tuple[str, ...], *, builder: str) -> list[str]:
    cmd = [builder, "build", "--release", "--locked", "--target", entry.target]
    for name in bins:
        cmd.extend(["--bin", name])
    return cmd


def binary_paths(source_dir: Path, entry: MatrixEntry, bins: tuple[str, ...]) -> list[Path]:
    release_dir = source_dir / "target" / entry.target / "release"
    return [release_dir / f"{name}{entry.exe_suffix}" for name in bins]


def build_binaries(
    *,
    source_dir: Path,
    entry: MatrixEntry,
    bins: tuple[str, ...],
    console: ConsoleProtocol,
) -> Result[list[Path], ServiceError]:
    """Build ``bins`` for ``entry.target`` and return the produced executables."""
    builder = "cargo"
    if needs_cross(entry, host=detect_host(), machine=detect_machine()):
        if shutil.which("cross") is None:
            return Err(
                ServiceError(
                    kind="build_failed",
                    message=f"cross-compiling {entry.target} needs `cross`",
                    hint="cargo install cross --locked",
                )
            )
        builder = "cross"
    elif shutil.which("cargo") is None:
        return Err(
            ServiceError(
                kind="build_failed",
                message="cargo: missing",
                hint="Install Rust: https://rustup.rs/",
            )
        )

    cmd = build_command(entry, bins, builder=builder)
    console.print(" ".join(cmd), Style.DIM)
    result = run_process(cmd, cwd=source_dir, timeout=CARGO_BUILD_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ServiceError(
                kind="build_failed",
                message=f"{builder} build failed for {entry.target}",
                hint=result.error.detail,
            )
        )
    return Ok(binary_paths(source_dir, entry, bins))
