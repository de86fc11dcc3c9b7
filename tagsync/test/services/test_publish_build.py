from __future__ import annotations

from pathlib import Path

import pytest

from tagsync.core.result import Err, Ok, Result
from tagsync.output.console import MockConsole
from tagsync.platform.detection import Host
from tagsync.platform.process import ProcessError
from tagsync.services.publish import build as build_mod
from tagsync.services.publish.build import binary_paths, build_command, needs_cross
from tagsync.services.publish.matrix import MatrixEntry, find_entry


def _entry(target: str) -> MatrixEntry:
    entry = find_entry(target)
    assert entry is not None
    return entry


class TestNeedsCross:
    def test_same_arch_linux(self) -> None:
        entry = _entry("x86_64-unknown-linux-gnu")
        assert not needs_cross(entry, host=Host.LINUX, machine="x86_64")

    def test_arm_linux_on_x86_host(self) -> None:
        entry = _entry("aarch64-unknown-linux-gnu")
        assert needs_cross(entry, host=Host.LINUX, machine="x86_64")

    def test_macos_never_uses_cross(self) -> None:
        entry = _entry("aarch64-apple-darwin")
        assert not needs_cross(entry, host=Host.MACOS, machine="x86_64")


def test_build_command() -> None:
    cmd = build_command(_entry("aarch64-apple-darwin"), ("uv", "uvx"), builder="cargo")
    assert cmd == [
        "cargo",
        "build",
        "--release",
        "--locked",
        "--target",
        "aarch64-apple-darwin",
        "--bin",
        "uv",
        "--bin",
        "uvx",
    ]


def test_binary_paths_add_exe_on_windows(tmp_path: Path) -> None:
    paths = binary_paths(tmp_path, _entry("x86_64-pc-windows-msvc"), ("uv", "uvx"))
    release = tmp_path / "target" / "x86_64-pc-windows-msvc" / "release"
    assert paths == [release / "uv.exe", release / "uvx.exe"]


class FakeCargo:
    def __init__(self, result: Result[str, ProcessError]) -> None:
        self.result = result
        self.calls: list[list[str]] = []

    def __call__(
        self, cmd: list[str], *, cwd: Path, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        self.calls.append(cmd)
        return self.result


def _linux_x86(monkeypatch: pytest.MonkeyPatch, *, tools: set[str]) -> None:
    monkeypatch.setattr(build_mod, "detect_host", lambda: Host.LINUX)
    monkeypatch.setattr(build_mod, "detect_machine", lambda: "x86_64")
    monkeypatch.setattr(
        build_mod.shutil, "which", lambda name: f"/usr/bin/{name}" if name in tools else None
    )


def test_build_uses_cargo_for_native_target(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _linux_x86(monkeypatch, tools={"cargo"})
    fake = FakeCargo(Ok(""))
    monkeypatch.setattr(build_mod, "run_process", fake)

    result = build_mod.build_binaries(
        source_dir=tmp_path,
        entry=_entry("x86_64-unknown-linux-gnu"),
        bins=("uv",),
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    assert fake.calls[0][0] == "cargo"
    assert result.value == [tmp_path / "target" / "x86_64-unknown-linux-gnu" / "release" / "uv"]


def test_build_uses_cross_for_foreign_linux_arch(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _linux_x86(monkeypatch, tools={"cargo", "cross"})
    fake = FakeCargo(Ok(""))
    monkeypatch.setattr(build_mod, "run_process", fake)

    result = build_mod.build_binaries(
        source_dir=tmp_path,
        entry=_entry("aarch64-unknown-linux-gnu"),
        bins=("uv",),
        console=MockConsole(),
    )

    assert isinstance(result, Ok)
    assert fake.calls[0][0] == "cross"


def test_missing_cross(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _linux_x86(monkeypatch, tools={"cargo"})

    result = build_mod.build_binaries(
        source_dir=tmp_path,
        entry=_entry("aarch64-unknown-linux-gnu"),
        bins=("uv",),
        console=MockConsole(),
    )

    assert isinstance(result, Err)
    assert result.error.kind == "build_failed"
    assert result.error.hint == "cargo install cross --locked"


def test_cargo_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _linux_x86(monkeypatch, tools={"cargo"})
    error = ProcessError(("cargo", "build"), 101, "", "error: could not compile `uv`\n")
    monkeypatch.setattr(build_mod, "run_process", FakeCargo(Err(error)))

    result = build_mod.build_binaries(
        source_dir=tmp_path,
        entry=_entry("x86_64-unknown-linux-gnu"),
        bins=("uv",),
        console=MockConsole(),
    )

    assert isinstance(result, Err)
    assert result.error.kind == "build_failed"
    assert result.error.hint == "error: could not compile `uv`"
