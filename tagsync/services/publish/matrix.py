from __future__ import annotations

from dataclasses import dataclass

from tagsync.platform.detection import Host


@dataclass(frozen=True, slots=True)
class MatrixEntry:
    """One release target and the host OS it is built on."""

    target: str
    host: Host

    @property
    def is_windows(self) -> bool:
        return "windows" in self.target

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    @property
    def archive_ext(self) -> str:
        return ".zip" if self.is_windows else ".tar.gz"


RELEASE_MATRIX: tuple[MatrixEntry, ...] = (
    MatrixEntry(target="aarch64-apple-darwin", host=Host.MACOS),
    MatrixEntry(target="x86_64-pc-windows-msvc", host=Host.WINDOWS),
    MatrixEntry(target="x86_64-unknown-linux-gnu", host=Host.LINUX),
    MatrixEntry(target="aarch64-unknown-linux-gnu", host=Host.LINUX),
)


def archive_name(prefix: str, entry: MatrixEntry) -> str:
    """Archive base name, ``<prefix>-<target>``."""
    return f"{prefix}-{entry.target}"


def archive_filename(prefix: str, entry: MatrixEntry) -> str:
    return f"{archive_name(prefix, entry)}{entry.archive_ext}"


def find_entry(target: str) -> MatrixEntry | None:
    for entry in RELEASE_MATRIX:
        if entry.target == target:
            return entry
    return None


def select_entries(
    *,
    host: Host,
    target: str | None = None,
    all_hosts: bool = False,
) -> tuple[tuple[MatrixEntry, ...], tuple[MatrixEntry, ...]]:
    """Split the matrix into ``(selected, skipped)`` for this run.

    ``target`` narrows the run to one entry (one CI job per entry); otherwise
    entries pinned to another host are skipped unless ``all_hosts``.
    """
    selected: list[MatrixEntry] = []
    skipped: list[MatrixEntry] = []
    for entry in RELEASE_MATRIX:
        if target is not None:
            (selected if entry.target == target else skipped).append(entry)
            continue
        if all_hosts or entry.host == host:
            selected.append(entry)
        else:
            skipped.append(entry)
    return tuple(selected), tuple(skipped)
