from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from tagsync.services.errors import ServiceError
from tagsync.services.publish.matrix import MatrixEntry

TargetStatus = Literal["success", "failed", "skipped"]


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    tag: str
    ref: str
    url: str | None
    prerelease: bool


@dataclass(frozen=True, slots=True)
class TargetResult:
    """Outcome of one matrix entry.

    ``assets`` lists the file names now attached to the release for this entry.
    """

    entry: MatrixEntry
    status: TargetStatus
    archive: Path | None = None
    assets: tuple[str, ...] = ()
    reason: str | None = None
    error: ServiceError | None = None


@dataclass(frozen=True, slots=True)
class MatrixReport:
    tag: str
    results: tuple[TargetResult, ...]

    @property
    def succeeded(self) -> tuple[TargetResult, ...]:
        return tuple(r for r in self.results if r.status == "success")

    @property
    def failed(self) -> tuple[TargetResult, ...]:
        return tuple(r for r in self.results if r.status == "failed")

    @property
    def skipped(self) -> tuple[TargetResult, ...]:
        return tuple(r for r in self.results if r.status == "skipped")

    @property
    def ok(self) -> bool:
        return not self.failed
