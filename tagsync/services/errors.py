from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ErrorKind = Literal[
    "not_a_repo",
    "git_failed",
    "fetch_failed",
    "push_failed",
    "gh_missing",
    "gh_auth_required",
    "invalid_input",
    "invalid_tag",
    "tag_missing",
    "release_exists",
    "release_failed",
    "build_failed",
    "archive_failed",
    "upload_failed",
    "dispatch_failed",
    "output_failed",
]


@dataclass(frozen=True, slots=True)
class ServiceError:
    """Canonical error payload for the mirror and publish flows.

    ``details`` carries per-item lines (e.g. which tags failed to push) that the
    CLI prints under the message.
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    details: tuple[str, ...] = ()

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
