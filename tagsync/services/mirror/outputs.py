"""Step outputs in the ``$GITHUB_OUTPUT`` file format.

Single-line values are written as ``name=value``; multi-line values use the
heredoc form ``name<<DELIM`` ... ``DELIM``.
"""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from tagsync.core.result import Err, Ok, Result
from tagsync.services.errors import ServiceError
from tagsync.services.mirror.model import SyncReport

_DEFAULT_DELIMITER = "EOF"


def _delimiter_for(value: str) -> str:
    if _DEFAULT_DELIMITER not in value.splitlines():
        return _DEFAULT_DELIMITER
    return f"ghadelimiter_{uuid4().hex}"


def _heredoc(name: str, value: str) -> str:
    delim = _delimiter_for(value)
    return f"{name}<<{delim}\n{value}\n{delim}\n"


def report_outputs(report: SyncReport) -> dict[str, str]:
    """Output values as the release trigger consumes them."""
    if not report.has_new_tags:
        return {"has_new_tags": "false"}
    return {
        "synced_tags": "\n".join(report.synced_tags),
        "has_new_tags": "true",
        "latest_tag": report.latest_tag or "",
    }


def format_outputs(report: SyncReport) -> str:
    out: list[str] = []
    for name, value in report_outputs(report).items():
        if name == "has_new_tags":
            out.append(f"{name}={value}\n")
        else:
            out.append(_heredoc(name, value))
    return "".join(out)


def write_outputs(path: Path, report: SyncReport) -> Result[None, ServiceError]:
    """Append the report outputs to ``path`` (the runner's output file)."""
    try:
        with path.open("a", encoding="utf-8") as f:
            f.write(format_outputs(report))
    except OSError as e:
        return Err(
            ServiceError(
                kind="output_failed",
                message=f"failed to write step outputs: {path}",
                hint=str(e),
            )
        )
    return Ok(None)
