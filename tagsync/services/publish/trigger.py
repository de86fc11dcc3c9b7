"""Where a release run gets its tag from.

A release starts either with an explicit tag (manual dispatch, or a call from
the sync workflow) or from the ref of a tag push. Both collapse to one
canonical ref right at the start; nothing downstream looks at the event again.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from fnmatch import fnmatchcase

from tagsync.core.result import Err, Ok, Result
from tagsync.services.errors import ServiceError
from tagsync.services.mirror.tags import TAG_REF_PREFIX

__all__ = [
    "AmbientRef",
    "EXPLICIT_EVENTS",
    "ExplicitTag",
    "PUSH_TAG_PATTERN",
    "TriggerSource",
    "is_prerelease",
    "resolve_ref",
    "tag_name",
    "trigger_from_env",
    "trigger_from_event",
]

# Tag push filter of the release workflow.
PUSH_TAG_PATTERN = "*.*.*"

EXPLICIT_EVENTS = frozenset({"workflow_dispatch", "workflow_call"})

_PRERELEASE_RE = re.compile(r"^v?\d+\.\d+\.\d+-?[A-Za-z]")


@dataclass(frozen=True, slots=True)
class ExplicitTag:
    name: str


@dataclass(frozen=True, slots=True)
class AmbientRef:
    ref: str


type TriggerSource = ExplicitTag | AmbientRef


def resolve_ref(source: TriggerSource) -> str:
    """Canonical ref for checkout and release creation."""
    match source:
        case ExplicitTag(name=name):
            return f"{TAG_REF_PREFIX}{name}"
        case AmbientRef(ref=ref):
            return ref


def tag_name(ref: str) -> str:
    """Tag name of a ref (``refs/tags/1.2.3`` -> ``1.2.3``)."""
    if ref.startswith(TAG_REF_PREFIX):
        return ref[len(TAG_REF_PREFIX) :]
    return ref


def is_prerelease(tag: str) -> bool:
    """True for versions with a pre-release suffix (``0.5.0a1``, ``1.2.3-rc.1``)."""
    return _PRERELEASE_RE.match(tag) is not None


def _validate_tag(name: str) -> Result[str, ServiceError]:
    name = name.strip()
    if not name:
        return Err(ServiceError(kind="invalid_input", message="tag is required"))
    if any(c.isspace() for c in name) or name.startswith("-") or ".." in name:
        return Err(ServiceError(kind="invalid_tag", message=f"invalid tag name: {name!r}"))
    return Ok(name)


def trigger_from_event(
    *,
    event_name: str | None,
    input_tag: str | None,
    ref: str | None,
) -> Result[TriggerSource, ServiceError]:
    """Build the trigger source for a release run.

    An explicit tag always wins. Without one, dispatch/call events are invalid
    (their tag input is required) and any other event must carry a tag ref
    matching the push filter.
    """
    if input_tag is not None and input_tag.strip():
        name = _validate_tag(input_tag)
        if isinstance(name, Err):
            return name
        return Ok(ExplicitTag(name=name.value))

    if event_name in EXPLICIT_EVENTS:
        return Err(
            ServiceError(
                kind="invalid_input",
                message=f"{event_name} requires a tag input",
                hint="Pass --tag <name>.",
            )
        )

    if not ref:
        return Err(
            ServiceError(
                kind="invalid_input",
                message="no tag given and no triggering ref",
                hint="Pass --tag <name> or run from a tag push.",
            )
        )

    if not ref.startswith(TAG_REF_PREFIX):
        return Err(
            ServiceError(
                kind="invalid_tag",
                message=f"triggering ref is not a tag: {ref}",
            )
        )

    name = tag_name(ref)
    if not fnmatchcase(name, PUSH_TAG_PATTERN):
        return Err(
            ServiceError(
                kind="invalid_tag",
                message=f"tag does not match {PUSH_TAG_PATTERN}: {name}",
            )
        )
    return Ok(AmbientRef(ref=ref))


def trigger_from_env(
    environ: Mapping[str, str],
    *,
    input_tag: str | None,
) -> Result[TriggerSource, ServiceError]:
    """Trigger source from the CI runner environment plus the ``--tag`` option."""
    return trigger_from_event(
        event_name=environ.get("GITHUB_EVENT_NAME"),
        input_tag=input_tag,
        ref=environ.get("GITHUB_REF"),
    )
