"""Release Publisher: create the release for a tag and attach per-target archives."""

from tagsync.services.publish.matrix import RELEASE_MATRIX, MatrixEntry
from tagsync.services.publish.model import CreatedRelease, MatrixReport, TargetResult
from tagsync.services.publish.service import ReleasePublisher
from tagsync.services.publish.trigger import (
    AmbientRef,
    ExplicitTag,
    TriggerSource,
    resolve_ref,
    trigger_from_env,
    trigger_from_event,
)

__all__ = [
    "AmbientRef",
    "CreatedRelease",
    "ExplicitTag",
    "MatrixEntry",
    "MatrixReport",
    "RELEASE_MATRIX",
    "ReleasePublisher",
    "TargetResult",
    "TriggerSource",
    "resolve_ref",
    "trigger_from_env",
    "trigger_from_event",
]
