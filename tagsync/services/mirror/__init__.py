"""Tag Mirror: copy upstream tags missing from the fork."""

from tagsync.services.mirror.model import SyncReport
from tagsync.services.mirror.service import TagMirror
from tagsync.services.mirror.tags import compute_missing, parse_ls_remote_tags
from tagsync.services.mirror.versions import latest_version, sort_versions, version_key

__all__ = [
    "SyncReport",
    "TagMirror",
    "compute_missing",
    "latest_version",
    "parse_ls_remote_tags",
    "sort_versions",
    "version_key",
]
