from __future__ import annotations

from dataclasses import dataclass

from tagsync.services.mirror.versions import latest_version


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Outcome of a successful mirror run.

    ``synced_tags`` is the whole missing set in version order; on a dry run it
    holds the tags that would have been pushed.
    """

    synced_tags: tuple[str, ...]
    dry_run: bool = False

    @property
    def has_new_tags(self) -> bool:
        return bool(self.synced_tags)

    @property
    def latest_tag(self) -> str | None:
        return latest_version(self.synced_tags)
