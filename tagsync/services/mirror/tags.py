"""Tag set parsing and diffing.

The tag namespace is treated as an append-only set: a run computes the missing
set as a pure difference and only the push step touches the remote.
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "DEREF_SUFFIX",
    "TAG_REF_PREFIX",
    "compute_missing",
    "parse_ls_remote_tags",
]

TAG_REF_PREFIX = "refs/tags/"

# ls-remote lists annotated tags twice: the tag object and "<ref>^{}" for the
# commit it points at.
DEREF_SUFFIX = "^{}"


def parse_ls_remote_tags(output: str) -> frozenset[str]:
    """Tag names from ``git ls-remote --tags`` output, dereference entries dropped."""
    names: set[str] = set()
    for line in output.splitlines():
        fields = line.split()
        if len(fields) != 2:
            continue
        ref = fields[1]
        if ref.endswith(DEREF_SUFFIX) or not ref.startswith(TAG_REF_PREFIX):
            continue
        name = ref[len(TAG_REF_PREFIX) :]
        if name:
            names.add(name)
    return frozenset(names)


def compute_missing(local: Iterable[str], upstream: Iterable[str]) -> frozenset[str]:
    """Tags present upstream but absent from the fork."""
    return frozenset(upstream) - frozenset(local)
