"""Version-aware tag ordering.

Mirrors ``sort -V``: a tag is split into alternating text and number runs,
numbers compare as integers and text compares character by character with
letters ahead of punctuation. So ``0.10.0`` sorts after ``0.9.0`` and
``1.2.3`` sorts before ``1.2.3-rc.1``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

__all__ = ["latest_version", "sort_versions", "version_key"]

_RUN_RE = re.compile(r"(\D*)(\d*)")

type VersionKey = tuple[tuple[tuple[int, ...], int], ...]


def _char_order(c: str) -> int:
    if c.isalpha():
        return ord(c)
    return ord(c) + 0x110000


def version_key(tag: str) -> VersionKey:
    parts: list[tuple[tuple[int, ...], int]] = []
    for text, digits in _RUN_RE.findall(tag):
        if not text and not digits:
            continue
        parts.append((tuple(_char_order(c) for c in text), int(digits) if digits else -1))
    return tuple(parts)


def sort_versions(tags: Iterable[str]) -> list[str]:
    # Raw name breaks ties between equal keys ("1.01" vs "1.1").
    return sorted(tags, key=lambda t: (version_key(t), t))


def latest_version(tags: Iterable[str]) -> str | None:
    ordered = sort_versions(tags)
    return ordered[-1] if ordered else None
