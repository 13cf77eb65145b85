"""Line statistics for a single unified-diff patch."""

from __future__ import annotations

from rubber.models.review import DiffStats

_HEADER_PREFIXES = ("+++", "---")


def compute(patch: str) -> DiffStats:
    """Count added and removed lines, ignoring the ``+++``/``---`` file headers."""

    added = 0
    removed = 0
    for line in patch.splitlines():
        if line.startswith(_HEADER_PREFIXES):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return DiffStats(added=added, removed=removed)
