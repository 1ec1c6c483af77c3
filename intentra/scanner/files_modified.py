"""Files-modified statistics from edit events."""
from __future__ import annotations

import os
from typing import Iterable

from intentra.models import Event, FileModification
from intentra.normalizers.types import UnifiedEventType

# Rough lines-per-output-token ratio for edits; hooks never report line counts.
TOKENS_PER_LINE = 10


def _normalize_path(path: str) -> str:
    return os.path.normpath(path) if path else ""


def aggregate_files_modified(events: Iterable[Event]) -> list[FileModification]:
    """Aggregate after_file_edit events by normalized path, in first-edit order.

    A file counts as new when no before_file_edit for it was seen before its
    first after_file_edit.
    """
    pre_edited: set[str] = set()
    stats: dict[str, FileModification] = {}

    for event in events:
        path = _normalize_path(event.file_path)
        if not path:
            continue
        if event.normalized_type == UnifiedEventType.BEFORE_FILE_EDIT:
            pre_edited.add(path)
            continue
        if event.normalized_type != UnifiedEventType.AFTER_FILE_EDIT:
            continue

        entry = stats.get(path)
        if entry is None:
            entry = FileModification(file_path=path, is_new_file=path not in pre_edited)
            stats[path] = entry
        entry.edit_count += 1
        entry.lines_added += event.output_tokens // TOKENS_PER_LINE

    return list(stats.values())
