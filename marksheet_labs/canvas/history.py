"""
History Stack
=============

Snapshot-based undo/redo for template documents.

Entries are deep copies; the cursor always points at a valid entry once
anything has been recorded. Recording drops the redo branch and evicts the
oldest entries beyond the limit.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..config import HISTORY_LIMIT
from ..models.document_models import TemplateDocument

logger = logging.getLogger(__name__)


class HistoryStack:
    """Ordered snapshots plus a cursor."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._entries: List[TemplateDocument] = []
        self._cursor = -1
        self._applying = False

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[TemplateDocument]:
        """Entry under the cursor (not a copy; do not mutate)."""
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def is_applying(self) -> bool:
        return self._applying

    @contextmanager
    def applying(self) -> Iterator[None]:
        """Suppress recording while an undo/redo result is being installed."""
        previous = self._applying
        self._applying = True
        try:
            yield
        finally:
            self._applying = previous

    def record(self, snapshot: TemplateDocument) -> bool:
        """
        Append a deep copy after the cursor.

        Returns:
            True if recorded, False while an undo/redo is being applied
        """
        if self._applying:
            return False

        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot.snapshot())
        overflow = len(self._entries) - self.limit
        if overflow > 0:
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1
        logger.debug(f"[HISTORY] Recorded entry {self._cursor + 1}/{len(self._entries)}")
        return True

    def truncate(self) -> None:
        """Drop the redo branch without recording anything."""
        if not self._applying:
            del self._entries[self._cursor + 1:]

    def undo(self) -> Optional[TemplateDocument]:
        """Step back; returns a copy of the new current entry, or None."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor].snapshot()

    def redo(self) -> Optional[TemplateDocument]:
        """Step forward; returns a copy of the new current entry, or None."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor].snapshot()

    def reset(self, snapshot: Optional[TemplateDocument] = None) -> None:
        """Drop every entry, optionally starting over from one snapshot."""
        self._entries = []
        self._cursor = -1
        if snapshot is not None:
            self._entries.append(snapshot.snapshot())
            self._cursor = 0

    def entries(self) -> List[TemplateDocument]:
        return [entry.snapshot() for entry in self._entries]

    def restore(self, entries: List[TemplateDocument], cursor: int) -> None:
        """Install persisted entries; the cursor is clamped into range."""
        self._entries = [entry.snapshot() for entry in entries[-self.limit:]]
        if not self._entries:
            self._cursor = -1
            return
        dropped = len(entries) - len(self._entries)
        self._cursor = min(max(cursor - dropped, 0), len(self._entries) - 1)
