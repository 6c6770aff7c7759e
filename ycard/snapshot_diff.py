"""Baseline snapshot and change detection for the editor text.

The baseline is captured once, when the editor becomes ready, and is never
replaced. Comparison is exact string equality: trailing whitespace and
line-ending differences count as changes.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass

from ycard.errors import SnapshotNotCaptured


@dataclass(frozen=True)
class NoChanges:
    @property
    def has_changes(self) -> bool:
        return False


@dataclass(frozen=True)
class Changes:
    """Both sides of a comparison, as handed to the side-by-side diff view."""

    original: str
    modified: str

    @property
    def has_changes(self) -> bool:
        return True

    def changed_line_count(self) -> int:
        """Removed plus added lines, counting line endings as part of a line."""
        a = self.original.splitlines(keepends=True)
        b = self.modified.splitlines(keepends=True)
        count = 0
        for tag, i1, i2, j1, j2 in difflib.SequenceMatcher(None, a, b).get_opcodes():
            if tag != "equal":
                count += (i2 - i1) + (j2 - j1)
        return count

    def unified_diff(self, fromfile: str = "original", tofile: str = "modified") -> str:
        """Unified diff text for hosts without a side-by-side view."""
        out = []
        for line in difflib.unified_diff(
            self.original.splitlines(keepends=True),
            self.modified.splitlines(keepends=True),
            fromfile=fromfile,
            tofile=tofile,
        ):
            out.append(line if line.endswith("\n") else line + "\n")
        return "".join(out)


class SnapshotTracker:
    def __init__(self):
        self._baseline: str | None = None
        self._captured = False

    @property
    def captured(self) -> bool:
        return self._captured

    @property
    def baseline(self) -> str | None:
        return self._baseline

    def capture(self, text: str) -> bool:
        """Store the baseline. Returns False (and keeps the old one) if already captured."""
        if self._captured:
            return False
        self._baseline = text
        self._captured = True
        return True

    def request_diff(self, current_text: str) -> NoChanges | Changes:
        if not self._captured:
            raise SnapshotNotCaptured("No baseline captured; the editor has not reported ready")
        if current_text == self._baseline:
            return NoChanges()
        return Changes(original=self._baseline, modified=current_text)
