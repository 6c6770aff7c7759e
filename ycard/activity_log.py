"""Bounded activity log shown in the editor's log panel.

Holds the last LOG_CAPACITY entries, oldest first. Appending to a full log
drops the oldest entry in the same step. Every entry is also forwarded to
the ``ycard.activity_log`` logger.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)

LOG_CAPACITY = 50

LOG_CATEGORIES = ("success", "error", "warning", "info")

CATEGORY_ICONS = {
    "success": "✓",
    "error": "✗",
    "warning": "⚠",
    "info": "ℹ",
}

_LOGGING_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    category: str
    message: str
    timestamp: str


class ActivityLog:
    def __init__(self, capacity: int = LOG_CAPACITY, clock=None):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._clock = clock or datetime.now

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def append(self, category: str, message: str) -> LogEntry:
        """Record one operation outcome and return the new entry."""
        if category not in LOG_CATEGORIES:
            raise ValueError(
                f"Invalid log category '{category}'. "
                f"Must be one of: {list(LOG_CATEGORIES)}"
            )
        entry = LogEntry(
            category=category,
            message=message,
            timestamp=self._clock().strftime("%H:%M:%S"),
        )
        self._entries.append(entry)
        logger.log(_LOGGING_LEVELS[category], "[%s] %s", category, message)
        return entry

    def entries(self) -> tuple[LogEntry, ...]:
        """Current contents, oldest first. Later appends do not alter the result."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self.entries())


def format_entry(entry: LogEntry) -> str:
    """One log-panel line: icon, time, message."""
    return f"{CATEGORY_ICONS[entry.category]} {entry.timestamp} {entry.message}"
