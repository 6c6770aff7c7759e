"""Exception types shared across the yCard modules.

User-triggered actions never let these escape: the session converts them to
result values and activity-log entries. Read-side integrity errors
(StorageReadError, CorruptRecordError) do propagate to the caller.
"""


class YCardError(Exception):
    """Base class for all yCard errors."""


class ParseError(YCardError):
    """Editor text is not well-formed YAML.

    ``message`` is the parser diagnostic, unmodified, because it is shown
    to the user as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageWriteError(YCardError):
    """The key-value backend refused or failed a write."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RecursiveDocumentError(YCardError):
    """A document contains itself through a YAML alias and has no JSON form."""


class StorageReadError(YCardError):
    """The key-value backend could not be read (unreadable or malformed file)."""


class CorruptRecordError(YCardError):
    """A persisted yCard record does not match the document schema."""


class SnapshotNotCaptured(YCardError):
    """A diff was requested before the baseline text was captured."""
