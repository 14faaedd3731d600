"""Error types for the labeling engine."""

from __future__ import annotations


class LabelerError(Exception):
    """Base class for labeling errors."""


class InvalidRangeError(LabelerError, ValueError):
    def __init__(self, start: float, end: float) -> None:
        super().__init__(f"Region end ({end}) must be greater than start ({start}).")
        self.start = start
        self.end = end


class NotFoundError(LabelerError, KeyError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        return str(self.args[0])


class PersistenceError(LabelerError, OSError):
    """Session file could not be read or written."""


class MalformedSessionError(LabelerError, ValueError):
    """Session file does not match the expected vCon layout."""
