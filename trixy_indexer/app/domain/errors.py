from __future__ import annotations


class IndexerError(Exception):
    """Base class for all errors raised by the Trixy indexer."""


class ConfigurationError(IndexerError):
    """Startup-only failure: missing/invalid network registry, no contracts, etc."""


class ChainClientError(IndexerError):
    """The Flow access node could not be reached or returned an unusable response."""


class BlockResolutionError(ChainClientError):
    """The block containing an event could not be fetched."""

    def __init__(self, height: int, cause: Exception) -> None:
        super().__init__(f"Failed to resolve block at height {height}: {cause}")
        self.height = height


class EventDecodeError(IndexerError, ValueError):
    """A raw event payload cannot be turned into a typed record."""


class FieldMissingError(EventDecodeError):
    def __init__(self, names: tuple[str, ...]) -> None:
        joined = " / ".join(repr(n) for n in names)
        super().__init__(f"Required field missing: {joined}")
        self.names = names


class FieldTypeError(EventDecodeError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected Cadence {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class StoreUnavailableError(IndexerError):
    """Systemic store failure (connectivity, invalidated connection)."""


class SyncStateError(IndexerError):
    """The sync-state row could not be read or written."""


class RecordPersistError(IndexerError):
    """Isolated, non-duplicate failure while inserting a single record."""
