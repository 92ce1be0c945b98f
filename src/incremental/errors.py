"""Exceptions raised by the incremental analysis cache."""


class CacheError(Exception):
    """Base exception for snapshot cache errors."""

    pass


class StaleSnapshotError(CacheError):
    """Persisted snapshot has the wrong format version or is corrupt.

    Never surfaced to the user: loaders treat the snapshot as absent.
    """

    pass


class SnapshotPersistError(CacheError):
    """Writing a snapshot to durable storage failed.

    The run continues with in-memory results; the next run recomputes more.
    """

    pass
