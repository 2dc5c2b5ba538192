"""Custom exception hierarchy for pcreg."""

from __future__ import annotations


class PcregError(Exception):
    """Base exception for all pcreg errors."""


class ConfigError(PcregError):
    """Invalid or missing configuration."""


class StorageError(PcregError):
    """The durable key-value substrate could not be read or written."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class InvalidImportError(PcregError):
    """An import blob could not be parsed as a document.

    The live document and the snapshot list are left untouched when this
    is raised.
    """


class SnapshotNotFoundError(PcregError):
    """No snapshot with the requested id exists."""

    def __init__(self, snapshot_id: str) -> None:
        self.snapshot_id = snapshot_id
        super().__init__(f"snapshot not found: {snapshot_id}")


class StoreNotBootedError(PcregError):
    """The state store was used before :meth:`StateStore.boot` ran."""


class CorruptPayloadError(PcregError):
    """Stored or supplied bytes are not valid serialized data."""
