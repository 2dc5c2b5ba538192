"""Snapshot manager.

Keeps a bounded, newest-first list of named document copies under its own
substrate key. The list is read from storage on every call, so snapshots
never share objects with the live document or with each other.

Edits (create, delete) work on the raw stored entries: an entry this
version cannot validate is hidden from listing and restore but is written
back untouched.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pcreg._constants import SNAPSHOT_KEY, SNAPSHOT_LIMIT
from pcreg.codec import decode_snapshot_entries, encode_snapshot_entries, parse_snapshots
from pcreg.coerce import isoformat, new_id, utcnow
from pcreg.exceptions import CorruptPayloadError, SnapshotNotFoundError
from pcreg.migrations import normalize
from pcreg.models import Document, Snapshot
from pcreg.storage import KeyValueStorage
from pcreg.store import StateStore

_logger = logging.getLogger(__name__)


def _entry_id(entry: Any) -> Any:
    return entry.get("id") if isinstance(entry, dict) else None


class SnapshotManager:
    def __init__(
        self,
        store: StateStore,
        storage: KeyValueStorage,
        *,
        key: str = SNAPSHOT_KEY,
        limit: int = SNAPSHOT_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if key == store.key:
            raise ValueError("snapshots must use a different key than the document")
        self._store = store
        self._storage = storage
        self._key = key
        self._limit = limit
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    def _load_entries(self) -> list[Any]:
        try:
            return decode_snapshot_entries(self._storage.get(self._key))
        except CorruptPayloadError:
            _logger.warning("Snapshot list under %s is corrupt; treating as empty", self._key, exc_info=True)
            return []

    def _write(self, entries: list[Any]) -> None:
        self._storage.set(self._key, encode_snapshot_entries(entries))

    def list_snapshots(self) -> list[Snapshot]:
        """Return all readable snapshots, newest first."""
        return parse_snapshots(self._load_entries())

    def get(self, snapshot_id: str) -> Snapshot | None:
        return next((s for s in self.list_snapshots() if s.id == snapshot_id), None)

    def create(self, name: str | None = None) -> Snapshot:
        """Copy the live document into a new snapshot and persist the list.

        The oldest snapshots are evicted once the list exceeds the limit.
        """
        snapshot = Snapshot(
            id=new_id("SNAP"),
            name=name,
            created_at=isoformat(self._clock()),
            state=self._store.document.clone().to_dict(),
        )
        entries = self._load_entries()
        entries.insert(0, snapshot.to_dict())
        if len(entries) > self._limit:
            evicted = entries[self._limit :]
            entries = entries[: self._limit]
            _logger.debug("Evicted %d snapshot(s): %s", len(evicted), [_entry_id(e) for e in evicted])
        self._write(entries)
        _logger.debug("Created snapshot %s (%r)", snapshot.id, snapshot.name)
        return snapshot

    def restore(self, snapshot_id: str) -> Document:
        """Make a copy of the snapshot the live document and persist it.

        Snapshots taken under an older schema are upgraded on the way in.
        The snapshot list itself is left untouched.

        Raises
        ------
        SnapshotNotFoundError
            If no snapshot has *snapshot_id*; the live document is unchanged.
        """
        snapshot = self.get(snapshot_id)
        if snapshot is None:
            raise SnapshotNotFoundError(snapshot_id)
        document = normalize(copy.deepcopy(snapshot.state), now=self._clock())
        _logger.debug("Restoring snapshot %s (%r)", snapshot.id, snapshot.name)
        return self._store.replace(document, "snapshot:restore")

    def delete(self, snapshot_id: str) -> bool:
        """Remove a snapshot. Unknown ids are ignored; returns whether one was removed."""
        entries = self._load_entries()
        remaining = [e for e in entries if _entry_id(e) != snapshot_id]
        if len(remaining) == len(entries):
            _logger.debug("No snapshot %s to delete", snapshot_id)
            return False
        self._write(remaining)
        return True
