"""High-level regulation desk."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from pcreg import operations as ops
from pcreg import transfer
from pcreg.autosave import AutosaveScheduler, Scheduler, default_scheduler
from pcreg.coerce import utcnow
from pcreg.config import DeskConfig
from pcreg.models import Document, Incident, LogEntry, NetworkStatus, Snapshot, Train, TrainStatus
from pcreg.snapshots import SnapshotManager
from pcreg.storage import FileStorage, KeyValueStorage, MemoryStorage
from pcreg.store import StateStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def storage_from_config(config: DeskConfig) -> KeyValueStorage:
    if config.storage_dir is None:
        return MemoryStorage()
    return FileStorage(config.storage_dir)


class RegulationDesk:
    """Single-operator desk backed by local storage.

    Usage::

        desk = RegulationDesk(DeskConfig.from_env(), scheduler=AsyncioScheduler())
        desk.boot()
        train = desk.add_train(number="K812", mission="TER", od="METZ → NANCY")
        desk.apply_delay(train.id, 12, cause="Signalisation")

    Every edit is applied to the in-memory document immediately and queued
    for autosave. Without an explicit scheduler, a desk built inside a
    running event loop autosaves on that loop; one built outside a loop
    gets a :class:`~pcreg.autosave.ManualScheduler`, whose autosaves only
    run when ``desk.scheduler.advance(...)`` is called; use :meth:`save_now`
    to write.
    """

    def __init__(
        self,
        config: DeskConfig | None = None,
        *,
        storage: KeyValueStorage | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_save: Callable[[Document], None] | None = None,
    ) -> None:
        self._config = config or DeskConfig()
        self._storage = storage if storage is not None else storage_from_config(self._config)
        self._clock = clock
        self.scheduler: Scheduler = scheduler if scheduler is not None else default_scheduler()
        self.store = StateStore(self._storage, key=self._config.state_key, clock=clock, on_save=on_save)
        self.autosave = AutosaveScheduler(self.store, self.scheduler, delay=self._config.autosave_delay)
        self.snapshots = SnapshotManager(
            self.store,
            self._storage,
            key=self._config.snapshot_key,
            limit=self._config.snapshot_limit,
            clock=clock,
        )

    @property
    def config(self) -> DeskConfig:
        return self._config

    @property
    def document(self) -> Document:
        return self.store.document

    # ------------------------------------------------------------------
    # Lifecycle and persistence
    # ------------------------------------------------------------------

    def boot(self) -> Document:
        return self.store.boot()

    def edit(self, fn: Callable[[Document], T]) -> T:
        """Apply *fn* to the live document and request an autosave."""
        result = self.store.mutate(fn)
        self.autosave.request_save()
        return result

    def save_now(self, provenance: str = "manual") -> None:
        self.autosave.save_now(provenance)

    def reset(self) -> Document:
        """Start over from a default document. Snapshots are kept."""
        self.autosave.cancel()
        _logger.info("Resetting desk document")
        return self.store.reset()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(self, name: str | None = None) -> Snapshot:
        snapshot = self.snapshots.create(name)
        self.autosave.save_now("snapshot:create")
        return snapshot

    def list_snapshots(self) -> list[Snapshot]:
        return self.snapshots.list_snapshots()

    def restore_snapshot(self, snapshot_id: str) -> Document:
        """Raises :class:`~pcreg.exceptions.SnapshotNotFoundError` for unknown ids."""
        self.autosave.cancel()
        return self.snapshots.restore(snapshot_id)

    def delete_snapshot(self, snapshot_id: str) -> bool:
        return self.snapshots.delete(snapshot_id)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_document(self) -> str:
        return transfer.export_document(self.store)

    def export_to(self, directory: str | Path) -> Path:
        return transfer.write_export(self.store, directory)

    def import_document(self, blob: str | bytes) -> Document:
        """Raises :class:`~pcreg.exceptions.InvalidImportError` on unparseable input."""
        document = transfer.import_document(self.store, blob)
        self.autosave.cancel()
        return document

    def import_from(self, path: str | Path) -> Document:
        document = transfer.read_import(self.store, path)
        self.autosave.cancel()
        return document

    # ------------------------------------------------------------------
    # Board operations
    # ------------------------------------------------------------------

    def add_train(self, **fields: Any) -> Train:
        return self.edit(lambda doc: ops.add_train(doc, now=self._clock(), **fields))

    def delete_train(self, train_id: str) -> Train | None:
        return self.edit(lambda doc: ops.delete_train(doc, train_id, now=self._clock()))

    def apply_delay(self, train_id: str, minutes: int, *, cause: str = "") -> Train | None:
        return self.edit(lambda doc: ops.apply_delay(doc, train_id, minutes, cause=cause, now=self._clock()))

    def set_train_status(self, train_id: str, status: TrainStatus | str) -> Train | None:
        return self.edit(lambda doc: ops.set_train_status(doc, train_id, status, now=self._clock()))

    def edit_train_field(self, train_id: str, field: str, value: str) -> Train | None:
        return self.edit(lambda doc: ops.edit_train_field(doc, train_id, field, value, now=self._clock()))

    def add_incident(self, **fields: Any) -> Incident:
        return self.edit(lambda doc: ops.add_incident(doc, now=self._clock(), **fields))

    def cycle_incident_status(self, incident_id: str) -> Incident | None:
        return self.edit(lambda doc: ops.cycle_incident_status(doc, incident_id, now=self._clock()))

    def delete_incident(self, incident_id: str) -> Incident | None:
        return self.edit(lambda doc: ops.delete_incident(doc, incident_id, now=self._clock()))

    def add_log(self, text: str, **fields: Any) -> LogEntry:
        return self.edit(lambda doc: ops.add_log(doc, text, now=self._clock(), **fields))

    def delete_log(self, log_id: str) -> LogEntry | None:
        return self.edit(lambda doc: ops.delete_log(doc, log_id))

    def set_network_status(self, status: NetworkStatus | str) -> NetworkStatus:
        return self.edit(lambda doc: ops.set_network_status(doc, status, now=self._clock()))

    def apply_settings(self, **fields: Any) -> None:
        """Change settings and save at once (provenance ``settings``)."""
        self.store.mutate(lambda doc: ops.apply_settings(doc, now=self._clock(), **fields))
        self.autosave.save_now("settings")

    def rp_now(self) -> datetime:
        return ops.rp_now(self.document, self._clock())

    def summary(self) -> ops.BoardSummary:
        return ops.board_summary(self.document)
