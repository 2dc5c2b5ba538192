"""State store.

Owns the live :class:`~pcreg.models.Document` and is the only component that
writes it to the substrate. Callers edit the document in place (through
:meth:`StateStore.mutate`) and decide when to persist; the store's contract is
about persistence, not about the shape of edits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from pcreg._constants import STATE_KEY
from pcreg.codec import decode, encode_document
from pcreg.coerce import isoformat, utcnow
from pcreg.exceptions import CorruptPayloadError, StoreNotBootedError
from pcreg.migrations import normalize
from pcreg.models import Document, default_document
from pcreg.storage import KeyValueStorage

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateStore:
    """Holds the live document and persists it under a single key.

    Lifecycle: ``boot()`` once, then any number of ``mutate``/``save``
    cycles, optionally ``reset()``. After ``boot()`` returns the store always
    holds a valid current-schema document.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = STATE_KEY,
        clock: Callable[[], datetime] = utcnow,
        on_save: Callable[[Document], None] | None = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock
        self._on_save = on_save
        self._document: Document | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self._key

    @property
    def booted(self) -> bool:
        return self._document is not None

    @property
    def document(self) -> Document:
        if self._document is None:
            raise StoreNotBootedError("StateStore.boot() has not been called")
        return self._document

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def boot(self) -> Document:
        """Load the document from storage, creating or recovering it if needed."""
        try:
            stored = self._storage.get(self._key)
            raw = None if stored is None else decode(stored)
        except CorruptPayloadError:
            _logger.warning("Stored document under %s is corrupt; recovering with defaults", self._key, exc_info=True)
            self._document = default_document(self._clock())
            self.save("recover")
            return self._document

        if stored is None:
            _logger.debug("No stored document under %s; creating default", self._key)
            self._document = default_document(self._clock())
            self.save("init")
            return self._document

        self._document = normalize(raw, now=self._clock())
        _logger.debug(
            "Booted document: %d trains, %d incidents, %d logs",
            len(self._document.trains),
            len(self._document.incidents),
            len(self._document.logs),
        )
        return self._document

    def mutate(self, fn: Callable[[Document], T]) -> T:
        """Apply *fn* to the live document in place and return its result.

        Nothing is persisted; pair with :meth:`save` or an autosave request.
        """
        return fn(self.document)

    def save(self, provenance: str = "local") -> None:
        """Write the live document now, tagged with *provenance*.

        Save metadata is stamped before serialization so the stored bytes
        describe their own write. If the write fails the previous metadata
        is put back and the error propagates.
        """
        document = self.document
        meta = document.meta
        previous = (meta.updated_at, meta.last_saved_at, meta.last_saved_by)

        stamp = isoformat(self._clock())
        meta.updated_at = stamp
        meta.last_saved_at = stamp
        meta.last_saved_by = provenance
        try:
            self._storage.set(self._key, encode_document(document))
        except Exception:
            meta.updated_at, meta.last_saved_at, meta.last_saved_by = previous
            raise

        _logger.debug("Saved document (%s) at %s", provenance, stamp)
        if self._on_save is not None:
            try:
                self._on_save(document)
            except Exception:
                _logger.debug("on_save callback failed", exc_info=True)

    def replace(self, document: Document, provenance: str) -> Document:
        """Swap in *document* as the live document and persist it."""
        self._document = document
        self.save(provenance)
        return document

    def reset(self) -> Document:
        """Discard the stored document and start over from defaults."""
        self._storage.remove(self._key)
        self._document = default_document(self._clock())
        self.save("reset")
        return self._document
