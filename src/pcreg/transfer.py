"""Import/export of the live document as portable JSON."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pcreg._constants import EXPORT_PREFIX
from pcreg.codec import decode, encode_document
from pcreg.coerce import utcnow
from pcreg.exceptions import CorruptPayloadError, InvalidImportError, StorageError
from pcreg.migrations import normalize
from pcreg.models import Document
from pcreg.store import StateStore

_logger = logging.getLogger(__name__)


def export_document(store: StateStore) -> str:
    """Return the live document as indented JSON. Has no side effects."""
    return encode_document(store.document, pretty=True)


def export_filename(now: datetime | None = None) -> str:
    """``pc-regulation-sncf-rp_2026-10-19T08-30-00.json``"""
    moment = now or utcnow()
    return f"{EXPORT_PREFIX}_{moment.strftime('%Y-%m-%dT%H-%M-%S')}.json"


def import_document(store: StateStore, blob: str | bytes) -> Document:
    """Replace the live document with the one encoded in *blob*.

    The parsed value goes through the same migration as a stored document,
    so exports from any older version are accepted.

    A top level that is not an object migrates to a default document, as
    it would on boot.

    Raises
    ------
    InvalidImportError
        If *blob* is not JSON. The live document is left untouched.
    """
    try:
        raw = decode(blob)
    except CorruptPayloadError as exc:
        raise InvalidImportError("import is not valid JSON") from exc

    document = normalize(raw, now=store.now())
    _logger.debug("Importing document with %d trains", len(document.trains))
    return store.replace(document, "import")


def write_export(store: StateStore, directory: str | Path, *, now: datetime | None = None) -> Path:
    """Write an export into *directory* under a timestamped name."""
    target = Path(directory) / export_filename(now or store.now())
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(export_document(store) + "\n", encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"cannot write export {target}: {exc}") from exc
    return target


def read_import(store: StateStore, path: str | Path) -> Document:
    """Import the document stored in the file at *path*."""
    source = Path(path)
    try:
        blob = source.read_bytes()
    except OSError as exc:
        raise StorageError(f"cannot read import {source}: {exc}") from exc
    return import_document(store, blob)
