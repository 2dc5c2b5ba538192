"""Migration engine.

:func:`normalize` turns whatever the codec produced (``None``, a scalar, an
old-schema mapping, a current document) into a valid current-schema
:class:`~pcreg.models.Document`. It never raises.

Upgrade steps live in :data:`MIGRATIONS`, keyed by the version they upgrade
*from*. A step may add, rename or retype fields; it must never drop user
data. After the steps, a normalization pass runs unconditionally so even
current-version payloads get missing fields defaulted and bad types coerced.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from pcreg._constants import (
    DEFAULT_SAVED_BY,
    OLDEST_SCHEMA_VERSION,
    RP_OFFSET_MAX_MINUTES,
    RP_OFFSET_MIN_MINUTES,
    SCHEMA_VERSION,
    clamp,
)
from pcreg.coerce import enabled_flag, int_or, isoformat, new_id, safe_int, str_or, utcnow
from pcreg.models import Document, default_document

_logger = logging.getLogger(__name__)

MigrationStep = Callable[[dict[str, Any], str], None]

# Collection key -> id prefix used when an entry needs a fresh id.
_COLLECTIONS: dict[str, str] = {
    "trains": "TRN",
    "incidents": "INC",
    "logs": "LOG",
}


def _v1_to_v2(raw: dict[str, Any], stamp: str) -> None:
    """Version 2 introduced save provenance, the RP clock offset and autosave."""
    if not isinstance(raw.get("meta"), dict):
        raw["meta"] = {
            "createdAt": stamp,
            "updatedAt": stamp,
            "lastSavedAt": None,
            "lastSavedBy": DEFAULT_SAVED_BY,
        }
    if not isinstance(raw.get("settings"), dict):
        raw["settings"] = {}
    settings = raw["settings"]
    if settings.get("rpOffsetMinutes") is None:
        settings["rpOffsetMinutes"] = 0
    if settings.get("autosave") is None:
        settings["autosave"] = True


MIGRATIONS: dict[int, MigrationStep] = {
    1: _v1_to_v2,
}


def read_version(raw: Mapping[str, Any]) -> int:
    """Return the advisory schema version of *raw* (oldest known when absent)."""
    version = safe_int(raw.get("schemaVersion"))
    if version is None or version < OLDEST_SCHEMA_VERSION:
        return OLDEST_SCHEMA_VERSION
    return version


def _upgrade(raw: dict[str, Any], stamp: str) -> None:
    version = read_version(raw)
    if version > SCHEMA_VERSION:
        _logger.warning(
            "Document schemaVersion %d is newer than supported %d; loading as current",
            version,
            SCHEMA_VERSION,
        )
        version = SCHEMA_VERSION
    while version < SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is not None:
            _logger.debug("Migrating document v%d -> v%d", version, version + 1)
            step(raw, stamp)
        version += 1
    raw["schemaVersion"] = SCHEMA_VERSION


def _normalize_meta(raw: dict[str, Any], stamp: str) -> None:
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = {}
        raw["meta"] = meta
    if not meta.get("createdAt"):
        meta["createdAt"] = stamp
    meta["updatedAt"] = stamp
    meta["lastSavedAt"] = meta.get("lastSavedAt") or None
    meta["lastSavedBy"] = str_or(meta.get("lastSavedBy"), DEFAULT_SAVED_BY)


def _normalize_settings(raw: dict[str, Any]) -> None:
    settings = raw.get("settings")
    if not isinstance(settings, dict):
        settings = {}
        raw["settings"] = settings
    settings["rpOffsetMinutes"] = clamp(
        int_or(settings.get("rpOffsetMinutes"), 0), RP_OFFSET_MIN_MINUTES, RP_OFFSET_MAX_MINUTES
    )
    settings["autosave"] = enabled_flag(settings.get("autosave", True))
    # networkStatus, zoneName and operatorName are defaulted by the model.


def _normalize_collection(raw: dict[str, Any], key: str, prefix: str) -> None:
    entries = raw.get(key)
    if not isinstance(entries, list):
        if entries is not None:
            _logger.warning("Replacing non-list %r collection with an empty one", key)
        raw[key] = []
        return

    kept: list[dict[str, Any]] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            _logger.warning("Dropping %s[%d]: not an object", key, index)
            continue
        entry_id = entry.get("id")
        if entry_id is None or str(entry_id).strip() == "" or str(entry_id) in seen:
            if entry_id is not None and str(entry_id) in seen:
                _logger.warning("Re-issuing duplicate id %r in %s", entry_id, key)
            entry_id = new_id(prefix)
            entry["id"] = entry_id
        seen.add(str(entry_id))
        kept.append(entry)
    raw[key] = kept


def normalize(raw: Any, *, now: datetime | None = None) -> Document:
    """Return a valid current-schema document built from *raw*.

    ``raw`` is never mutated. ``meta.updatedAt`` is stamped with *now*;
    ``meta.lastSavedAt`` is left as stored.
    """
    moment = now or utcnow()
    if not isinstance(raw, Mapping):
        _logger.debug("Normalizing non-mapping payload (%s) to a default document", type(raw).__name__)
        return default_document(moment)

    stamp = isoformat(moment)
    working: dict[str, Any] = copy.deepcopy(dict(raw))
    _upgrade(working, stamp)
    _normalize_meta(working, stamp)
    _normalize_settings(working)
    for key, prefix in _COLLECTIONS.items():
        _normalize_collection(working, key, prefix)

    try:
        return Document.model_validate(working)
    except ValidationError:
        _logger.warning("Document failed validation after normalization; using defaults", exc_info=True)
        return default_document(moment)
