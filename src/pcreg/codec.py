"""Document codec.

Converts the document and the snapshot list to and from the string form
kept in the key-value substrate. Decoding returns plain JSON values; turning
them into a current-schema :class:`~pcreg.models.Document` is the job of
:mod:`pcreg.migrations`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from pcreg._constants import SCHEMA_VERSION
from pcreg.exceptions import CorruptPayloadError
from pcreg.models import Document, Snapshot

_logger = logging.getLogger(__name__)

_COMPACT = (",", ":")


def encode_document(document: Document, *, pretty: bool = False) -> str:
    """Serialize *document*; ``pretty`` produces the indented export form."""
    payload = document.to_dict()
    if pretty:
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return json.dumps(payload, ensure_ascii=False, separators=_COMPACT)


def decode(text: str | bytes) -> Any:
    """Parse serialized text into plain JSON values.

    Raises
    ------
    CorruptPayloadError
        If *text* is not valid JSON (or not valid UTF-8).
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("utf-8-sig")
        return json.loads(text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise CorruptPayloadError(f"invalid JSON payload: {exc}") from exc


def encode_snapshot_entries(entries: list[Any]) -> str:
    """Serialize raw snapshot entries in the versioned envelope."""
    payload = {
        "schemaVersion": SCHEMA_VERSION,
        "snapshots": entries,
    }
    return json.dumps(payload, ensure_ascii=False, separators=_COMPACT)


def decode_snapshot_entries(text: str | None) -> list[Any]:
    """Parse the stored snapshot list into its raw, unvalidated entries.

    Accepts both the versioned envelope and the bare list written by the
    first version. Rewriting these entries keeps snapshots this version
    cannot read.

    Raises
    ------
    CorruptPayloadError
        If *text* is not JSON, or is JSON of an unexpected shape.
    """
    if not text:
        return []
    raw = decode(text)
    if isinstance(raw, dict):
        raw = raw.get("snapshots")
    if not isinstance(raw, list):
        raise CorruptPayloadError("snapshot payload is not a list")
    return raw


def parse_snapshots(entries: list[Any]) -> list[Snapshot]:
    """Validate raw entries, skipping those that are not valid snapshots."""
    snapshots: list[Snapshot] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            _logger.warning("Skipping snapshot #%d: not an object", index)
            continue
        try:
            snapshots.append(Snapshot.model_validate(entry))
        except ValidationError:
            _logger.warning("Skipping snapshot #%d: invalid entry", index, exc_info=True)
    return snapshots
