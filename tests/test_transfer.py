from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from conftest import FakeClock
from pcreg.coerce import isoformat
from pcreg.exceptions import InvalidImportError, StorageError
from pcreg.operations import add_incident, add_train, apply_delay
from pcreg.storage import MemoryStorage
from pcreg.store import StateStore
from pcreg.transfer import export_document, export_filename, import_document, read_import, write_export

_SAVE_FIELDS = ("updatedAt", "lastSavedAt", "lastSavedBy")


def _without_save_meta(payload: dict) -> dict:
    payload = json.loads(json.dumps(payload))
    for field in _SAVE_FIELDS:
        payload["meta"].pop(field, None)
    return payload


def _busy(store: StateStore) -> None:
    def edit(doc):
        train = add_train(doc, number="K812", mission="TER", od="METZ → NANCY", line="L4")
        apply_delay(doc, train.id, 12, cause="Signalisation")
        add_incident(
            doc,
            kind="Panne matériel",
            location="Nancy V2",
            severity="Majeur",
            description="Porte bloquée",
            train_id=train.id,
        )

    store.mutate(edit)


def test_export_then_import_round_trips_everything_but_save_meta(store: StateStore, clock: FakeClock) -> None:
    _busy(store)
    exported = export_document(store)

    clock.tick(minutes=3)
    doc = import_document(store, exported)

    assert _without_save_meta(doc.to_dict()) == _without_save_meta(json.loads(exported))
    assert doc.meta.last_saved_by == "import"


def test_export_has_no_side_effects(store: StateStore, storage: MemoryStorage) -> None:
    before = store.document.to_dict()
    writes = storage.writes

    export_document(store)

    assert store.document.to_dict() == before
    assert storage.writes == writes


def test_export_is_indented_utf8_json(store: StateStore) -> None:
    exported = export_document(store)

    assert exported.startswith("{\n  ")
    assert "STRASBOURG → SAVERNE" in exported


@pytest.mark.parametrize("blob", ["not json", "", "{", b"\xff\xfe\x00"])
def test_invalid_import_leaves_state_untouched(store: StateStore, storage: MemoryStorage, blob: str | bytes) -> None:
    before = store.document.to_dict()
    writes = storage.writes

    with pytest.raises(InvalidImportError):
        import_document(store, blob)

    assert store.document.to_dict() == before
    assert storage.writes == writes


@pytest.mark.parametrize("blob", ["[1, 2]", "42", '"text"', "null"])
def test_import_of_non_object_json_yields_default_document(store: StateStore, clock: FakeClock, blob: str) -> None:
    store.mutate(lambda doc: add_train(doc, number="K812", mission="TER", od="METZ → NANCY"))
    clock.tick(minutes=1)

    doc = import_document(store, blob)

    assert doc is store.document
    assert doc.schema_version == 2
    assert [t.number for t in doc.trains] == ["SD92"]
    assert doc.meta.last_saved_by == "import"
    assert doc.meta.created_at == isoformat(clock.now)


def test_import_v1_export_is_migrated(store: StateStore) -> None:
    blob = json.dumps({"schemaVersion": 1, "trains": [], "incidents": [], "logs": []})

    doc = import_document(store, blob)

    assert doc.schema_version == 2
    assert doc.settings.rp_offset_minutes == 0
    assert doc.settings.autosave is True
    assert doc.trains == []


def test_import_accepts_bytes_with_bom(store: StateStore) -> None:
    blob = "\ufeff" + json.dumps({"schemaVersion": 2, "trains": [{"id": "T1", "number": "K812"}]})

    doc = import_document(store, blob.encode("utf-8"))

    assert [t.number for t in doc.trains] == ["K812"]


def test_export_filename() -> None:
    moment = datetime(2026, 10, 19, 8, 30, 5, tzinfo=UTC)

    assert export_filename(moment) == "pc-regulation-sncf-rp_2026-10-19T08-30-05.json"


def test_write_export_and_read_import(store: StateStore, clock: FakeClock, tmp_path: Path) -> None:
    _busy(store)

    path = write_export(store, tmp_path / "exports")

    assert path.parent == tmp_path / "exports"
    assert path.name == export_filename(clock.now)

    store.reset()
    doc = read_import(store, path)
    assert [t.number for t in doc.trains] == ["K812", "SD92"]
    assert doc.incidents[0].location == "Nancy V2"


def test_read_import_missing_file(store: StateStore, tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        read_import(store, tmp_path / "absent.json")
