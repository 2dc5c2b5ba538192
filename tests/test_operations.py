from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pcreg import operations as ops
from pcreg.coerce import isoformat
from pcreg.models import Document, IncidentStatus, LogType, NetworkStatus, TrainStatus, default_document


def _dt() -> datetime:
    return datetime(2026, 1, 1, 8, 0, tzinfo=UTC)


@pytest.fixture
def doc() -> Document:
    return default_document(_dt())


def _sd92(doc: Document) -> str:
    return doc.trains[0].id


class TestTrains:
    def test_add_train_prepends_and_journals(self, doc: Document) -> None:
        train = ops.add_train(doc, number=" K812 ", mission="TER", od="METZ → NANCY", now=_dt())

        assert doc.trains[0] is train
        assert train.number == "K812"
        assert train.position == "-"
        assert train.status == TrainStatus.IN_SERVICE
        assert train.updated_at == isoformat(_dt())
        assert doc.logs[0].text == "Mise en circulation: K812 (TER)"
        assert doc.logs[0].train_id == train.id
        assert doc.logs[0].author == "Régulateur"

    @pytest.mark.parametrize("missing", ["number", "mission", "od"])
    def test_add_train_requires_identity_fields(self, doc: Document, missing: str) -> None:
        fields = {"number": "K812", "mission": "TER", "od": "METZ → NANCY", missing: "  "}

        with pytest.raises(ValueError):
            ops.add_train(doc, **fields)
        assert len(doc.trains) == 1

    def test_delay_is_clamped_and_journaled(self, doc: Document) -> None:
        train = ops.apply_delay(doc, _sd92(doc), 5000, cause="Signalisation", now=_dt())

        assert train is not None
        assert train.delay_min == 999
        assert doc.logs[0].type == LogType.DECISION
        assert doc.logs[0].text == "Retard SD92: +999 min • Cause: Signalisation"

    def test_negative_delay_is_clamped(self, doc: Document) -> None:
        train = ops.apply_delay(doc, _sd92(doc), -500)

        assert train is not None
        assert train.delay_min == -120
        assert doc.logs[0].text == "Retard SD92: -120 min"

    def test_bounds_hold_on_direct_assignment(self, doc: Document) -> None:
        train = doc.trains[0]

        train.delay_min = 5000
        train.priority = 9

        assert train.delay_min == 999
        assert train.priority == 3

    def test_unknown_train_id_returns_none(self, doc: Document) -> None:
        assert ops.apply_delay(doc, "TRN_missing", 5) is None
        assert ops.set_train_status(doc, "TRN_missing", TrainStatus.HELD) is None
        assert ops.delete_train(doc, "TRN_missing") is None
        assert len(doc.logs) == 1

    def test_set_status_accepts_stored_value(self, doc: Document) -> None:
        train = ops.set_train_status(doc, _sd92(doc), "Retenu")

        assert train is not None
        assert train.status == TrainStatus.HELD
        assert doc.logs[0].text == "Statut SD92: Retenu"

    def test_edit_train_field(self, doc: Document) -> None:
        logs = len(doc.logs)

        train = ops.edit_train_field(doc, _sd92(doc), "position", " Saverne ")

        assert train is not None
        assert train.position == "Saverne"
        assert len(doc.logs) == logs

    def test_edit_train_field_rejects_other_fields(self, doc: Document) -> None:
        with pytest.raises(ValueError):
            ops.edit_train_field(doc, _sd92(doc), "delay_min", "5")

    def test_delete_train_keeps_dangling_references(self, doc: Document) -> None:
        train_id = _sd92(doc)
        incident = ops.add_incident(
            doc, kind="Panne", location="Saverne", severity="Mineur", description="x", train_id=train_id
        )

        ops.delete_train(doc, train_id)

        assert doc.find_train(train_id) is None
        assert doc.find_incident(incident.id).train_id == train_id
        assert doc.logs[0].text == "Train supprimé du suivi: SD92"


class TestIncidents:
    def test_add_incident_journals_with_references(self, doc: Document) -> None:
        incident = ops.add_incident(
            doc,
            kind="Panne matériel",
            location="Nancy V2",
            severity="Majeur",
            description="Porte bloquée",
            train_id=_sd92(doc),
        )

        assert doc.incidents[0] is incident
        assert incident.status == IncidentStatus.OPEN
        assert incident.assigned_to == "Régulateur"
        entry = doc.logs[0]
        assert entry.type == LogType.INCIDENT
        assert entry.incident_id == incident.id
        assert entry.train_id == _sd92(doc)
        assert entry.text == "Incident déclaré: Panne matériel • Nancy V2 • Gravité: Majeur"

    def test_blank_train_reference_is_stored_as_none(self, doc: Document) -> None:
        incident = ops.add_incident(doc, kind="Panne", location="Metz", severity="Mineur", description="x", train_id="")

        assert incident.train_id is None

    def test_add_incident_requires_location_and_description(self, doc: Document) -> None:
        with pytest.raises(ValueError):
            ops.add_incident(doc, kind="Panne", location="", severity="Mineur", description="x")

    def test_status_cycles(self, doc: Document) -> None:
        incident = ops.add_incident(doc, kind="Panne", location="Metz", severity="Mineur", description="x")

        seen = [ops.cycle_incident_status(doc, incident.id).status for _ in range(3)]

        assert seen == [IncidentStatus.IN_PROGRESS, IncidentStatus.CLOSED, IncidentStatus.OPEN]
        assert doc.logs[0].text == f"Incident {incident.id}: statut → Ouvert"

    def test_delete_incident(self, doc: Document) -> None:
        incident = ops.add_incident(doc, kind="Panne", location="Metz", severity="Mineur", description="x")

        assert ops.delete_incident(doc, incident.id) is incident
        assert doc.incidents == []
        assert ops.delete_incident(doc, incident.id) is None


class TestJournal:
    def test_add_log_defaults(self, doc: Document) -> None:
        entry = ops.add_log(doc, "Relève", now=_dt())

        assert doc.logs[0] is entry
        assert entry.type == LogType.INFORMATION
        assert entry.author == "Régulateur"
        assert entry.at == isoformat(_dt())
        assert entry.train_id is None

    def test_add_log_with_type_and_author(self, doc: Document) -> None:
        entry = ops.add_log(doc, "Arrêt supplémentaire", type="Ordre", author="CCR")

        assert entry.type == LogType.ORDER
        assert entry.author == "CCR"

    def test_delete_log(self, doc: Document) -> None:
        entry = ops.add_log(doc, "x")

        assert ops.delete_log(doc, entry.id) is entry
        assert doc.find_log(entry.id) is None
        assert ops.delete_log(doc, entry.id) is None


class TestSettings:
    def test_network_status(self, doc: Document) -> None:
        ops.set_network_status(doc, NetworkStatus.DISRUPTED)

        assert doc.settings.network_status == "Perturbé"
        assert doc.logs[0].text == "État réseau: Perturbé"

    def test_apply_settings_partial_update(self, doc: Document) -> None:
        ops.apply_settings(doc, rp_offset_minutes=-15, network_status="Incident majeur")

        assert doc.settings.rp_offset_minutes == -15
        assert doc.settings.network_status == NetworkStatus.MAJOR_INCIDENT
        assert doc.settings.zone_name == "CCR / PC Régulation"
        assert doc.logs[0].text == "Paramètres modifiés: état réseau=Incident majeur, offset RP=-15 min."

    def test_blank_names_fall_back_to_defaults(self, doc: Document) -> None:
        ops.apply_settings(doc, zone_name="CCR Est", operator_name="Martin")
        ops.apply_settings(doc, zone_name="  ", operator_name="")

        assert doc.settings.zone_name == "CCR / PC Régulation"
        assert doc.settings.operator_name == "Régulateur"

    def test_disable_autosave(self, doc: Document) -> None:
        ops.apply_settings(doc, autosave=False)

        assert doc.settings.autosave is False


class TestDerivedViews:
    def test_rp_now_applies_offset(self, doc: Document) -> None:
        doc.settings.rp_offset_minutes = 7

        assert ops.rp_now(doc, _dt()) == datetime(2026, 1, 1, 8, 7, tzinfo=UTC)

    def test_rp_now_with_out_of_range_offset(self, doc: Document) -> None:
        doc.settings.rp_offset_minutes = 5_000_000_000

        assert doc.settings.rp_offset_minutes == 525_600
        assert ops.rp_now(doc, _dt()) == datetime(2027, 1, 1, 8, 0, tzinfo=UTC)

    def test_board_summary(self, doc: Document) -> None:
        k812 = ops.add_train(doc, number="K812", mission="TER", od="METZ → NANCY")
        ops.apply_delay(doc, k812.id, 9)
        ops.set_train_status(doc, k812.id, TrainStatus.HELD)
        closed = ops.add_incident(doc, kind="Panne", location="Metz", severity="Mineur", description="x")
        ops.add_incident(doc, kind="Panne", location="Toul", severity="Mineur", description="y")
        ops.cycle_incident_status(doc, closed.id)
        ops.cycle_incident_status(doc, closed.id)

        summary = ops.board_summary(doc)

        assert summary == ops.BoardSummary(trains=2, open_incidents=1, average_delay=4, held=1)

    def test_board_summary_of_empty_board(self) -> None:
        assert ops.board_summary(Document()) == ops.BoardSummary(trains=0, open_incidents=0, average_delay=0, held=0)
