"""Editing operations on a desk document.

These are the actions an operator performs on the board: putting trains in
service, recording delays, declaring incidents, writing journal entries and
changing settings. Each works in place on a :class:`~pcreg.models.Document`
and journals what it did; none of them persists anything. Use them through
:class:`pcreg.desk.RegulationDesk` to get autosave.

Operations addressing a record by id return ``None`` when the id is unknown
instead of raising, matching the weak-reference lookups on the document.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from pcreg._constants import (
    DEFAULT_AUTHOR,
    DEFAULT_OPERATOR_NAME,
    DEFAULT_PRIORITY,
    DEFAULT_ZONE_NAME,
)
from pcreg.coerce import isoformat, new_id, optional_ref, str_or, utcnow
from pcreg.models import (
    Document,
    Incident,
    IncidentStatus,
    LogEntry,
    LogType,
    NetworkStatus,
    Train,
    TrainStatus,
)

#: Train fields an operator may edit free-hand from the board.
EDITABLE_TRAIN_FIELDS: frozenset[str] = frozenset({"position", "decision"})


def _stamp(now: datetime | None) -> str:
    return isoformat(now or utcnow())


def add_log(
    doc: Document,
    text: str,
    *,
    type: LogType | str = LogType.INFORMATION,
    train_id: str | None = None,
    incident_id: str | None = None,
    author: str | None = None,
    now: datetime | None = None,
) -> LogEntry:
    """Prepend a journal entry. The author defaults to the operator name."""
    entry = LogEntry(
        id=new_id("LOG"),
        at=_stamp(now),
        type=LogType(type),
        text=text,
        train_id=optional_ref(train_id),
        incident_id=optional_ref(incident_id),
        author=author or doc.settings.operator_name or DEFAULT_AUTHOR,
    )
    doc.logs.insert(0, entry)
    return entry


def delete_log(doc: Document, log_id: str) -> LogEntry | None:
    entry = doc.find_log(log_id)
    if entry is None:
        return None
    doc.logs = [e for e in doc.logs if e.id != log_id]
    return entry


# ------------------------------------------------------------------
# Trains
# ------------------------------------------------------------------


def add_train(
    doc: Document,
    *,
    number: str,
    mission: str,
    od: str,
    line: str = "",
    position: str = "",
    priority: int = DEFAULT_PRIORITY,
    regulator: str | None = None,
    now: datetime | None = None,
) -> Train:
    """Put a train on the board.

    Raises
    ------
    ValueError
        If ``number``, ``mission`` or ``od`` is blank.
    """
    number, mission, od = number.strip(), mission.strip(), od.strip()
    if not number or not mission or not od:
        raise ValueError("number, mission and od are required")

    stamp = _stamp(now)
    train = Train(
        id=new_id("TRN"),
        number=number,
        mission=mission,
        line=line.strip(),
        od=od,
        position=position.strip() or "-",
        delay_min=0,
        priority=priority,
        status=TrainStatus.IN_SERVICE,
        decision="",
        regulator=str_or(regulator, DEFAULT_AUTHOR).strip(),
        updated_at=stamp,
    )
    doc.trains.insert(0, train)
    add_log(doc, f"Mise en circulation: {number} ({mission})", train_id=train.id, now=now)
    return train


def delete_train(doc: Document, train_id: str, *, now: datetime | None = None) -> Train | None:
    """Remove a train. Journal entries and incidents keep their dangling ``train_id``."""
    train = doc.find_train(train_id)
    if train is None:
        return None
    doc.trains = [t for t in doc.trains if t.id != train_id]
    add_log(doc, f"Train supprimé du suivi: {train.number}", train_id=train_id, now=now)
    return train


def apply_delay(
    doc: Document,
    train_id: str,
    minutes: int,
    *,
    cause: str = "",
    now: datetime | None = None,
) -> Train | None:
    """Record a delay; values outside [-120, 999] are clamped."""
    train = doc.find_train(train_id)
    if train is None:
        return None
    train.delay_min = minutes
    train.updated_at = _stamp(now)

    sign = "+" if train.delay_min >= 0 else ""
    text = f"Retard {train.number}: {sign}{train.delay_min} min"
    cause = cause.strip()
    if cause:
        text += f" • Cause: {cause}"
    add_log(doc, text, type=LogType.DECISION, train_id=train.id, now=now)
    return train


def set_train_status(
    doc: Document,
    train_id: str,
    status: TrainStatus | str,
    *,
    now: datetime | None = None,
) -> Train | None:
    train = doc.find_train(train_id)
    if train is None:
        return None
    train.status = TrainStatus(status)
    train.updated_at = _stamp(now)
    add_log(doc, f"Statut {train.number}: {train.status}", type=LogType.DECISION, train_id=train.id, now=now)
    return train


def edit_train_field(
    doc: Document,
    train_id: str,
    field: str,
    value: str,
    *,
    now: datetime | None = None,
) -> Train | None:
    """Free-hand edit of ``position`` or ``decision``. Not journaled."""
    if field not in EDITABLE_TRAIN_FIELDS:
        raise ValueError(f"field {field!r} is not editable; expected one of {sorted(EDITABLE_TRAIN_FIELDS)}")
    train = doc.find_train(train_id)
    if train is None:
        return None
    setattr(train, field, value.strip())
    train.updated_at = _stamp(now)
    return train


# ------------------------------------------------------------------
# Incidents
# ------------------------------------------------------------------


def add_incident(
    doc: Document,
    *,
    kind: str,
    location: str,
    severity: str,
    description: str,
    train_id: str | None = None,
    now: datetime | None = None,
) -> Incident:
    """Declare an incident, optionally tied to a train, and journal it.

    Raises
    ------
    ValueError
        If ``location`` or ``description`` is blank.
    """
    location, description = location.strip(), description.strip()
    if not location or not description:
        raise ValueError("location and description are required")

    incident = Incident(
        id=new_id("INC"),
        created_at=_stamp(now),
        status=IncidentStatus.OPEN,
        kind=kind,
        location=location,
        severity=severity,
        description=description,
        train_id=optional_ref(train_id),
        assigned_to=doc.settings.operator_name or DEFAULT_AUTHOR,
    )
    doc.incidents.insert(0, incident)
    add_log(
        doc,
        f"Incident déclaré: {kind} • {location} • Gravité: {severity}",
        type=LogType.INCIDENT,
        train_id=incident.train_id,
        incident_id=incident.id,
        now=now,
    )
    return incident


def cycle_incident_status(doc: Document, incident_id: str, *, now: datetime | None = None) -> Incident | None:
    """Advance an incident: open → in progress → closed → open."""
    incident = doc.find_incident(incident_id)
    if incident is None:
        return None
    incident.status = incident.status.next()
    add_log(
        doc,
        f"Incident {incident.id}: statut → {incident.status}",
        type=LogType.DECISION,
        train_id=incident.train_id,
        incident_id=incident.id,
        now=now,
    )
    return incident


def delete_incident(doc: Document, incident_id: str, *, now: datetime | None = None) -> Incident | None:
    incident = doc.find_incident(incident_id)
    if incident is None:
        return None
    doc.incidents = [i for i in doc.incidents if i.id != incident_id]
    add_log(
        doc,
        f"Incident supprimé: {incident.kind} • {incident.location}",
        train_id=incident.train_id,
        now=now,
    )
    return incident


# ------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------


def set_network_status(doc: Document, status: NetworkStatus | str, *, now: datetime | None = None) -> NetworkStatus:
    doc.settings.network_status = NetworkStatus(status)
    add_log(doc, f"État réseau: {doc.settings.network_status}", now=now)
    return doc.settings.network_status


def apply_settings(
    doc: Document,
    *,
    zone_name: str | None = None,
    operator_name: str | None = None,
    network_status: NetworkStatus | str | None = None,
    rp_offset_minutes: int | None = None,
    autosave: bool | None = None,
    now: datetime | None = None,
) -> None:
    """Update settings; ``None`` leaves a field as is, blank names reset to defaults."""
    settings = doc.settings
    if zone_name is not None:
        settings.zone_name = str_or(zone_name.strip(), DEFAULT_ZONE_NAME)
    if operator_name is not None:
        settings.operator_name = str_or(operator_name.strip(), DEFAULT_OPERATOR_NAME)
    if network_status is not None:
        settings.network_status = NetworkStatus(network_status)
    if rp_offset_minutes is not None:
        settings.rp_offset_minutes = rp_offset_minutes
    if autosave is not None:
        settings.autosave = autosave
    add_log(
        doc,
        f"Paramètres modifiés: état réseau={settings.network_status}, offset RP={settings.rp_offset_minutes} min.",
        now=now,
    )


# ------------------------------------------------------------------
# Derived views
# ------------------------------------------------------------------


def rp_now(doc: Document, now: datetime | None = None) -> datetime:
    """Operator reference time: real time shifted by ``rp_offset_minutes``."""
    return (now or utcnow()) + timedelta(minutes=doc.settings.rp_offset_minutes)


@dataclass(frozen=True)
class BoardSummary:
    """Headline figures shown above the board."""

    trains: int
    open_incidents: int
    average_delay: int
    held: int


def board_summary(doc: Document) -> BoardSummary:
    count = len(doc.trains)
    average = round(sum(t.delay_min for t in doc.trains) / count) if count else 0
    return BoardSummary(
        trains=count,
        open_incidents=sum(1 for i in doc.incidents if i.status != IncidentStatus.CLOSED),
        average_delay=average,
        held=sum(1 for t in doc.trains if t.status == TrainStatus.HELD),
    )
