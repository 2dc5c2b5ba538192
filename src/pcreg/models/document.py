"""Root document model.

The :class:`Document` is the single mutable object the desk persists: meta
information about saves, operator settings, and the three record
collections. It is always held at :data:`~pcreg._constants.SCHEMA_VERSION`;
older payloads go through :func:`pcreg.migrations.normalize` first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from pcreg._constants import (
    DEFAULT_AUTHOR,
    DEFAULT_OPERATOR_NAME,
    DEFAULT_SAVED_BY,
    DEFAULT_ZONE_NAME,
    RP_OFFSET_MAX_MINUTES,
    RP_OFFSET_MIN_MINUTES,
    SCHEMA_VERSION,
    clamp,
)
from pcreg.coerce import enabled_flag, int_or, isoformat, new_id, str_or, utcnow
from pcreg.models._base import OptionalTimestamp, RegBaseModel, RegEnum, Text, Timestamp, now_iso
from pcreg.models.incident import Incident
from pcreg.models.log import LogEntry, LogType
from pcreg.models.train import Train


class NetworkStatus(RegEnum):
    NORMAL = "Normal"
    DISRUPTED = "Perturbé"
    MAJOR_INCIDENT = "Incident majeur"


class Meta(RegBaseModel):
    """Provenance of the document.

    ``last_saved_at``/``last_saved_by`` describe the most recent persisted
    write, not the most recent edit.
    """

    created_at: Timestamp = Field(default_factory=now_iso)
    updated_at: Timestamp = Field(default_factory=now_iso)
    last_saved_at: OptionalTimestamp = None
    last_saved_by: Text = DEFAULT_SAVED_BY

    @field_validator("last_saved_by", mode="before")
    @classmethod
    def _default_saved_by(cls, value: Any) -> str:
        return str_or(value, DEFAULT_SAVED_BY)


class Settings(RegBaseModel):
    """Operator-configurable settings."""

    network_status: NetworkStatus = NetworkStatus.NORMAL
    zone_name: Text = DEFAULT_ZONE_NAME
    rp_offset_minutes: int = 0
    """Operator clock offset: RP time = real time + offset. Clamped to one year either way."""
    operator_name: Text = DEFAULT_OPERATOR_NAME
    autosave: bool = True

    @field_validator("network_status", mode="before")
    @classmethod
    def _coerce_network_status(cls, value: Any) -> NetworkStatus:
        return NetworkStatus(value)

    @field_validator("zone_name", mode="before")
    @classmethod
    def _default_zone(cls, value: Any) -> str:
        return str_or(value, DEFAULT_ZONE_NAME)

    @field_validator("operator_name", mode="before")
    @classmethod
    def _default_operator(cls, value: Any) -> str:
        return str_or(value, DEFAULT_OPERATOR_NAME)

    @field_validator("rp_offset_minutes", mode="before")
    @classmethod
    def _coerce_offset(cls, value: Any) -> int:
        return clamp(int_or(value, 0), RP_OFFSET_MIN_MINUTES, RP_OFFSET_MAX_MINUTES)

    @field_validator("autosave", mode="before")
    @classmethod
    def _coerce_autosave(cls, value: Any) -> bool:
        return enabled_flag(value)


class Document(RegBaseModel):
    """The single persisted root of desk state."""

    schema_version: int = SCHEMA_VERSION
    meta: Meta = Field(default_factory=Meta)
    settings: Settings = Field(default_factory=Settings)
    trains: list[Train] = Field(default_factory=list)
    incidents: list[Incident] = Field(default_factory=list)
    logs: list[LogEntry] = Field(default_factory=list)

    def clone(self) -> Document:
        """Return a fully independent deep copy."""
        return self.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Weak-reference lookups
    # ------------------------------------------------------------------

    def find_train(self, train_id: str | None) -> Train | None:
        if not train_id:
            return None
        return next((t for t in self.trains if t.id == train_id), None)

    def find_incident(self, incident_id: str | None) -> Incident | None:
        if not incident_id:
            return None
        return next((i for i in self.incidents if i.id == incident_id), None)

    def find_log(self, log_id: str | None) -> LogEntry | None:
        if not log_id:
            return None
        return next((entry for entry in self.logs if entry.id == log_id), None)


def default_document(now: datetime | None = None) -> Document:
    """Build the document used on first start and after a reset.

    Seeds one train and one journal entry so the board is never empty.
    """
    stamp = isoformat(now or utcnow())
    return Document(
        schema_version=SCHEMA_VERSION,
        meta=Meta(
            created_at=stamp,
            updated_at=stamp,
            last_saved_at=None,
            last_saved_by=DEFAULT_SAVED_BY,
        ),
        settings=Settings(),
        trains=[
            Train(
                id=new_id("TRN"),
                number="SD92",
                mission="TER",
                line="L1",
                od="STRASBOURG → SAVERNE",
                position="Strasbourg (départ)",
                delay_min=0,
                priority=2,
                regulator=DEFAULT_AUTHOR,
                updated_at=stamp,
            )
        ],
        incidents=[],
        logs=[
            LogEntry(
                id=new_id("LOG"),
                at=stamp,
                type=LogType.INFORMATION,
                text="Prise de service PC Régulation (RP).",
                author=DEFAULT_AUTHOR,
            )
        ],
    )
