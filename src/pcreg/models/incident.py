"""Incident model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pcreg._constants import DEFAULT_AUTHOR
from pcreg.coerce import new_id
from pcreg.models._base import RegBaseModel, RegEnum, Text, Timestamp, WeakRef, now_iso


class IncidentStatus(RegEnum):
    OPEN = "Ouvert"
    IN_PROGRESS = "En cours"
    CLOSED = "Clos"

    def next(self) -> IncidentStatus:
        """Status reached by one toggle: open → in progress → closed → open."""
        order = list(IncidentStatus)
        return order[(order.index(self) + 1) % len(order)]


class Incident(RegBaseModel):
    """An incident declared on the network, optionally tied to a train."""

    id: Text = Field(default_factory=lambda: new_id("INC"))
    created_at: Timestamp = Field(default_factory=now_iso)
    status: IncidentStatus = IncidentStatus.OPEN
    kind: Text = ""
    location: Text = ""
    severity: Text = ""
    description: Text = ""
    train_id: WeakRef = None
    assigned_to: Text = DEFAULT_AUTHOR

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> IncidentStatus:
        return IncidentStatus(value)
