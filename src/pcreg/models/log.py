"""Journal (log entry) model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pcreg._constants import DEFAULT_AUTHOR
from pcreg.coerce import new_id
from pcreg.models._base import RegBaseModel, RegEnum, Text, Timestamp, WeakRef, now_iso


class LogType(RegEnum):
    INFORMATION = "Information"
    ORDER = "Ordre"
    INCIDENT = "Incident"
    DECISION = "Décision"


class LogEntry(RegBaseModel):
    id: Text = Field(default_factory=lambda: new_id("LOG"))
    at: Timestamp = Field(default_factory=now_iso)
    type: LogType = LogType.INFORMATION
    text: Text = ""
    train_id: WeakRef = None
    incident_id: WeakRef = None
    author: Text = DEFAULT_AUTHOR

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> LogType:
        return LogType(value)
