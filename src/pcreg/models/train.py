"""Train model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pcreg._constants import (
    DEFAULT_AUTHOR,
    DEFAULT_PRIORITY,
    DELAY_MAX_MINUTES,
    DELAY_MIN_MINUTES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    clamp,
)
from pcreg.coerce import int_or, new_id
from pcreg.models._base import RegBaseModel, RegEnum, Text, Timestamp, now_iso


class TrainStatus(RegEnum):
    """Operating status of a tracked train."""

    IN_SERVICE = "En circulation"
    AT_PLATFORM = "À quai"
    HELD = "Retenu"
    CANCELLED = "Supprimé"
    DIVERTED = "Détourné"


class Train(RegBaseModel):
    """A train followed on the regulation board."""

    id: Text = Field(default_factory=lambda: new_id("TRN"))
    number: Text = ""
    """Commercial train number (e.g. ``"SD92"``)."""
    mission: Text = ""
    """Service type (``"TER"``, ``"TGV"`` …)."""
    line: Text = ""
    od: Text = ""
    """Origin → destination label."""
    position: Text = "-"
    delay_min: int = 0
    """Delay in minutes, negative when running early. Clamped to [-120, 999]."""
    priority: int = DEFAULT_PRIORITY
    """1 (high) to 3 (low)."""
    status: TrainStatus = TrainStatus.IN_SERVICE
    decision: Text = ""
    regulator: Text = DEFAULT_AUTHOR
    updated_at: Timestamp = Field(default_factory=now_iso)

    @field_validator("delay_min", mode="before")
    @classmethod
    def _clamp_delay(cls, value: Any) -> int:
        return clamp(int_or(value, 0), DELAY_MIN_MINUTES, DELAY_MAX_MINUTES)

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value: Any) -> int:
        return clamp(int_or(value, DEFAULT_PRIORITY), PRIORITY_HIGH, PRIORITY_LOW)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> TrainStatus:
        return TrainStatus(value)
