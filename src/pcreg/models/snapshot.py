"""Snapshot model."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pcreg._constants import SNAPSHOT_DEFAULT_NAME, SNAPSHOT_NAME_MAX
from pcreg.coerce import new_id, str_or
from pcreg.models._base import RegBaseModel, Text, Timestamp, now_iso


class Snapshot(RegBaseModel):
    """A named copy of the document taken at ``created_at``.

    ``state`` holds the document as it was serialized at creation time,
    possibly under an older schema. It is only turned back into a
    :class:`~pcreg.models.document.Document` through the migration engine.
    """

    id: Text = Field(default_factory=lambda: new_id("SNAP"))
    name: Text = SNAPSHOT_DEFAULT_NAME
    created_at: Timestamp = Field(default_factory=now_iso)
    state: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def _truncate_name(cls, value: Any) -> str:
        return str_or(value, SNAPSHOT_DEFAULT_NAME)[:SNAPSHOT_NAME_MAX]
