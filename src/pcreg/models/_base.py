"""Base model and enum for persisted desk records.

Every record model inherits from :class:`RegBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase keys of the stored JSON
  map to snake_case attributes.
* ``validate_assignment=True`` so bounds enforced by field validators
  (delay, priority) also hold after in-place edits.
* ``extra="allow"`` so fields this version does not know about survive a
  load/save cycle untouched.

Enums inherit from :class:`RegEnum`, which resolves unknown stored values
to the first member instead of raising ``ValueError``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from pcreg.coerce import isoformat, optional_ref, utcnow


def to_text(value: Any) -> str:
    """Coerce scalars to text; ``None`` becomes the empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def to_timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return isoformat(value)
    text = to_text(value)
    return text if text else isoformat(utcnow())


def to_optional_timestamp(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return to_timestamp(value)


Text = Annotated[str, BeforeValidator(to_text)]
"""Free text; numbers and other scalars stored by older versions become strings."""

Timestamp = Annotated[str, BeforeValidator(to_timestamp)]
"""ISO-8601 string. Existing strings are kept verbatim."""

OptionalTimestamp = Annotated[str | None, BeforeValidator(to_optional_timestamp)]

WeakRef = Annotated[str | None, BeforeValidator(optional_ref)]
"""Identifier of another record. Only ever resolved by lookup."""


def now_iso() -> str:
    return isoformat(utcnow())


class RegEnum(enum.StrEnum):
    """Base for stored enums.

    Lookup is forgiving: values are matched case-insensitively against both
    member values and member names (``"in-service"`` finds ``IN_SERVICE``).
    Anything else resolves to the first member.
    """

    @classmethod
    def default(cls) -> RegEnum:
        return next(iter(cls))

    @classmethod
    def _missing_(cls, value: object) -> RegEnum:
        if isinstance(value, str):
            folded = value.strip().casefold()
            name = folded.replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.value.casefold() == folded or member.name.casefold() == name:
                    return member
        return cls.default()


class RegBaseModel(BaseModel):
    """Base for persisted desk records."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        validate_assignment=True,
        alias_generator=to_camel,
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase mapping of this record."""
        return self.model_dump(mode="json", by_alias=True)
