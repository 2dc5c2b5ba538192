"""Internal constants shared across the library."""

SCHEMA_VERSION = 2
#: Version assumed for stored payloads that carry no ``schemaVersion``.
OLDEST_SCHEMA_VERSION = 1

STATE_KEY = "PCREG_SNCF_RP_STATE_V2"
SNAPSHOT_KEY = "PCREG_SNCF_RP_SNAPSHOTS_V2"

AUTOSAVE_DELAY_MS = 500
SNAPSHOT_LIMIT = 20
SNAPSHOT_NAME_MAX = 60
SNAPSHOT_DEFAULT_NAME = "Snapshot"

DEFAULT_ZONE_NAME = "CCR / PC Régulation"
DEFAULT_OPERATOR_NAME = "Régulateur"
DEFAULT_AUTHOR = "PC"
DEFAULT_SAVED_BY = "local"

EXPORT_PREFIX = "pc-regulation-sncf-rp"

# ------------------------------------------------------------------
# Train bounds
# ------------------------------------------------------------------

DELAY_MIN_MINUTES = -120
DELAY_MAX_MINUTES = 999
PRIORITY_HIGH = 1
PRIORITY_LOW = 3
DEFAULT_PRIORITY = 2

# One year either way.
RP_OFFSET_MIN_MINUTES = -525_600
RP_OFFSET_MAX_MINUTES = 525_600


def clamp(value: int, low: int, high: int) -> int:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(high, value))
