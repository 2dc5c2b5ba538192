"""pcreg - versioned local state store for a rail regulation desk."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pcreg")
except PackageNotFoundError:
    __version__ = "0+local"
from pcreg.autosave import AsyncioScheduler, AutosaveScheduler, ManualScheduler, Scheduler, default_scheduler
from pcreg.config import DeskConfig
from pcreg.desk import RegulationDesk
from pcreg.exceptions import (
    ConfigError,
    CorruptPayloadError,
    InvalidImportError,
    PcregError,
    SnapshotNotFoundError,
    StorageError,
    StoreNotBootedError,
)
from pcreg.migrations import normalize
from pcreg.models import (
    Document,
    Incident,
    IncidentStatus,
    LogEntry,
    LogType,
    Meta,
    NetworkStatus,
    Settings,
    Snapshot,
    Train,
    TrainStatus,
    default_document,
)
from pcreg.snapshots import SnapshotManager
from pcreg.storage import FileStorage, KeyValueStorage, MemoryStorage
from pcreg.store import StateStore
from pcreg.transfer import export_document, import_document

__all__ = [
    "__version__",
    "AsyncioScheduler",
    "AutosaveScheduler",
    "ConfigError",
    "CorruptPayloadError",
    "DeskConfig",
    "Document",
    "FileStorage",
    "Incident",
    "IncidentStatus",
    "InvalidImportError",
    "KeyValueStorage",
    "LogEntry",
    "LogType",
    "ManualScheduler",
    "MemoryStorage",
    "Meta",
    "NetworkStatus",
    "PcregError",
    "RegulationDesk",
    "Scheduler",
    "Settings",
    "Snapshot",
    "SnapshotManager",
    "SnapshotNotFoundError",
    "StateStore",
    "StorageError",
    "StoreNotBootedError",
    "Train",
    "TrainStatus",
    "default_document",
    "default_scheduler",
    "export_document",
    "import_document",
    "normalize",
]
