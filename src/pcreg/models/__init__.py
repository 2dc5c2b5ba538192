"""Data models for the persisted desk document."""

from pcreg.models._base import RegBaseModel, RegEnum
from pcreg.models.document import Document, Meta, NetworkStatus, Settings, default_document
from pcreg.models.incident import Incident, IncidentStatus
from pcreg.models.log import LogEntry, LogType
from pcreg.models.snapshot import Snapshot
from pcreg.models.train import Train, TrainStatus

__all__ = [
    "Document",
    "Incident",
    "IncidentStatus",
    "LogEntry",
    "LogType",
    "Meta",
    "NetworkStatus",
    "RegBaseModel",
    "RegEnum",
    "Settings",
    "Snapshot",
    "Train",
    "TrainStatus",
    "default_document",
]
