"""Persistence layer: storage port, typed models, org repository."""

from .storage import KeyValueStore, InMemoryStore, SQLiteKeyValueStore
from .repositories import OrgStateRepository, org_key
from .models import (
    AccessPeriod,
    ArchiveEntry,
    DropoutEntry,
    EmailSettings,
    EmailStatus,
    GameInfo,
    OrgSettings,
    Participant,
    Roster,
    SnoozeEntry,
    SnoozeRecord,
    WhitelistEntry,
)

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "SQLiteKeyValueStore",
    "OrgStateRepository",
    "org_key",
    "AccessPeriod",
    "ArchiveEntry",
    "DropoutEntry",
    "EmailSettings",
    "EmailStatus",
    "GameInfo",
    "OrgSettings",
    "Participant",
    "Roster",
    "SnoozeEntry",
    "SnoozeRecord",
    "WhitelistEntry",
]
