"""Shared wiring for organization-scoped services."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from config import Config
from core.clock import Clock, epoch_millis
from database.models import ParticipantId
from database.repositories import OrgStateRepository
from database.storage import KeyValueStore


class OrgService:
    """Base class giving services a repository per org and a clock."""

    def __init__(self, store: KeyValueStore, clock: Clock, config: Config) -> None:
        self.store = store
        self.clock = clock
        self.config = config

    def repository(self, org_id: str) -> OrgStateRepository:
        return OrgStateRepository(
            self.store,
            org_id,
            default_timezone=self.config.default_timezone,
            default_limit=self.config.default_main_list_limit,
        )

    def now(self) -> datetime:
        return self.clock.now()


def new_participant_id(now: datetime, taken: Iterable[ParticipantId] = ()) -> int:
    """Millisecond timestamp id, bumped past any id already in use."""
    used = set(taken)
    candidate = epoch_millis(now)
    while candidate in used:
        candidate += 1
    return candidate
