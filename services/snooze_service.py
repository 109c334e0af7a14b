"""Temporary opt-out for whitelisted members with restorable snapshots.

A snoozed member leaves the main list for the current period only. Their
full participant record is kept so that unsnoozing restores the original
signup time, and with it their priority position.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from werkzeug.security import check_password_hash

from core import get_logger
from core.constants import ListType, SnoozeDefaults
from core.exceptions import (
    AccessClosedError,
    AuthenticationError,
    DuplicateDeviceError,
    DuplicateNameError,
    NotOnMainListError,
    NotPrivilegedError,
    NotSnoozedError,
    RsvpError,
    ValidationError,
)
from core.metrics import REJECTIONS, SNOOZE_ACTIONS
from database.models import (
    OrgSettings,
    ParticipantId,
    Roster,
    SnoozeEntry,
    SnoozeRecord,
    WhitelistEntry,
)
from database.repositories import OrgStateRepository
from services.access_window import evaluate_access
from services.base import OrgService
from services.periods import current_period_id
from services.rebalancer import rebalance
from services.rollover_service import RolloverService
from services.rsvp_service import SignupResult, placement

logger = get_logger(__name__)


def generate_snooze_code(taken: Iterable[str] = ()) -> str:
    """Random member code, unique among ``taken``."""
    used = {code.upper() for code in taken if code}
    while True:
        code = "".join(
            secrets.choice(SnoozeDefaults.CODE_ALPHABET)
            for _ in range(SnoozeDefaults.CODE_LENGTH)
        )
        if code not in used:
            return code


@dataclass(frozen=True)
class SnoozeCredentials:
    """Exactly one of ``snooze_code`` (per member) or ``password`` (shared)."""

    snooze_code: Optional[str] = None
    password: Optional[str] = None


@dataclass
class SnoozeResult:
    message: str
    roster: Roster
    snoozed_names: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            **self.roster.to_dict(),
            "snoozedNames": self.snoozed_names,
        }


@dataclass
class UnsnoozeResult:
    signup: SignupResult
    snoozed_names: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {**self.signup.to_dict(), "snoozedNames": self.snoozed_names}


class SnoozeService(OrgService):

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rollover = RolloverService(self.store, self.clock, self.config)

    def authenticate(
        self,
        whitelist: Sequence[WhitelistEntry],
        credentials: SnoozeCredentials
    ) -> Optional[WhitelistEntry]:
        """Check credentials.

        Returns:
            The member owning the snooze code, or None for the shared password

        Raises:
            ValidationError: If neither or both credentials are supplied
            AuthenticationError: If the supplied credential is wrong
        """
        code = (credentials.snooze_code or "").strip().upper()
        password = credentials.password or ""

        if code and password:
            raise ValidationError("Provide either a snooze code or a password, not both")

        if code:
            member = next((w for w in whitelist if (w.snooze_code or "").upper() == code), None)
            if member is None:
                raise AuthenticationError("Invalid snooze code")
            return member

        if password:
            password_hash = self.config.member_password_hash
            if not password_hash or not check_password_hash(password_hash, password):
                raise AuthenticationError("Invalid password")
            return None

        raise ValidationError("Snooze code is required")

    async def _current_record(
        self,
        repo: OrgStateRepository,
        settings: OrgSettings,
        now: datetime
    ) -> Tuple[SnoozeRecord, str]:
        period_id = current_period_id(settings, now)
        record = await repo.get_snooze_record(now)
        if record.period_id != period_id:
            record = SnoozeRecord(period_id=period_id)
        return record, period_id

    async def snooze(
        self,
        org_id: str,
        credentials: SnoozeCredentials,
        participant_id: Optional[ParticipantId] = None
    ) -> SnoozeResult:
        try:
            return await self._snooze(org_id, credentials, participant_id)
        except RsvpError as e:
            REJECTIONS.labels(operation="snooze", error=type(e).__name__).inc()
            logger.info(f"Snooze rejected for org {org_id}: {e.message}", extra={"org_id": org_id})
            raise

    async def _snooze(
        self,
        org_id: str,
        credentials: SnoozeCredentials,
        participant_id: Optional[ParticipantId]
    ) -> SnoozeResult:
        repo = self.repository(org_id)
        member = self.authenticate(await repo.get_whitelist(), credentials)

        now = self.now()
        settings = await repo.get_settings()
        await self.rollover.check_and_rollover(repo, settings, now)
        roster = await repo.get_roster()

        if member is not None:
            person = next((p for p in roster.main_list if p.name_key == member.name_key), None)
        elif participant_id is None:
            raise ValidationError("personId is required")
        else:
            person = roster.find(participant_id)

        if person is None:
            raise NotOnMainListError()
        if not person.is_whitelisted:
            raise NotPrivilegedError()

        record, _ = await self._current_record(repo, settings, now)
        if record.find(person.name_key) is None:
            record.entries.append(SnoozeEntry(name_key=person.name_key, snapshot=person))

        updated = rebalance(
            [p for p in roster.main_list if p.id != person.id],
            roster.waitlist,
            settings.main_list_limit,
        )
        await repo.save_roster(updated)
        await repo.save_snooze_record(record)

        SNOOZE_ACTIONS.labels(action="snooze").inc()
        logger.info(f"'{person.name}' snoozed for org {org_id}", extra={"org_id": org_id})
        return SnoozeResult(
            message=f"{person.name} is now skipping this week. They'll be back next week!",
            roster=updated,
            snoozed_names=record.names(),
        )

    async def unsnooze(
        self,
        org_id: str,
        credentials: SnoozeCredentials,
        person_name: Optional[str] = None
    ) -> UnsnoozeResult:
        try:
            return await self._unsnooze(org_id, credentials, person_name)
        except RsvpError as e:
            REJECTIONS.labels(operation="unsnooze", error=type(e).__name__).inc()
            logger.info(f"Unsnooze rejected for org {org_id}: {e.message}", extra={"org_id": org_id})
            raise

    async def _unsnooze(
        self,
        org_id: str,
        credentials: SnoozeCredentials,
        person_name: Optional[str]
    ) -> UnsnoozeResult:
        repo = self.repository(org_id)
        member = self.authenticate(await repo.get_whitelist(), credentials)

        if member is not None:
            name_key = member.name_key
        elif person_name and person_name.strip():
            name_key = person_name.strip().lower()
        else:
            raise ValidationError("personName is required")

        now = self.now()
        settings = await repo.get_settings()
        await self.rollover.check_and_rollover(repo, settings, now)
        record, _ = await self._current_record(repo, settings, now)

        entry = record.find(name_key)
        if entry is None:
            raise NotSnoozedError()

        access = evaluate_access(settings, now)
        if not access.is_open:
            raise AccessClosedError(access.message, access.next_open)

        restored = entry.snapshot
        roster = await repo.get_roster()
        if restored.device_id and roster.has_device(restored.device_id):
            raise DuplicateDeviceError()
        if roster.has_name(restored.name):
            raise DuplicateNameError()

        record.entries.remove(entry)
        updated = rebalance([*roster.main_list, restored], roster.waitlist, settings.main_list_limit)
        list_type, position = placement(updated, restored)

        await repo.save_snooze_record(record)
        await repo.save_roster(updated)

        if list_type is ListType.MAIN:
            message = f"Welcome back {restored.name}! You're in spot #{position}"
        else:
            message = f"Main list is full. {restored.name} is #{position} on the waitlist"

        SNOOZE_ACTIONS.labels(action="unsnooze").inc()
        logger.info(
            f"'{restored.name}' unsnoozed for org {org_id}: {list_type.value} #{position}",
            extra={"org_id": org_id}
        )
        return UnsnoozeResult(
            signup=SignupResult(list_type, position, message, restored, updated),
            snoozed_names=record.names(),
        )
