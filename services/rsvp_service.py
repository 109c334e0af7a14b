"""Public RSVP operations: state reads, signup and withdrawal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core import get_logger
from core.constants import ListType
from core.exceptions import (
    AccessClosedError,
    DuplicateDeviceError,
    DuplicateNameError,
    ForbiddenError,
    NotFoundError,
    RsvpError,
    ValidationError,
)
from core.metrics import REJECTIONS, SIGNUPS, WITHDRAWALS
from database.models import DropoutEntry, OrgSettings, Participant, ParticipantId, Roster
from database.repositories import OrgStateRepository
from services.access_window import AccessStatus, evaluate_access
from services.base import OrgService, new_participant_id
from services.periods import current_period_id
from services.rebalancer import rebalance, rebalance_roster
from services.rollover_service import RolloverService

logger = get_logger(__name__)

LIST_ALREADY_SENT = "The list has already been sent. Dropouts are no longer possible."


@dataclass
class PublicState:
    roster: Roster
    capacity_limit: int
    access_status: AccessStatus
    snoozed_names: List[str]
    email_enabled: bool
    email_sent_for_period: bool
    period_id: str

    def to_dict(self) -> Dict[str, Any]:
        access = self.access_status.to_dict()
        access["emailEnabled"] = self.email_enabled
        access["emailSentForPeriod"] = self.email_sent_for_period
        return {
            **self.roster.to_dict(),
            "mainListLimit": self.capacity_limit,
            "accessStatus": access,
            "snoozedNames": self.snoozed_names,
            "periodId": self.period_id,
        }


@dataclass
class SignupResult:
    list_type: ListType
    position: int
    message: str
    person: Participant
    roster: Roster

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "listType": self.list_type.value,
            "position": self.position,
            "person": self.person.to_dict(),
            **self.roster.to_dict(),
        }


@dataclass
class WithdrawResult:
    message: str
    promoted_person: Optional[Participant]
    roster: Roster

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "promotedPerson": self.promoted_person.to_dict() if self.promoted_person else None,
            **self.roster.to_dict(),
        }


def placement(roster: Roster, person: Participant) -> Tuple[ListType, int]:
    """List and 1-based position of a participant after a rebalance."""
    located = roster.locate(person.id)
    if located is None:
        raise RuntimeError(f"Participant {person.id} lost during rebalance")
    return located


def email_sent_for_period(settings: OrgSettings, last_email_period: Optional[str], period_id: str) -> bool:
    return settings.email.is_active and last_email_period == period_id


class RsvpService(OrgService):
    """Signup engine for one store/clock/config triple."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.rollover = RolloverService(self.store, self.clock, self.config)

    async def get_public_state(self, org_id: str) -> PublicState:
        """Rollover check, access evaluation and list normalization."""
        repo = self.repository(org_id)
        now = self.now()
        settings = await repo.get_settings()

        await self.rollover.check_and_rollover(repo, settings, now)

        stored = await repo.get_roster()
        access = evaluate_access(settings, now)
        roster = rebalance_roster(stored, settings.main_list_limit)
        if roster != stored:
            await repo.save_roster(roster)

        period_id = current_period_id(settings, now)
        snoozed = await repo.get_snooze_record(now)
        snoozed_names = snoozed.names() if snoozed.period_id == period_id else []
        last_email = await repo.get_last_email_period()

        return PublicState(
            roster=roster,
            capacity_limit=settings.main_list_limit,
            access_status=access,
            snoozed_names=snoozed_names,
            email_enabled=settings.email.is_active,
            email_sent_for_period=email_sent_for_period(settings, last_email, period_id),
            period_id=period_id,
        )

    async def signup(self, org_id: str, name: Optional[str], device_id: Optional[str]) -> SignupResult:
        try:
            return await self._signup(org_id, name, device_id)
        except RsvpError as e:
            REJECTIONS.labels(operation="signup", error=type(e).__name__).inc()
            logger.info(f"Signup rejected for org {org_id}: {e.message}", extra={"org_id": org_id})
            raise

    async def _signup(self, org_id: str, name: Optional[str], device_id: Optional[str]) -> SignupResult:
        if not name or not device_id:
            raise ValidationError("Name and deviceId are required")
        trimmed = name.strip()
        if not trimmed:
            raise ValidationError("Name cannot be empty")

        repo = self.repository(org_id)
        now = self.now()
        settings = await repo.get_settings()
        await self.rollover.check_and_rollover(repo, settings, now)

        access = evaluate_access(settings, now)
        if not access.is_open:
            raise AccessClosedError(access.message, access.next_open)

        roster = await repo.get_roster()
        if roster.has_device(device_id):
            raise DuplicateDeviceError()
        if roster.has_name(trimmed):
            raise DuplicateNameError()

        whitelist = await repo.get_whitelist()
        is_whitelisted = any(w.matches(trimmed, device_id) for w in whitelist)

        person = Participant(
            id=new_participant_id(now, (p.id for p in roster.everyone())),
            name=trimmed,
            device_id=device_id,
            timestamp=now,
            is_whitelisted=is_whitelisted,
        )
        # Newcomers go last so equal timestamps never jump the waitlist
        updated = rebalance(roster.main_list, [*roster.waitlist, person], settings.main_list_limit)
        list_type, position = placement(updated, person)
        await repo.save_roster(updated)

        if list_type is ListType.MAIN:
            message = f"You're in! Spot #{position}"
        else:
            message = f"Main list full. You're #{position} on the waitlist"

        SIGNUPS.labels(list_type=list_type.value).inc()
        logger.info(
            f"Signup '{trimmed}' for org {org_id}: {list_type.value} #{position}",
            extra={"org_id": org_id}
        )
        return SignupResult(list_type, position, message, person, updated)

    async def withdraw(
        self,
        org_id: str,
        participant_id: Optional[ParticipantId],
        device_id: Optional[str],
        from_waitlist: bool = False
    ) -> WithdrawResult:
        try:
            return await self._withdraw(org_id, participant_id, device_id, from_waitlist)
        except RsvpError as e:
            REJECTIONS.labels(operation="withdraw", error=type(e).__name__).inc()
            logger.info(f"Withdrawal rejected for org {org_id}: {e.message}", extra={"org_id": org_id})
            raise

    async def _check_withdraw_allowed(self, repo: OrgStateRepository, settings: OrgSettings, now: datetime) -> str:
        """Gate dropouts and return the current period id.

        With email delivery on, dropouts stay possible after the window
        closes until the roster has been sent for this period.
        """
        period_id = current_period_id(settings, now)
        if settings.email.is_active:
            if await repo.get_last_email_period() == period_id:
                raise AccessClosedError(LIST_ALREADY_SENT)
        else:
            access = evaluate_access(settings, now)
            if not access.is_open:
                raise AccessClosedError(access.message, access.next_open)
        return period_id

    async def _withdraw(
        self,
        org_id: str,
        participant_id: Optional[ParticipantId],
        device_id: Optional[str],
        from_waitlist: bool
    ) -> WithdrawResult:
        if participant_id is None or participant_id == "" or not device_id:
            raise ValidationError("personId and deviceId are required")

        repo = self.repository(org_id)
        now = self.now()
        settings = await repo.get_settings()
        await self.rollover.check_and_rollover(repo, settings, now)
        period_id = await self._check_withdraw_allowed(repo, settings, now)

        roster = await repo.get_roster()
        person = roster.find(participant_id, in_waitlist=from_waitlist)
        if person is None:
            raise NotFoundError()
        if person.device_id != device_id:
            raise ForbiddenError()

        promoted: Optional[Participant] = None
        if from_waitlist:
            updated = Roster(roster.main_list, [p for p in roster.waitlist if p.id != person.id])
            message = "Removed from waitlist"
        else:
            main_list = [p for p in roster.main_list if p.id != person.id]
            waitlist = list(roster.waitlist)
            if waitlist:
                # Head of a sorted waitlist keeps the main list sorted
                promoted = waitlist.pop(0)
                main_list.append(promoted)
                message = f"Spot opened! {promoted.name} promoted from waitlist"
            else:
                message = "Removed from main list"
            updated = Roster(main_list, waitlist)

        await repo.save_roster(updated)

        list_type = ListType.WAITLIST if from_waitlist else ListType.MAIN
        await repo.append_dropout(
            DropoutEntry(name=person.name, timestamp=now, list_type=list_type, period_id=period_id),
            limit=self.config.dropout_log_limit,
        )

        WITHDRAWALS.labels(list_type=list_type.value).inc()
        logger.info(
            f"Withdrawal '{person.name}' from {list_type.value} for org {org_id}"
            + (f", promoted '{promoted.name}'" if promoted else ""),
            extra={"org_id": org_id}
        )
        return WithdrawResult(message, promoted, updated)
