"""Organizer actions: capacity, settings, whitelist and resets."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from core import get_logger
from core.clock import epoch_millis, to_iso
from core.exceptions import ConfigurationError, NotFoundError, ValidationError
from database.models import (
    OrgSettings,
    Participant,
    ParticipantId,
    Roster,
    WhitelistEntry,
)
from database.repositories import OrgStateRepository
from services.base import OrgService, new_participant_id
from services.periods import current_period_id
from services.rebalancer import diff_moves, rebalance, rebalance_roster
from services.snooze_service import generate_snooze_code
from utils.timeutils import get_zone

logger = get_logger(__name__)


@dataclass
class CapacityResult:
    promoted: List[Participant]
    demoted: List[Participant]
    roster: Roster

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "promoted": [p.to_dict() for p in self.promoted],
            "demoted": [p.to_dict() for p in self.demoted],
            **self.roster.to_dict(),
        }


@dataclass
class WhitelistResult:
    roster: Roster
    whitelist: List[WhitelistEntry]
    added: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "added": self.added,
            "skipped": [{"name": name, "reason": reason} for name, reason in self.skipped],
            **self.roster.to_dict(),
            "whitelist": [w.to_dict() for w in self.whitelist],
        }


def validate_limit(value: Any) -> int:
    """Accept positive integers only (bools and floats are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("mainListLimit must be a positive integer")
    return value


def _check_range(data: Dict[str, Any], key: str, low: int, high: int) -> None:
    value = data.get(key)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ValidationError(f"{key} must be an integer between {low} and {high}")


def merge_settings(current: OrgSettings, patch: Dict[str, Any]) -> OrgSettings:
    """Shallow-merge a settings patch into the stored settings.

    ``accessPeriod``, ``email`` and ``gameInfo`` are merged key by key;
    nested gameInfo blocks (location, rules, weather) are merged one level
    deeper so a partial update does not wipe sibling fields.

    Raises:
        ValidationError: If the merged settings are out of range
    """
    if not isinstance(patch, dict):
        raise ValidationError("Settings are required")

    merged = current.to_dict()
    if "mainListLimit" in patch and patch["mainListLimit"] is not None:
        merged["mainListLimit"] = validate_limit(patch["mainListLimit"])

    for section in ("accessPeriod", "email"):
        update = patch.get(section)
        if update is not None:
            if not isinstance(update, dict):
                raise ValidationError(f"{section} must be an object")
            merged[section] = {**merged[section], **update}

    game_update = patch.get("gameInfo")
    if game_update is not None:
        if not isinstance(game_update, dict):
            raise ValidationError("gameInfo must be an object")
        game = {**merged["gameInfo"], **game_update}
        for block in ("location", "rules", "weather"):
            if isinstance(game_update.get(block), dict):
                game[block] = {**(merged["gameInfo"].get(block) or {}), **game_update[block]}
        merged["gameInfo"] = game

    access = merged["accessPeriod"]
    for prefix in ("start", "end"):
        _check_range(access, f"{prefix}Day", 0, 6)
        _check_range(access, f"{prefix}Hour", 0, 23)
        _check_range(access, f"{prefix}Minute", 0, 59)
    _check_range(merged["gameInfo"], "gameDay", 0, 6)

    occurrence = merged["gameInfo"].get("monthlyOccurrence")
    if occurrence not in (None, "last") and occurrence not in range(1, 6):
        raise ValidationError("monthlyOccurrence must be 1-5 or 'last'")

    try:
        get_zone(access.get("timezone") or current.timezone)
        return OrgSettings.from_dict(merged, current.timezone, current.main_list_limit)
    except ConfigurationError as e:
        raise ValidationError(str(e)) from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid settings: {e}") from e


def _synthetic_device_id(now_ms: int) -> str:
    return f"whitelist-{now_ms}-{secrets.token_hex(5)[:9]}"


def _remove_with_promotion(
    roster: Roster,
    keep: Callable[[Participant], bool]
) -> Tuple[Roster, Optional[Participant]]:
    """Drop matching people; promote the waitlist head if the main list lost someone."""
    main_list = [p for p in roster.main_list if keep(p)]
    waitlist = [p for p in roster.waitlist if keep(p)]
    promoted = None
    if len(main_list) < len(roster.main_list) and waitlist:
        promoted = waitlist.pop(0)
        main_list.append(promoted)
    return Roster(main_list, waitlist), promoted


class AdminService(OrgService):
    """Organizer-only operations. Callers are expected to be authorized."""

    async def update_capacity(self, org_id: str, new_limit: Any) -> CapacityResult:
        """Change the main list limit and report who moved.

        Args:
            org_id: Organization identifier
            new_limit: New capacity, a positive integer

        Returns:
            CapacityResult with promoted and demoted participants
        """
        limit = validate_limit(new_limit)
        repo = self.repository(org_id)
        settings = await repo.get_settings()
        await repo.save_settings(settings.with_limit(limit))
        result = await self._rebalance_to(repo, limit)
        logger.info(
            f"Capacity for org {org_id} set to {limit}: "
            f"{len(result.promoted)} promoted, {len(result.demoted)} demoted",
            extra={"org_id": org_id}
        )
        return result

    async def update_settings(self, org_id: str, patch: Dict[str, Any]) -> Tuple[OrgSettings, CapacityResult]:
        repo = self.repository(org_id)
        settings = merge_settings(await repo.get_settings(), patch)
        await repo.save_settings(settings)
        result = await self._rebalance_to(repo, settings.main_list_limit)
        logger.info(f"Settings updated for org {org_id}", extra={"org_id": org_id})
        return settings, result

    async def _rebalance_to(self, repo: OrgStateRepository, limit: int) -> CapacityResult:
        before = await repo.get_roster()
        after = rebalance_roster(before, limit)
        promoted, demoted = diff_moves(before, after)
        await repo.save_roster(after)
        return CapacityResult(promoted, demoted, after)

    async def add_whitelist(self, org_id: str, names: Sequence[str]) -> WhitelistResult:
        """Whitelist members and sign each of them up straight away."""
        if not names or isinstance(names, str):
            raise ValidationError("Names array is required")

        repo = self.repository(org_id)
        now = self.now()
        settings = await repo.get_settings()
        roster = await repo.get_roster()
        whitelist = await repo.get_whitelist()

        added: List[str] = []
        skipped: List[Tuple[str, str]] = []
        for raw in names:
            name = (raw or "").strip()
            if not name:
                continue
            if any(w.name_key == name.lower() for w in whitelist):
                skipped.append((name, "Already in whitelist"))
                continue
            if roster.has_name(name):
                skipped.append((name, "Already signed up"))
                continue

            person_id = new_participant_id(now, (p.id for p in roster.everyone()))
            whitelist.append(WhitelistEntry(
                name=name,
                snooze_code=generate_snooze_code(w.snooze_code for w in whitelist),
                added_at=to_iso(now),
            ))
            person = Participant(
                id=person_id,
                name=name,
                device_id=_synthetic_device_id(epoch_millis(now)),
                timestamp=now,
                is_whitelisted=True,
            )
            roster = rebalance(roster.main_list, [*roster.waitlist, person], settings.main_list_limit)
            added.append(name)

        await repo.save_roster(roster)
        await repo.save_whitelist(whitelist)
        logger.info(
            f"Whitelist for org {org_id}: added {len(added)}, skipped {len(skipped)}",
            extra={"org_id": org_id}
        )
        return WhitelistResult(roster, whitelist, added, skipped)

    async def remove_whitelist(self, org_id: str, name: str) -> WhitelistResult:
        if not name or not name.strip():
            raise ValidationError("Name is required")
        key = name.strip().lower()

        repo = self.repository(org_id)
        whitelist = [w for w in await repo.get_whitelist() if w.name_key != key]
        roster, promoted = _remove_with_promotion(
            await repo.get_roster(), lambda p: p.name_key != key
        )

        await repo.save_roster(roster)
        await repo.save_whitelist(whitelist)
        logger.info(
            f"Removed '{name}' from whitelist for org {org_id}"
            + (f", promoted '{promoted.name}'" if promoted else ""),
            extra={"org_id": org_id}
        )
        return WhitelistResult(roster, whitelist)

    async def regenerate_snooze_code(self, org_id: str, name: str) -> str:
        repo = self.repository(org_id)
        whitelist = await repo.get_whitelist()
        key = (name or "").strip().lower()
        index = next((i for i, w in enumerate(whitelist) if w.name_key == key), None)
        if index is None:
            raise NotFoundError("Member not found in whitelist")

        code = generate_snooze_code(w.snooze_code for w in whitelist)
        member = whitelist[index]
        whitelist[index] = WhitelistEntry(
            name=member.name,
            device_id=member.device_id,
            snooze_code=code,
            email=member.email,
            added_at=member.added_at,
        )
        await repo.save_whitelist(whitelist)
        logger.info(f"Regenerated snooze code for '{member.name}' in org {org_id}", extra={"org_id": org_id})
        return code

    async def remove_person(
        self,
        org_id: str,
        participant_id: ParticipantId,
        from_waitlist: bool = False
    ) -> Roster:
        """Organizer removal; skips the device check and the window gate."""
        repo = self.repository(org_id)
        roster = await repo.get_roster()
        if roster.find(participant_id, in_waitlist=from_waitlist) is None:
            raise NotFoundError()

        if from_waitlist:
            updated = Roster(roster.main_list, [p for p in roster.waitlist if p.id != participant_id])
        else:
            updated, _ = _remove_with_promotion(roster, lambda p: p.id != participant_id)

        await repo.save_roster(updated)
        logger.info(f"Organizer removed participant {participant_id} from org {org_id}", extra={"org_id": org_id})
        return updated

    async def reset_signups(self, org_id: str) -> Roster:
        repo = self.repository(org_id)
        roster = await repo.get_roster()
        updated = Roster([p for p in roster.main_list if p.is_whitelisted], [])
        await repo.save_roster(updated)
        logger.info(f"Signups reset for org {org_id}", extra={"org_id": org_id})
        return updated

    async def reset_all(self, org_id: str) -> Roster:
        repo = self.repository(org_id)
        updated = Roster()
        await repo.save_roster(updated)
        await repo.save_whitelist([])
        logger.warning(f"Roster and whitelist cleared for org {org_id}", extra={"org_id": org_id})
        return updated

    async def get_admin_state(self, org_id: str) -> Dict[str, Any]:
        repo = self.repository(org_id)
        settings = await repo.get_settings()
        stored = await repo.get_roster()
        roster = rebalance_roster(stored, settings.main_list_limit)
        if roster != stored:
            await repo.save_roster(roster)

        email_status = await repo.get_email_status()
        return {
            **roster.to_dict(),
            "whitelist": [w.to_dict() for w in await repo.get_whitelist()],
            "settings": settings.to_dict(),
            "archive": [a.to_dict() for a in await repo.get_archive()],
            "dropouts": [d.to_dict() for d in await repo.get_dropout_log()],
            "emailStatus": email_status.to_dict() if email_status else None,
            "lastEmailPeriod": await repo.get_last_email_period(),
            "currentPeriodId": current_period_id(settings, self.now()),
        }
