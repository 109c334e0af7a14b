"""Organization-scoped state access on top of the key-value store."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence

from core import get_logger
from core.clock import epoch_millis
from core.constants import OrgKey, RsvpDefaults
from database.models import (
    ArchiveEntry,
    DropoutEntry,
    EmailStatus,
    OrgSettings,
    Participant,
    Roster,
    SnoozeEntry,
    SnoozeRecord,
    WhitelistEntry,
)
from database.storage import KeyValueStore

logger = get_logger(__name__)


def org_key(org_id: str, suffix: OrgKey) -> str:
    """Build the namespaced key ``org:<org_id>:<suffix>``."""
    if not org_id:
        raise ValueError("org_id is required for org-scoped keys")
    return f"org:{org_id}:{suffix.value}"


class OrgStateRepository:
    """Reads and writes one organization's state documents.

    Every write replaces a whole document; there is no cross-key atomicity.
    """

    def __init__(
        self,
        store: KeyValueStore,
        org_id: str,
        default_timezone: str,
        default_limit: int = RsvpDefaults.MAIN_LIST_LIMIT
    ) -> None:
        self.store = store
        self.org_id = org_id
        self.default_timezone = default_timezone
        self.default_limit = default_limit

    async def _get(self, suffix: OrgKey, default: Any = None) -> Any:
        value = await self.store.get(org_key(self.org_id, suffix))
        return default if value is None else value

    async def _set(self, suffix: OrgKey, value: Any) -> None:
        await self.store.set(org_key(self.org_id, suffix), value)

    # Settings

    async def get_settings(self) -> OrgSettings:
        data = await self._get(OrgKey.SETTINGS)
        if data is None:
            return OrgSettings.default(self.default_timezone, self.default_limit)
        return OrgSettings.from_dict(data, self.default_timezone, self.default_limit)

    async def save_settings(self, settings: OrgSettings) -> None:
        await self._set(OrgKey.SETTINGS, settings.to_dict())

    # Roster

    async def get_roster(self) -> Roster:
        return Roster.from_dict(await self._get(OrgKey.RSVP_DATA))

    async def save_roster(self, roster: Roster) -> None:
        await self._set(OrgKey.RSVP_DATA, roster.to_dict())

    # Whitelist

    async def get_whitelist(self) -> List[WhitelistEntry]:
        return [WhitelistEntry.from_dict(w) for w in await self._get(OrgKey.WHITELIST, [])]

    async def save_whitelist(self, whitelist: Sequence[WhitelistEntry]) -> None:
        await self._set(OrgKey.WHITELIST, [w.to_dict() for w in whitelist])

    # Snooze record

    async def get_snooze_record(self, now: datetime) -> SnoozeRecord:
        """Load the snooze record, migrating legacy bare-name entries.

        Old records stored only the lowercased name. Those are turned into
        snapshots from the whitelist; names with no whitelist entry are
        dropped because there is nothing to restore.
        """
        data = await self._get(OrgKey.SNOOZED)
        if data is None:
            return SnoozeRecord()

        entries: List[SnoozeEntry] = []
        legacy_names: List[str] = []
        for raw in data.get("names", []):
            if isinstance(raw, str):
                legacy_names.append(raw)
            elif raw.get("snapshot"):
                entries.append(SnoozeEntry.from_dict(raw))
            else:
                legacy_names.append(raw.get("nameLC", ""))

        if legacy_names:
            whitelist = await self.get_whitelist()
            for offset, name_key in enumerate(legacy_names):
                member = next((w for w in whitelist if w.name_key == name_key.lower()), None)
                if member is None:
                    logger.warning(
                        f"Dropping legacy snooze entry '{name_key}' with no whitelist match",
                        extra={"org_id": self.org_id}
                    )
                    continue
                snapshot = Participant(
                    id=epoch_millis(now) + offset,
                    name=member.name,
                    device_id=member.device_id,
                    timestamp=now,
                    is_whitelisted=True,
                )
                entries.append(SnoozeEntry(name_key=member.name_key, snapshot=snapshot))

        return SnoozeRecord(period_id=data.get("weekId"), entries=entries)

    async def save_snooze_record(self, record: SnoozeRecord) -> None:
        await self._set(OrgKey.SNOOZED, record.to_dict())

    # Archive

    async def get_archive(self) -> List[ArchiveEntry]:
        return [ArchiveEntry.from_dict(a) for a in await self._get(OrgKey.ARCHIVE, [])]

    async def save_archive(self, archive: Sequence[ArchiveEntry]) -> None:
        await self._set(OrgKey.ARCHIVE, [a.to_dict() for a in archive])

    # Markers

    async def get_last_reset(self) -> Optional[str]:
        return await self._get(OrgKey.LAST_RESET)

    async def set_last_reset(self, period_id: str) -> None:
        await self._set(OrgKey.LAST_RESET, period_id)

    async def get_last_email_period(self) -> Optional[str]:
        return await self._get(OrgKey.LAST_EMAIL)

    async def set_last_email_period(self, period_id: str) -> None:
        await self._set(OrgKey.LAST_EMAIL, period_id)

    async def get_email_status(self) -> Optional[EmailStatus]:
        data = await self._get(OrgKey.EMAIL_STATUS)
        return EmailStatus.from_dict(data) if data else None

    async def save_email_status(self, status: EmailStatus) -> None:
        await self._set(OrgKey.EMAIL_STATUS, status.to_dict())

    # Capped logs, newest first

    async def append_email_log(self, status: EmailStatus, limit: int = RsvpDefaults.EMAIL_LOG_LIMIT) -> None:
        log = await self._get(OrgKey.EMAIL_LOG, [])
        log.insert(0, status.to_dict())
        await self._set(OrgKey.EMAIL_LOG, log[:limit])

    async def get_dropout_log(self) -> List[DropoutEntry]:
        return [DropoutEntry.from_dict(d) for d in await self._get(OrgKey.DROPOUT_LOG, [])]

    async def append_dropout(self, entry: DropoutEntry, limit: int = RsvpDefaults.DROPOUT_LOG_LIMIT) -> None:
        log = await self._get(OrgKey.DROPOUT_LOG, [])
        log.insert(0, entry.to_dict())
        await self._set(OrgKey.DROPOUT_LOG, log[:limit])

    async def delete_all(self) -> None:
        """Remove every document belonging to the organization."""
        for suffix in OrgKey:
            await self.store.delete(org_key(self.org_id, suffix))
