"""Once-per-period archival and reset of the roster."""

from __future__ import annotations

from datetime import datetime

from core import get_logger
from core.constants import RsvpDefaults
from core.metrics import ROLLOVERS
from database.models import ArchiveEntry, OrgSettings, Roster, SnoozeRecord
from database.repositories import OrgStateRepository
from services.access_window import evaluate_access
from services.base import OrgService
from services.periods import current_period_id

logger = get_logger(__name__)


class RolloverService(OrgService):
    """Lazily rolls the roster into a new period on the first open read.

    Safe to call on every request and from cron: the stored marker makes a
    second call within the same period a no-op.
    """

    async def check(self, org_id: str) -> bool:
        repo = self.repository(org_id)
        settings = await repo.get_settings()
        return await self.check_and_rollover(repo, settings, self.now())

    async def check_and_rollover(
        self,
        repo: OrgStateRepository,
        settings: OrgSettings,
        now: datetime
    ) -> bool:
        """Run the rollover if a new period has started and the window is open.

        Returns:
            True if the roster was archived and reset
        """
        if not settings.access_period.enabled:
            return False

        period_id = current_period_id(settings, now)
        last_reset = await repo.get_last_reset()
        if last_reset == period_id:
            return False

        if not evaluate_access(settings, now).is_open:
            return False

        roster = await repo.get_roster()
        previous_period = last_reset or RsvpDefaults.UNKNOWN_PERIOD

        if not roster.is_empty():
            archive = await repo.get_archive()
            archive.insert(0, ArchiveEntry(
                period_id=previous_period,
                archived_at=now,
                main_list=tuple(roster.main_list),
                waitlist=tuple(roster.waitlist),
            ))
            await repo.save_archive(archive[:self.config.archive_limit])

        carried = [p for p in roster.main_list if p.is_whitelisted]
        await repo.save_roster(Roster(main_list=carried, waitlist=[]))
        # Snoozes already recorded for the new period survive the reset
        snoozed = await repo.get_snooze_record(now)
        if snoozed.period_id != period_id:
            await repo.save_snooze_record(SnoozeRecord(period_id=period_id))
        await repo.set_last_reset(period_id)

        ROLLOVERS.inc()
        logger.info(
            f"Rolled over org {repo.org_id} from {previous_period} to {period_id}: "
            f"archived {len(roster.main_list)}+{len(roster.waitlist)}, carried {len(carried)}",
            extra={"org_id": repo.org_id}
        )
        return True
