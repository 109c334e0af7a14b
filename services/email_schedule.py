"""Decides when the closed roster should be emailed, and records deliveries.

Delivery itself is somebody else's job: a cron caller asks whether the
roster is due, sends it, then reports back through ``notify_roster_sent``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from core import get_logger
from core.clock import to_iso
from core.metrics import ROSTER_EMAILS
from database.models import EmailStatus, Roster
from services.access_window import evaluate_access
from services.base import OrgService
from services.periods import current_period_id
from services.rebalancer import rebalance_roster

logger = get_logger(__name__)


class EmailReason(str, Enum):
    DUE = "due"
    FORCED = "forced"
    EMAIL_DISABLED = "email-disabled"
    WINDOW_DISABLED = "window-disabled"
    WINDOW_OPEN = "window-open"
    NO_CLOSE_TIME = "no-close-time"
    OUTSIDE_GRACE = "outside-grace"
    ALREADY_SENT = "already-sent"


@dataclass
class EmailDecision:
    due: bool
    reason: EmailReason
    period_id: str
    roster: Roster
    close_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "due": self.due,
            "reason": self.reason.value,
            "periodId": self.period_id,
            "closeTime": to_iso(self.close_time) if self.close_time else None,
            **self.roster.to_dict(),
        }


class EmailScheduleService(OrgService):

    async def check_due(self, org_id: str, force: bool = False) -> EmailDecision:
        """Check whether the roster email should go out now.

        The roster is due once per period, within the configured grace
        window after the access window closes.

        Args:
            org_id: Organization identifier
            force: Skip the timing and already-sent checks (manual resend)

        Returns:
            EmailDecision with the current roster attached
        """
        repo = self.repository(org_id)
        now = self.now()
        settings = await repo.get_settings()
        period_id = current_period_id(settings, now)
        roster = rebalance_roster(await repo.get_roster(), settings.main_list_limit)
        access = evaluate_access(settings, now)

        def decide(due: bool, reason: EmailReason) -> EmailDecision:
            logger.debug(f"Email check for org {org_id}: {reason.value}", extra={"org_id": org_id})
            return EmailDecision(due, reason, period_id, roster, access.close_time)

        if not settings.email.is_active:
            return decide(False, EmailReason.EMAIL_DISABLED)
        if force:
            return decide(True, EmailReason.FORCED)

        if not settings.access_period.enabled:
            return decide(False, EmailReason.WINDOW_DISABLED)
        if access.is_open:
            return decide(False, EmailReason.WINDOW_OPEN)
        if access.close_time is None:
            return decide(False, EmailReason.NO_CLOSE_TIME)

        minutes_since_close = (now - access.close_time).total_seconds() / 60
        if not 0 <= minutes_since_close <= self.config.email_grace_minutes:
            return decide(False, EmailReason.OUTSIDE_GRACE)

        if await repo.get_last_email_period() == period_id:
            return decide(False, EmailReason.ALREADY_SENT)

        return decide(True, EmailReason.DUE)

    async def notify_roster_sent(
        self,
        org_id: str,
        period_id: str,
        recipients: Optional[Sequence[str]] = None,
        count: Optional[int] = None
    ) -> EmailStatus:
        """Record that the roster for ``period_id`` has been delivered.

        Once marked, withdrawals for that period are refused.
        """
        repo = self.repository(org_id)
        settings = await repo.get_settings()
        if recipients is None:
            recipients = settings.email.recipients
        if count is None:
            count = len((await repo.get_roster()).main_list)

        status = EmailStatus(
            period_id=period_id,
            sent_at=self.now(),
            recipients=tuple(recipients),
            count=count,
        )
        await repo.set_last_email_period(period_id)
        await repo.save_email_status(status)
        await repo.append_email_log(status)

        ROSTER_EMAILS.inc()
        logger.info(
            f"Roster for org {org_id} period {period_id} sent to {len(status.recipients)} recipient(s)",
            extra={"org_id": org_id}
        )
        return status
