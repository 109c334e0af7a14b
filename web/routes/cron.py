"""Scheduler hooks: rollover, email-due check and delivery receipts.

All of them are safe to call repeatedly; a cron tick that arrives twice
does no extra work.
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from core.exceptions import ValidationError
from web.auth import require_token
from web.context import get_services, json_body

cron_bp = Blueprint("cron", __name__, url_prefix="/api/org/<org_id>/cron")


@cron_bp.post("/rollover")
@require_token("cron_secret")
async def rollover(org_id: str):
    rolled_over = await get_services().rollover.check(org_id)
    return jsonify({"success": True, "rolledOver": rolled_over})


@cron_bp.post("/email-due")
@require_token("cron_secret")
async def email_due(org_id: str):
    force = bool(json_body().get("force", False))
    decision = await get_services().email.check_due(org_id, force=force)
    return jsonify(decision.to_dict())


@cron_bp.post("/email-sent")
@require_token("cron_secret")
async def email_sent(org_id: str):
    data = json_body()
    period_id = data.get("periodId")
    if not period_id:
        raise ValidationError("periodId is required")
    status = await get_services().email.notify_roster_sent(
        org_id, period_id, recipients=data.get("recipients"), count=data.get("count")
    )
    return jsonify({"success": True, "emailStatus": status.to_dict()})
