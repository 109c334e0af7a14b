"""Public RSVP endpoints for one organization."""

from __future__ import annotations

from flask import Blueprint, jsonify

from core.exceptions import ValidationError
from services.snooze_service import SnoozeCredentials
from web.context import get_services, json_body

rsvp_bp = Blueprint("rsvp", __name__, url_prefix="/api/org/<org_id>")


@rsvp_bp.get("/rsvp")
async def public_state(org_id: str):
    state = await get_services().rsvp.get_public_state(org_id)
    return jsonify(state.to_dict())


@rsvp_bp.post("/rsvp")
async def signup(org_id: str):
    data = json_body()
    result = await get_services().rsvp.signup(org_id, data.get("name"), data.get("deviceId"))
    return jsonify(result.to_dict())


@rsvp_bp.delete("/rsvp")
async def withdraw(org_id: str):
    data = json_body()
    result = await get_services().rsvp.withdraw(
        org_id,
        data.get("personId"),
        data.get("deviceId"),
        from_waitlist=bool(data.get("isWaitlist", False)),
    )
    return jsonify(result.to_dict())


@rsvp_bp.patch("/rsvp")
async def snooze(org_id: str):
    data = json_body()
    credentials = SnoozeCredentials(
        snooze_code=data.get("snoozeCode"),
        password=data.get("password"),
    )
    snooze_service = get_services().snooze
    action = data.get("action")

    if action == "snooze":
        result = await snooze_service.snooze(org_id, credentials, data.get("personId"))
    elif action == "unsnooze":
        result = await snooze_service.unsnooze(org_id, credentials, data.get("personName"))
    else:
        raise ValidationError("Invalid action")
    return jsonify(result.to_dict())
