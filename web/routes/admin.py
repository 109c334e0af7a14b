"""Organizer endpoints, guarded by the shared admin token."""

from __future__ import annotations

from flask import Blueprint, jsonify

from core.exceptions import ValidationError
from web.auth import require_token
from web.context import get_services, json_body

admin_bp = Blueprint("admin", __name__, url_prefix="/api/org/<org_id>/admin")


@admin_bp.get("")
@require_token("admin_token")
async def admin_state(org_id: str):
    return jsonify(await get_services().admin.get_admin_state(org_id))


@admin_bp.put("/capacity")
@require_token("admin_token")
async def update_capacity(org_id: str):
    data = json_body()
    result = await get_services().admin.update_capacity(org_id, data.get("mainListLimit"))
    return jsonify(result.to_dict())


@admin_bp.patch("/settings")
@require_token("admin_token")
async def update_settings(org_id: str):
    patch = json_body().get("settings")
    if not patch:
        raise ValidationError("Settings are required")
    settings, result = await get_services().admin.update_settings(org_id, patch)
    return jsonify({**result.to_dict(), "settings": settings.to_dict()})


@admin_bp.post("/whitelist")
@require_token("admin_token")
async def add_whitelist(org_id: str):
    names = json_body().get("names")
    if not isinstance(names, list):
        raise ValidationError("Names array is required")
    result = await get_services().admin.add_whitelist(org_id, names)
    return jsonify(result.to_dict())


@admin_bp.delete("/whitelist")
@require_token("admin_token")
async def remove_whitelist(org_id: str):
    result = await get_services().admin.remove_whitelist(org_id, json_body().get("name"))
    return jsonify(result.to_dict())


@admin_bp.post("/whitelist/snooze-code")
@require_token("admin_token")
async def regenerate_snooze_code(org_id: str):
    name = json_body().get("name")
    code = await get_services().admin.regenerate_snooze_code(org_id, name)
    return jsonify({"success": True, "name": name, "snoozeCode": code})


@admin_bp.delete("/person")
@require_token("admin_token")
async def remove_person(org_id: str):
    data = json_body()
    if data.get("personId") is None:
        raise ValidationError("personId is required")
    roster = await get_services().admin.remove_person(
        org_id, data["personId"], from_waitlist=bool(data.get("isWaitlist", False))
    )
    return jsonify({"success": True, **roster.to_dict()})


@admin_bp.post("/reset-signups")
@require_token("admin_token")
async def reset_signups(org_id: str):
    roster = await get_services().admin.reset_signups(org_id)
    return jsonify({"success": True, **roster.to_dict()})


@admin_bp.post("/reset-all")
@require_token("admin_token")
async def reset_all(org_id: str):
    roster = await get_services().admin.reset_all(org_id)
    return jsonify({"success": True, **roster.to_dict(), "whitelist": []})
