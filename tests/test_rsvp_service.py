"""Tests for signup, withdrawal and public state."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import CLOSED_INSTANT, ORG_ID
from core.constants import ListType
from core.exceptions import (
    AccessClosedError,
    DuplicateDeviceError,
    DuplicateNameError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from database.models import Participant, Roster, WhitelistEntry
from services.rsvp_service import LIST_ALREADY_SENT


async def sign_up(services, clock, name, device_id):
    """Sign up one minute after the previous call so timestamps differ."""
    clock.set(clock.now() + timedelta(minutes=1))
    return await services.rsvp.signup(ORG_ID, name, device_id)


async def enable_email(services):
    await services.admin.update_settings(
        ORG_ID, {"email": {"enabled": True, "recipients": ["captain@example.com"]}}
    )


@pytest.mark.asyncio
async def test_signup_fills_main_list_then_waitlist(services, fixed_clock):
    await services.admin.update_capacity(ORG_ID, 2)

    first = await sign_up(services, fixed_clock, "Ada", "dev-a")
    second = await sign_up(services, fixed_clock, "Bola", "dev-b")
    third = await sign_up(services, fixed_clock, "Cara", "dev-c")

    assert (first.list_type, first.position) == (ListType.MAIN, 1)
    assert first.message == "You're in! Spot #1"
    assert (second.list_type, second.position) == (ListType.MAIN, 2)
    assert (third.list_type, third.position) == (ListType.WAITLIST, 1)
    assert third.message == "Main list full. You're #1 on the waitlist"
    assert [p.name for p in third.roster.main_list] == ["Ada", "Bola"]
    assert [p.name for p in third.roster.waitlist] == ["Cara"]


@pytest.mark.asyncio
async def test_signup_trims_name_and_stamps_time(services, fixed_clock):
    result = await services.rsvp.signup(ORG_ID, "  Ada  ", "dev-a")

    assert result.person.name == "Ada"
    assert result.person.timestamp == fixed_clock.now()
    assert not result.person.is_whitelisted


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, device_id, message",
    [
        (None, "dev-a", "Name and deviceId are required"),
        ("Ada", "", "Name and deviceId are required"),
        ("   ", "dev-a", "Name cannot be empty"),
    ],
)
async def test_signup_validation(services, name, device_id, message):
    with pytest.raises(ValidationError) as exc_info:
        await services.rsvp.signup(ORG_ID, name, device_id)
    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_duplicate_device_and_name_are_rejected(services):
    await services.rsvp.signup(ORG_ID, "Ada", "dev-a")

    with pytest.raises(DuplicateDeviceError):
        await services.rsvp.signup(ORG_ID, "Someone Else", "dev-a")
    with pytest.raises(DuplicateNameError):
        await services.rsvp.signup(ORG_ID, "  aDA ", "dev-z")


@pytest.mark.asyncio
async def test_signup_rejected_while_closed(services, fixed_clock):
    fixed_clock.set(CLOSED_INSTANT)

    with pytest.raises(AccessClosedError) as exc_info:
        await services.rsvp.signup(ORG_ID, "Ada", "dev-a")

    assert exc_info.value.message == "RSVP is closed. Opens Thursday at 12:00 PM"
    assert exc_info.value.next_open == datetime(2025, 10, 23, 11, 0, tzinfo=timezone.utc)
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_whitelisted_signup_takes_priority(services, fixed_clock, repo):
    await services.admin.update_capacity(ORG_ID, 2)
    await repo.save_whitelist([WhitelistEntry(name="Ada")])
    await sign_up(services, fixed_clock, "Bola", "dev-b")
    await sign_up(services, fixed_clock, "Cara", "dev-c")

    result = await sign_up(services, fixed_clock, "ada", "dev-a")

    assert result.person.is_whitelisted
    assert (result.list_type, result.position) == (ListType.MAIN, 1)
    assert [p.name for p in result.roster.main_list] == ["ada", "Bola"]
    assert [p.name for p in result.roster.waitlist] == ["Cara"]


@pytest.mark.asyncio
async def test_whitelist_matches_on_device_id(services, repo):
    await repo.save_whitelist([WhitelistEntry(name="Adaeze", device_id="dev-a")])

    result = await services.rsvp.signup(ORG_ID, "Ada", "dev-a")

    assert result.person.is_whitelisted


@pytest.mark.asyncio
async def test_withdraw_promotes_first_waitlisted(services, fixed_clock, repo):
    await services.admin.update_capacity(ORG_ID, 2)
    ada = (await sign_up(services, fixed_clock, "Ada", "dev-a")).person
    await sign_up(services, fixed_clock, "Bola", "dev-b")
    await sign_up(services, fixed_clock, "Cara", "dev-c")

    result = await services.rsvp.withdraw(ORG_ID, ada.id, "dev-a")

    assert result.message == "Spot opened! Cara promoted from waitlist"
    assert result.promoted_person.name == "Cara"
    assert [p.name for p in result.roster.main_list] == ["Bola", "Cara"]
    assert result.roster.waitlist == []

    dropouts = await repo.get_dropout_log()
    assert [(d.name, d.list_type, d.period_id) for d in dropouts] == [("Ada", ListType.MAIN, "2025-W43")]


@pytest.mark.asyncio
async def test_withdraw_without_waitlist(services):
    ada = (await services.rsvp.signup(ORG_ID, "Ada", "dev-a")).person

    result = await services.rsvp.withdraw(ORG_ID, ada.id, "dev-a")

    assert result.message == "Removed from main list"
    assert result.promoted_person is None
    assert result.roster == Roster()


@pytest.mark.asyncio
async def test_withdraw_from_waitlist(services, fixed_clock):
    await services.admin.update_capacity(ORG_ID, 1)
    await sign_up(services, fixed_clock, "Ada", "dev-a")
    bola = (await sign_up(services, fixed_clock, "Bola", "dev-b")).person

    with pytest.raises(NotFoundError):
        await services.rsvp.withdraw(ORG_ID, bola.id, "dev-b")

    result = await services.rsvp.withdraw(ORG_ID, bola.id, "dev-b", from_waitlist=True)
    assert result.message == "Removed from waitlist"
    assert [p.name for p in result.roster.main_list] == ["Ada"]


@pytest.mark.asyncio
async def test_withdraw_requires_matching_device(services):
    ada = (await services.rsvp.signup(ORG_ID, "Ada", "dev-a")).person

    with pytest.raises(ForbiddenError):
        await services.rsvp.withdraw(ORG_ID, ada.id, "dev-b")
    with pytest.raises(NotFoundError):
        await services.rsvp.withdraw(ORG_ID, 42, "dev-a")
    with pytest.raises(ValidationError):
        await services.rsvp.withdraw(ORG_ID, ada.id, None)


@pytest.mark.asyncio
async def test_withdraw_gated_by_window_without_email(services, fixed_clock):
    ada = (await services.rsvp.signup(ORG_ID, "Ada", "dev-a")).person
    fixed_clock.set(CLOSED_INSTANT)

    with pytest.raises(AccessClosedError):
        await services.rsvp.withdraw(ORG_ID, ada.id, "dev-a")


@pytest.mark.asyncio
async def test_withdraw_allowed_after_close_until_list_is_sent(services, fixed_clock):
    await enable_email(services)
    ada = (await services.rsvp.signup(ORG_ID, "Ada", "dev-a")).person
    bola = (await services.rsvp.signup(ORG_ID, "Bola", "dev-b")).person
    fixed_clock.set(CLOSED_INSTANT)

    result = await services.rsvp.withdraw(ORG_ID, ada.id, "dev-a")
    assert result.message == "Removed from main list"

    await services.email.notify_roster_sent(ORG_ID, "2025-W43")

    with pytest.raises(AccessClosedError) as exc_info:
        await services.rsvp.withdraw(ORG_ID, bola.id, "dev-b")
    assert exc_info.value.message == LIST_ALREADY_SENT


@pytest.mark.asyncio
async def test_sent_list_blocks_withdrawal_even_while_open(services):
    await enable_email(services)
    ada = (await services.rsvp.signup(ORG_ID, "Ada", "dev-a")).person
    await services.email.notify_roster_sent(ORG_ID, "2025-W43")

    with pytest.raises(AccessClosedError) as exc_info:
        await services.rsvp.withdraw(ORG_ID, ada.id, "dev-a")
    assert exc_info.value.message == LIST_ALREADY_SENT


@pytest.mark.asyncio
async def test_public_state_normalizes_stored_order(services, fixed_clock, repo):
    await services.rollover.check(ORG_ID)
    await services.admin.update_capacity(ORG_ID, 1)
    now = fixed_clock.now()
    guest = Participant(id=1, name="Bola", device_id="dev-b", timestamp=now - timedelta(hours=2))
    member = Participant(id=2, name="Ada", device_id="dev-a", timestamp=now, is_whitelisted=True)
    await repo.save_roster(Roster(main_list=[guest], waitlist=[member]))

    state = await services.rsvp.get_public_state(ORG_ID)

    assert [p.name for p in state.roster.main_list] == ["Ada"]
    assert [p.name for p in state.roster.waitlist] == ["Bola"]
    assert await repo.get_roster() == state.roster


@pytest.mark.asyncio
async def test_public_state_payload(services):
    await services.rsvp.signup(ORG_ID, "Ada", "dev-a")
    await services.rollover.check(ORG_ID)
    await services.rsvp.signup(ORG_ID, "Bola", "dev-b")

    data = (await services.rsvp.get_public_state(ORG_ID)).to_dict()

    assert [p["name"] for p in data["mainList"]] == ["Bola"]
    assert data["mainListLimit"] == 30
    assert data["periodId"] == "2025-W43"
    assert data["snoozedNames"] == []
    assert data["accessStatus"]["isOpen"] is True
    assert data["accessStatus"]["closeTime"] == "2025-10-17T09:00:00.000Z"
    assert data["accessStatus"]["emailEnabled"] is False
    assert data["accessStatus"]["emailSentForPeriod"] is False


@pytest.mark.asyncio
async def test_simultaneous_signups_do_not_jump_the_waitlist(services):
    await services.admin.update_capacity(ORG_ID, 1)

    # Same clock instant for every signup
    for name in ("Ada", "Bola", "Cara"):
        result = await services.rsvp.signup(ORG_ID, name, f"dev-{name.lower()}")

    assert (result.list_type, result.position) == (ListType.WAITLIST, 2)
    assert [p.name for p in result.roster.main_list] == ["Ada"]
    assert [p.name for p in result.roster.waitlist] == ["Bola", "Cara"]
