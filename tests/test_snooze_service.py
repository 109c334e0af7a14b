"""Tests for member snooze and unsnooze."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from conftest import CLOSED_INSTANT, MEMBER_PASSWORD, ORG_ID
from core.constants import ListType, SnoozeDefaults
from core.exceptions import (
    AccessClosedError,
    AuthenticationError,
    DuplicateNameError,
    NotOnMainListError,
    NotPrivilegedError,
    NotSnoozedError,
    ValidationError,
)
from services.snooze_service import SnoozeCredentials, generate_snooze_code


def by_code(code):
    return SnoozeCredentials(snooze_code=code)


async def add_member(services, clock, name):
    clock.set(clock.now() + timedelta(minutes=1))
    await services.admin.add_whitelist(ORG_ID, [name])
    whitelist = await services.admin.repository(ORG_ID).get_whitelist()
    return next(w for w in whitelist if w.name == name)


@pytest_asyncio.fixture
async def club(services, fixed_clock):
    """Capacity two: member Ada and guest Bola on the main list, Cara waiting."""
    await services.rollover.check(ORG_ID)
    await services.admin.update_capacity(ORG_ID, 2)
    ada = await add_member(services, fixed_clock, "Ada")
    for name in ("Bola", "Cara"):
        fixed_clock.set(fixed_clock.now() + timedelta(minutes=1))
        await services.rsvp.signup(ORG_ID, name, f"dev-{name.lower()}")
    return ada


def test_generated_codes_use_readable_alphabet():
    code = generate_snooze_code()

    assert len(code) == SnoozeDefaults.CODE_LENGTH
    assert set(code) <= set(SnoozeDefaults.CODE_ALPHABET)


@pytest.mark.asyncio
async def test_snooze_frees_the_spot(services, club):
    result = await services.snooze.snooze(ORG_ID, by_code(club.snooze_code.lower()))

    assert result.message == "Ada is now skipping this week. They'll be back next week!"
    assert [p.name for p in result.roster.main_list] == ["Bola", "Cara"]
    assert result.roster.waitlist == []
    assert result.snoozed_names == ["Ada"]

    state = await services.rsvp.get_public_state(ORG_ID)
    assert state.snoozed_names == ["Ada"]


@pytest.mark.asyncio
async def test_unsnooze_restores_original_signup(services, repo, club):
    before = await repo.get_roster()
    original = before.main_list[0]
    await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))

    result = await services.snooze.unsnooze(ORG_ID, by_code(club.snooze_code))

    assert result.signup.message == "Welcome back Ada! You're in spot #1"
    assert (result.signup.list_type, result.signup.position) == (ListType.MAIN, 1)
    assert result.signup.person == original
    assert result.snoozed_names == []
    assert await repo.get_roster() == before


@pytest.mark.asyncio
async def test_unsnooze_onto_full_main_list(services, fixed_clock):
    await services.rollover.check(ORG_ID)
    await services.admin.update_capacity(ORG_ID, 2)
    await add_member(services, fixed_clock, "Ebo")
    ada = await add_member(services, fixed_clock, "Ada")

    await services.snooze.snooze(ORG_ID, by_code(ada.snooze_code))
    await services.admin.update_capacity(ORG_ID, 1)
    result = await services.snooze.unsnooze(ORG_ID, by_code(ada.snooze_code))

    assert (result.signup.list_type, result.signup.position) == (ListType.WAITLIST, 1)
    assert result.signup.message == "Main list is full. Ada is #1 on the waitlist"


@pytest.mark.asyncio
async def test_snooze_and_unsnooze_with_shared_password(services, repo, club):
    ada = (await repo.get_roster()).main_list[0]
    password = SnoozeCredentials(password=MEMBER_PASSWORD)

    result = await services.snooze.snooze(ORG_ID, password, participant_id=ada.id)
    assert result.snoozed_names == ["Ada"]

    restored = await services.snooze.unsnooze(ORG_ID, password, person_name=" ADA ")
    assert restored.signup.person.id == ada.id


@pytest.mark.asyncio
async def test_guests_cannot_snooze(services, repo, club):
    bola = (await repo.get_roster()).main_list[1]

    with pytest.raises(NotPrivilegedError):
        await services.snooze.snooze(
            ORG_ID, SnoozeCredentials(password=MEMBER_PASSWORD), participant_id=bola.id
        )


@pytest.mark.asyncio
async def test_snoozing_twice_reports_not_on_main_list(services, club):
    await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))

    with pytest.raises(NotOnMainListError):
        await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "credentials, error, message",
    [
        (SnoozeCredentials(snooze_code="ZZZZZZ"), AuthenticationError, "Invalid snooze code"),
        (SnoozeCredentials(password="wrong"), AuthenticationError, "Invalid password"),
        (SnoozeCredentials(), ValidationError, "Snooze code is required"),
        (SnoozeCredentials(snooze_code="ZZZZZZ", password="wrong"), ValidationError,
         "Provide either a snooze code or a password, not both"),
    ],
)
async def test_credentials_are_checked(services, club, credentials, error, message):
    with pytest.raises(error) as exc_info:
        await services.snooze.snooze(ORG_ID, credentials)
    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_snooze_allowed_while_closed_but_unsnooze_is_not(services, fixed_clock, club):
    fixed_clock.set(CLOSED_INSTANT)

    await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))

    with pytest.raises(AccessClosedError):
        await services.snooze.unsnooze(ORG_ID, by_code(club.snooze_code))


@pytest.mark.asyncio
async def test_unsnooze_without_snooze(services, club):
    with pytest.raises(NotSnoozedError):
        await services.snooze.unsnooze(ORG_ID, by_code(club.snooze_code))


@pytest.mark.asyncio
async def test_snooze_expires_with_the_period(services, fixed_clock, club):
    await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))
    # Thursday of the following week, before any rollover ran
    fixed_clock.set(datetime(2025, 10, 23, 12, 0, tzinfo=timezone.utc))

    with pytest.raises(NotSnoozedError):
        await services.snooze.unsnooze(ORG_ID, by_code(club.snooze_code))


@pytest.mark.asyncio
async def test_snoozed_name_can_be_taken_meanwhile(services, club):
    await services.snooze.snooze(ORG_ID, by_code(club.snooze_code))
    await services.rsvp.signup(ORG_ID, "ada", "dev-other-ada")

    with pytest.raises(DuplicateNameError):
        await services.snooze.unsnooze(ORG_ID, by_code(club.snooze_code))
