"""Typed entities for organization state, serialized as camelCase JSON."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from core.clock import from_iso, to_iso
from core.constants import (
    AccessDefaults,
    EmailDefaults,
    ListType,
    Recurrence,
    RsvpDefaults,
)

ParticipantId = Union[int, float, str]


@dataclass(frozen=True, slots=True)
class Participant:
    id: ParticipantId
    name: str
    device_id: Optional[str]
    timestamp: datetime
    is_whitelisted: bool = False

    @property
    def name_key(self) -> str:
        return self.name.lower()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "timestamp": to_iso(self.timestamp),
            "deviceId": self.device_id,
        }
        if self.is_whitelisted:
            data["isWhitelisted"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Participant:
        return cls(
            id=data["id"],
            name=data["name"],
            device_id=data.get("deviceId"),
            timestamp=from_iso(data["timestamp"]),
            is_whitelisted=bool(data.get("isWhitelisted", False)),
        )


@dataclass(slots=True)
class Roster:
    main_list: List[Participant] = field(default_factory=list)
    waitlist: List[Participant] = field(default_factory=list)

    def everyone(self) -> List[Participant]:
        return [*self.main_list, *self.waitlist]

    def is_empty(self) -> bool:
        return not self.main_list and not self.waitlist

    def has_device(self, device_id: str) -> bool:
        return any(p.device_id == device_id for p in self.everyone())

    def has_name(self, name: str) -> bool:
        key = name.lower()
        return any(p.name_key == key for p in self.everyone())

    def find(self, participant_id: ParticipantId, in_waitlist: bool = False) -> Optional[Participant]:
        people = self.waitlist if in_waitlist else self.main_list
        return next((p for p in people if p.id == participant_id), None)

    def locate(self, participant_id: ParticipantId) -> Optional[Tuple[ListType, int]]:
        """Return the list and 1-based position holding ``participant_id``."""
        for index, person in enumerate(self.main_list):
            if person.id == participant_id:
                return ListType.MAIN, index + 1
        for index, person in enumerate(self.waitlist):
            if person.id == participant_id:
                return ListType.WAITLIST, index + 1
        return None

    def copy(self) -> Roster:
        return Roster(list(self.main_list), list(self.waitlist))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mainList": [p.to_dict() for p in self.main_list],
            "waitlist": [p.to_dict() for p in self.waitlist],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Roster:
        data = data or {}
        return cls(
            main_list=[Participant.from_dict(p) for p in data.get("mainList", [])],
            waitlist=[Participant.from_dict(p) for p in data.get("waitlist", [])],
        )


@dataclass(frozen=True, slots=True)
class AccessPeriod:
    """Recurring access window on a week-local clock (day 0 is Sunday)."""

    enabled: bool = True
    start_day: int = AccessDefaults.START_DAY
    start_hour: int = AccessDefaults.START_HOUR
    start_minute: int = AccessDefaults.START_MINUTE
    end_day: int = AccessDefaults.END_DAY
    end_hour: int = AccessDefaults.END_HOUR
    end_minute: int = AccessDefaults.END_MINUTE
    timezone: str = AccessDefaults.TIMEZONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "startDay": self.start_day,
            "startHour": self.start_hour,
            "startMinute": self.start_minute,
            "endDay": self.end_day,
            "endHour": self.end_hour,
            "endMinute": self.end_minute,
            "timezone": self.timezone,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_timezone: str = AccessDefaults.TIMEZONE) -> AccessPeriod:
        return cls(
            enabled=bool(data.get("enabled", False)),
            start_day=int(data.get("startDay", AccessDefaults.START_DAY)),
            start_hour=int(data.get("startHour", AccessDefaults.START_HOUR)),
            start_minute=int(data.get("startMinute", AccessDefaults.START_MINUTE)),
            end_day=int(data.get("endDay", AccessDefaults.END_DAY)),
            end_hour=int(data.get("endHour", AccessDefaults.END_HOUR)),
            end_minute=int(data.get("endMinute", AccessDefaults.END_MINUTE)),
            timezone=data.get("timezone") or default_timezone,
        )


@dataclass(frozen=True, slots=True)
class GameInfo:
    """When the event itself happens; drives period ids and monthly windows."""

    enabled: bool = False
    recurrence: Recurrence = Recurrence.WEEKLY
    game_day: int = 0
    monthly_occurrence: Union[int, str] = 1
    start_hour: int = 17
    start_minute: int = 0
    end_hour: int = 19
    end_minute: int = 0
    # location, rules, weather and other display-only blocks
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.extras,
            "enabled": self.enabled,
            "recurrence": self.recurrence.value,
            "gameDay": self.game_day,
            "monthlyOccurrence": self.monthly_occurrence,
            "startHour": self.start_hour,
            "startMinute": self.start_minute,
            "endHour": self.end_hour,
            "endMinute": self.end_minute,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GameInfo:
        known = {
            "enabled", "recurrence", "gameDay", "monthlyOccurrence",
            "startHour", "startMinute", "endHour", "endMinute",
        }
        occurrence = data.get("monthlyOccurrence") or 1
        if occurrence != "last":
            occurrence = int(occurrence)
        return cls(
            enabled=bool(data.get("enabled", False)),
            recurrence=Recurrence(data.get("recurrence") or Recurrence.WEEKLY.value),
            game_day=int(data.get("gameDay") or 0),
            monthly_occurrence=occurrence,
            start_hour=int(data.get("startHour", 17)),
            start_minute=int(data.get("startMinute", 0)),
            end_hour=int(data.get("endHour", 19)),
            end_minute=int(data.get("endMinute", 0)),
            extras={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True, slots=True)
class EmailSettings:
    enabled: bool = False
    recipients: Tuple[str, ...] = ()
    cc: Tuple[str, ...] = ()
    bcc: Tuple[str, ...] = ()
    subject: str = EmailDefaults.SUBJECT
    body: str = EmailDefaults.BODY

    @property
    def is_active(self) -> bool:
        """Roster delivery only counts as enabled when someone receives it."""
        return self.enabled and bool(self.recipients)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "recipients": list(self.recipients),
            "cc": list(self.cc),
            "bcc": list(self.bcc),
            "subject": self.subject,
            "body": self.body,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EmailSettings:
        return cls(
            enabled=bool(data.get("enabled", False)),
            recipients=tuple(data.get("recipients") or ()),
            cc=tuple(data.get("cc") or ()),
            bcc=tuple(data.get("bcc") or ()),
            subject=data.get("subject") or EmailDefaults.SUBJECT,
            body=data.get("body") or EmailDefaults.BODY,
        )


@dataclass(frozen=True, slots=True)
class OrgSettings:
    main_list_limit: int = RsvpDefaults.MAIN_LIST_LIMIT
    access_period: AccessPeriod = field(default_factory=AccessPeriod)
    game_info: GameInfo = field(default_factory=GameInfo)
    email: EmailSettings = field(default_factory=EmailSettings)

    @property
    def timezone(self) -> str:
        return self.access_period.timezone

    def with_limit(self, limit: int) -> OrgSettings:
        return replace(self, main_list_limit=limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mainListLimit": self.main_list_limit,
            "accessPeriod": self.access_period.to_dict(),
            "gameInfo": self.game_info.to_dict(),
            "email": self.email.to_dict(),
        }

    @classmethod
    def default(
        cls,
        timezone: str = AccessDefaults.TIMEZONE,
        main_list_limit: int = RsvpDefaults.MAIN_LIST_LIMIT
    ) -> OrgSettings:
        return cls(main_list_limit=main_list_limit, access_period=AccessPeriod(timezone=timezone))

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        default_timezone: str = AccessDefaults.TIMEZONE,
        default_limit: int = RsvpDefaults.MAIN_LIST_LIMIT
    ) -> OrgSettings:
        # A stored settings object without an accessPeriod block is always open
        access = data.get("accessPeriod")
        return cls(
            main_list_limit=int(data.get("mainListLimit") or default_limit),
            access_period=(
                AccessPeriod.from_dict(access, default_timezone)
                if access is not None
                else AccessPeriod(enabled=False, timezone=default_timezone)
            ),
            game_info=GameInfo.from_dict(data.get("gameInfo") or {}),
            email=EmailSettings.from_dict(data.get("email") or {}),
        )


@dataclass(frozen=True, slots=True)
class WhitelistEntry:
    name: str
    device_id: Optional[str] = None
    snooze_code: Optional[str] = None
    email: Optional[str] = None
    added_at: Optional[str] = None

    @property
    def name_key(self) -> str:
        return self.name.lower()

    def matches(self, name: str, device_id: Optional[str]) -> bool:
        return self.name_key == name.lower() or (
            self.device_id is not None and self.device_id == device_id
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.device_id:
            data["deviceId"] = self.device_id
        if self.snooze_code:
            data["snoozeCode"] = self.snooze_code
        if self.email:
            data["email"] = self.email
        if self.added_at:
            data["addedAt"] = self.added_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WhitelistEntry:
        return cls(
            name=data["name"],
            device_id=data.get("deviceId"),
            snooze_code=data.get("snoozeCode"),
            email=data.get("email"),
            added_at=data.get("addedAt"),
        )


@dataclass(frozen=True, slots=True)
class SnoozeEntry:
    name_key: str
    snapshot: Participant

    def to_dict(self) -> Dict[str, Any]:
        return {"nameLC": self.name_key, "snapshot": self.snapshot.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SnoozeEntry:
        snapshot = Participant.from_dict(data["snapshot"])
        return cls(name_key=data.get("nameLC") or snapshot.name_key, snapshot=snapshot)


@dataclass(slots=True)
class SnoozeRecord:
    period_id: Optional[str] = None
    entries: List[SnoozeEntry] = field(default_factory=list)

    def find(self, name_key: str) -> Optional[SnoozeEntry]:
        return next((e for e in self.entries if e.name_key == name_key), None)

    def names(self) -> List[str]:
        return [entry.snapshot.name for entry in self.entries]

    def to_dict(self) -> Dict[str, Any]:
        # weekId/names are the historical storage field names
        return {"weekId": self.period_id, "names": [e.to_dict() for e in self.entries]}


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    period_id: str
    archived_at: datetime
    main_list: Tuple[Participant, ...]
    waitlist: Tuple[Participant, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekId": self.period_id,
            "archivedAt": to_iso(self.archived_at),
            "mainList": [p.to_dict() for p in self.main_list],
            "waitlist": [p.to_dict() for p in self.waitlist],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArchiveEntry:
        return cls(
            period_id=data.get("weekId") or RsvpDefaults.UNKNOWN_PERIOD,
            archived_at=from_iso(data["archivedAt"]),
            main_list=tuple(Participant.from_dict(p) for p in data.get("mainList", [])),
            waitlist=tuple(Participant.from_dict(p) for p in data.get("waitlist", [])),
        )


@dataclass(frozen=True, slots=True)
class DropoutEntry:
    name: str
    timestamp: datetime
    list_type: ListType
    period_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "timestamp": to_iso(self.timestamp),
            "list": self.list_type.value,
            "periodId": self.period_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DropoutEntry:
        return cls(
            name=data["name"],
            timestamp=from_iso(data["timestamp"]),
            list_type=ListType(data.get("list", ListType.MAIN.value)),
            period_id=data.get("periodId") or RsvpDefaults.UNKNOWN_PERIOD,
        )


@dataclass(frozen=True, slots=True)
class EmailStatus:
    period_id: str
    sent_at: datetime
    recipients: Tuple[str, ...]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "periodId": self.period_id,
            "sentAt": to_iso(self.sent_at),
            "recipients": list(self.recipients),
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EmailStatus:
        return cls(
            period_id=data["periodId"],
            sent_at=from_iso(data["sentAt"]),
            recipients=tuple(data.get("recipients") or ()),
            count=int(data.get("count", 0)),
        )
