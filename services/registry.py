"""One place to build every service over a shared store, clock and config."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import Config
from core.clock import Clock, SystemClock
from database.storage import KeyValueStore
from services.admin_service import AdminService
from services.email_schedule import EmailScheduleService
from services.rollover_service import RolloverService
from services.rsvp_service import RsvpService
from services.snooze_service import SnoozeService


@dataclass
class ServiceRegistry:
    rsvp: RsvpService
    snooze: SnoozeService
    rollover: RolloverService
    email: EmailScheduleService
    admin: AdminService


def build_services(store: KeyValueStore, config: Config, clock: Optional[Clock] = None) -> ServiceRegistry:
    clock = clock or SystemClock()
    return ServiceRegistry(
        rsvp=RsvpService(store, clock, config),
        snooze=SnoozeService(store, clock, config),
        rollover=RolloverService(store, clock, config),
        email=EmailScheduleService(store, clock, config),
        admin=AdminService(store, clock, config),
    )
