"""Services package."""

from .access_window import AccessStatus, evaluate_access, minutes_until_close, access_period_from_game
from .periods import current_period_id
from .rebalancer import rebalance, rebalance_roster, sort_by_priority, diff_moves
from .rsvp_service import RsvpService, PublicState, SignupResult, WithdrawResult
from .snooze_service import SnoozeService, SnoozeCredentials, SnoozeResult, UnsnoozeResult, generate_snooze_code
from .rollover_service import RolloverService
from .email_schedule import EmailScheduleService, EmailDecision, EmailReason
from .admin_service import AdminService, CapacityResult, WhitelistResult
from .registry import ServiceRegistry, build_services

__all__ = [
    # Pure engine
    "AccessStatus",
    "evaluate_access",
    "minutes_until_close",
    "access_period_from_game",
    "current_period_id",
    "rebalance",
    "rebalance_roster",
    "sort_by_priority",
    "diff_moves",
    # Services
    "RsvpService",
    "PublicState",
    "SignupResult",
    "WithdrawResult",
    "SnoozeService",
    "SnoozeCredentials",
    "SnoozeResult",
    "UnsnoozeResult",
    "generate_snooze_code",
    "RolloverService",
    "EmailScheduleService",
    "EmailDecision",
    "EmailReason",
    "AdminService",
    "CapacityResult",
    "WhitelistResult",
    "ServiceRegistry",
    "build_services",
]
