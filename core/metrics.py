"""Prometheus counters for RSVP activity."""

from __future__ import annotations

from prometheus_client import Counter


SIGNUPS = Counter(
    "rsvp_signups_total",
    "Accepted signups by resulting list",
    ["list_type"],
)
WITHDRAWALS = Counter(
    "rsvp_withdrawals_total",
    "Accepted withdrawals by source list",
    ["list_type"],
)
SNOOZE_ACTIONS = Counter(
    "rsvp_snooze_actions_total",
    "Snooze and unsnooze operations",
    ["action"],
)
ROLLOVERS = Counter(
    "rsvp_rollovers_total",
    "Executed period rollovers",
)
REJECTIONS = Counter(
    "rsvp_rejections_total",
    "Rejected RSVP operations by error type",
    ["operation", "error"],
)
ROSTER_EMAILS = Counter(
    "rsvp_roster_emails_total",
    "Roster emails marked as sent",
)
