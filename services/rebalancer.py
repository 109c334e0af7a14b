"""Priority ordering and main list / waitlist partitioning.

This is the single source of truth for list order: whitelisted members
first, then earliest signup first. Every mutation funnels through
``rebalance`` instead of inserting at a computed position.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from database.models import Participant, Roster


def priority_key(person: Participant) -> Tuple[bool, object]:
    return (not person.is_whitelisted, person.timestamp)


def sort_by_priority(people: Iterable[Participant]) -> List[Participant]:
    """Stable sort: whitelisted before regular, then by signup time."""
    return sorted(people, key=priority_key)


def rebalance(main_list: Sequence[Participant], waitlist: Sequence[Participant], limit: int) -> Roster:
    """Merge both lists, sort by priority and split at ``limit``.

    Pure and idempotent: rebalancing a rebalanced roster with the same
    limit returns an equal roster.
    """
    ordered = sort_by_priority([*main_list, *waitlist])
    return Roster(main_list=ordered[:limit], waitlist=ordered[limit:])


def rebalance_roster(roster: Roster, limit: int) -> Roster:
    return rebalance(roster.main_list, roster.waitlist, limit)


def diff_moves(before: Roster, after: Roster) -> Tuple[List[Participant], List[Participant]]:
    """People promoted into and demoted out of the main list."""
    before_main = {p.id for p in before.main_list}
    promoted = [p for p in after.main_list if p.id not in before_main]
    demoted = [p for p in after.waitlist if p.id in before_main]
    return promoted, demoted
