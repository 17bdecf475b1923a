"""Salary cap usage and fee totals for a stacked keeper roster."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from dynastycap.config import DEFAULT_RULES, LeagueRules
from dynastycap.models import Player, RosterEntry, RosterSummary

from .stacking import stack_keeper_rounds


ONE_MILLION = 1_000_000


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def over_by_millions(cap_used: int, threshold: int) -> int:
    """Whole millions over ``threshold``, rounded up; zero when under."""

    return _ceil_div(max(0, cap_used - threshold), ONE_MILLION)


def compute_summary(
    entries: Iterable[RosterEntry],
    players: Mapping[str, Player],
    *,
    trade_delta: int = 0,
    franchise_tags: int = 0,
    base_cap: Optional[int] = None,
    penalty_start: Optional[int] = None,
    penalty_rate_per_m: Optional[int] = None,
    redshirt_fee: Optional[int] = None,
    franchise_tag_fee: Optional[int] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> RosterSummary:
    """Derive cap usage, penalties and fees from roster entries.

    Only KEEP salaries count against the cap. Players missing from ``players``
    contribute nothing.
    """

    base_cap = rules.cap_base if base_cap is None else base_cap
    penalty_start = rules.penalty_start if penalty_start is None else penalty_start
    penalty_rate_per_m = rules.penalty_rate_per_m if penalty_rate_per_m is None else penalty_rate_per_m
    redshirt_fee = rules.redshirt_fee if redshirt_fee is None else redshirt_fee
    franchise_tag_fee = rules.franchise_tag_fee if franchise_tag_fee is None else franchise_tag_fee

    kept: list[str] = []
    redshirts = 0
    int_stashes = 0
    for entry in entries:
        if entry.decision == "KEEP":
            kept.append(entry.player_id)
        elif entry.decision == "REDSHIRT":
            redshirts += 1
        elif entry.decision == "INT_STASH":
            int_stashes += 1

    cap_used = 0
    for player_id in kept:
        player = players.get(player_id)
        if player is not None:
            cap_used += player.salary

    cap_effective = max(rules.cap_floor, min(rules.cap_max, base_cap + trade_delta))

    over_m = over_by_millions(cap_used, penalty_start)
    penalty_dues = over_m * penalty_rate_per_m
    franchise_tag_dues = franchise_tags * franchise_tag_fee
    redshirt_dues = redshirts * redshirt_fee
    first_apron_fee = rules.first_apron_fee if cap_used > rules.first_apron_fee_threshold else 0

    return RosterSummary(
        keepers_count=len(kept),
        redshirts_count=redshirts,
        int_stash_count=int_stashes,
        cap_used=cap_used,
        cap_base=base_cap,
        cap_trade_delta=trade_delta,
        cap_effective=cap_effective,
        over_second_apron_by_m=over_m,
        penalty_dues=penalty_dues,
        franchise_tags=franchise_tags,
        franchise_tag_dues=franchise_tag_dues,
        redshirt_dues=redshirt_dues,
        first_apron_fee=first_apron_fee,
        total_fees=penalty_dues + franchise_tag_dues + redshirt_dues + first_apron_fee,
    )


def summarize_roster(
    entries: Iterable[RosterEntry],
    players: Mapping[str, Player],
    *,
    trade_delta: int = 0,
    rules: LeagueRules = DEFAULT_RULES,
) -> tuple[list[RosterEntry], RosterSummary]:
    """Stack keeper rounds and summarize the result in one step."""

    stacked = stack_keeper_rounds(list(entries), max_round=rules.max_round)
    summary = compute_summary(
        stacked.entries,
        players,
        trade_delta=trade_delta,
        franchise_tags=stacked.franchise_tags,
        rules=rules,
    )
    return stacked.entries, summary
