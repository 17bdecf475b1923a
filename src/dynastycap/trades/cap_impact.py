"""Before/after cap projections for a proposed multi-team trade.

Nothing here is persisted. Incoming players have no base-round history with
their new team, so they are added with a provisional base round
(``LeagueRules.incoming_base_round``). The projected keeper rounds after the
trade are an approximation, not what the next stacking pass is guaranteed to
produce.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from dynastycap.config import DEFAULT_RULES, LeagueRules
from dynastycap.keepers import over_by_millions, summarize_roster
from dynastycap.models import (
    Decision,
    Player,
    RosterEntry,
    RosterSummary,
    TeamCapImpact,
    TradeAsset,
)


_DECISION_BY_ASSET: Dict[str, Decision] = {
    "redshirt": "REDSHIRT",
    "int_stash": "INT_STASH",
    "keeper": "KEEP",
}


def _millions(value: int) -> str:
    return f"${value // 1_000_000}M"


def involved_team_ids(assets: Iterable[TradeAsset]) -> List[str]:
    """Team ids in order of first appearance across the assets."""

    seen: Dict[str, None] = {}
    for asset in assets:
        seen.setdefault(asset.from_team_id, None)
        seen.setdefault(asset.to_team_id, None)
    return list(seen)


def entries_after_trade(
    team_id: str,
    entries: Sequence[RosterEntry],
    assets: Sequence[TradeAsset],
    *,
    rules: LeagueRules = DEFAULT_RULES,
) -> List[RosterEntry]:
    outgoing = {asset.asset_id for asset in assets if asset.from_team_id == team_id and not asset.is_pick}
    after = [entry for entry in entries if entry.player_id not in outgoing]
    for asset in assets:
        if asset.to_team_id != team_id or asset.is_pick:
            continue
        after.append(
            RosterEntry(
                player_id=asset.asset_id,
                decision=_DECISION_BY_ASSET.get(asset.asset_type, "KEEP"),
                base_round=rules.incoming_base_round,
            )
        )
    return after


def cap_warnings(before: RosterSummary, after: RosterSummary, *, rules: LeagueRules = DEFAULT_RULES) -> List[str]:
    """Threshold-crossing notices; every condition is checked independently."""

    warnings: List[str] = []
    first_apron = rules.warn_first_apron
    second_apron = rules.warn_second_apron

    if after.cap_used > first_apron >= before.cap_used:
        warnings.append(
            f"Crosses first apron ({_millions(first_apron)}) - ${rules.first_apron_fee} one-time fee"
        )
    if after.cap_used > second_apron >= before.cap_used:
        warnings.append(
            f"Crosses second apron ({_millions(second_apron)}) - "
            f"${rules.penalty_rate_per_m}/M penalty applies"
        )
    if after.cap_used > second_apron and before.cap_used > second_apron:
        before_over = over_by_millions(before.cap_used, second_apron)
        after_over = over_by_millions(after.cap_used, second_apron)
        if after_over > before_over:
            warnings.append(
                "Increases second apron penalty from "
                f"${before_over * rules.penalty_rate_per_m} to ${after_over * rules.penalty_rate_per_m}"
            )
    if after.cap_used > rules.warn_hard_ceiling:
        warnings.append(f"Exceeds hard cap ceiling ({_millions(rules.warn_hard_ceiling)})")
    return warnings


def compute_trade_cap_impact(
    assets: Sequence[TradeAsset],
    rosters: Mapping[str, Sequence[RosterEntry]],
    players: Mapping[str, Player],
    *,
    trade_deltas: Mapping[str, int] | None = None,
    team_names: Mapping[str, str] | None = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> List[TeamCapImpact]:
    """Project the cap consequences of ``assets`` for every involved team."""

    trade_deltas = trade_deltas or {}
    team_names = team_names or {}
    assets = list(assets)

    results: List[TeamCapImpact] = []
    for team_id in involved_team_ids(assets):
        current = list(rosters.get(team_id, ()))
        delta = trade_deltas.get(team_id, 0)

        _, before = summarize_roster(current, players, trade_delta=delta, rules=rules)
        after_entries = entries_after_trade(team_id, current, assets, rules=rules)
        _, after = summarize_roster(after_entries, players, trade_delta=delta, rules=rules)

        salary_out = sum(a.salary for a in assets if a.from_team_id == team_id and not a.is_pick)
        salary_in = sum(a.salary for a in assets if a.to_team_id == team_id and not a.is_pick)

        results.append(
            TeamCapImpact(
                team_id=team_id,
                team_name=team_names.get(team_id, team_id),
                before=before,
                after=after,
                salary_in=salary_in,
                salary_out=salary_out,
                warnings=cap_warnings(before, after, rules=rules),
            )
        )
    return results
