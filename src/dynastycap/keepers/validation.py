"""Checks run on a keeper roster before the owner submits it."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Literal, Mapping, Optional, Sequence

from dynastycap.config import DEFAULT_RULES
from dynastycap.models import Player, RosterEntry


@dataclass(frozen=True)
class RosterValidationIssue:
    level: Literal["error", "warning"]
    field: str
    message: str
    player_id: Optional[str] = None


def validate_roster(
    entries: Sequence[RosterEntry],
    players: Mapping[str, Player],
    *,
    max_keepers: int = DEFAULT_RULES.max_keepers,
) -> List[RosterValidationIssue]:
    issues: List[RosterValidationIssue] = []

    keepers = [entry for entry in entries if entry.decision == "KEEP"]
    if len(keepers) > max_keepers:
        issues.append(
            RosterValidationIssue(
                level="error",
                field="keepers_count",
                message=f"Cannot keep more than {max_keepers} players. You have {len(keepers)} keepers.",
            )
        )

    for entry in entries:
        player = players.get(entry.player_id)
        if player is None:
            continue
        if entry.decision == "REDSHIRT":
            if player.has_rookie_draft_info:
                if not player.redshirt_eligible:
                    issues.append(
                        RosterValidationIssue(
                            level="error",
                            field="redshirt_eligibility",
                            message=f"{player.name} is not eligible for redshirt.",
                            player_id=player.player_id,
                        )
                    )
            elif not player.is_rookie:
                issues.append(
                    RosterValidationIssue(
                        level="error",
                        field="redshirt_eligibility",
                        message=f"{player.name} is not a rookie and cannot be redshirted.",
                        player_id=player.player_id,
                    )
                )
        elif entry.decision == "INT_STASH":
            if player.has_rookie_draft_info:
                if not player.int_eligible:
                    issues.append(
                        RosterValidationIssue(
                            level="error",
                            field="int_stash_eligibility",
                            message=f"{player.name} is not eligible for international stash.",
                            player_id=player.player_id,
                        )
                    )
            elif not player.is_international_stash:
                issues.append(
                    RosterValidationIssue(
                        level="error",
                        field="int_stash_eligibility",
                        message=f"{player.name} is not an international stash player.",
                        player_id=player.player_id,
                    )
                )

    round_counts = Counter(entry.keeper_round for entry in keepers if entry.keeper_round)
    for keeper_round, count in sorted(round_counts.items()):
        if count > 1:
            issues.append(
                RosterValidationIssue(
                    level="error",
                    field="round_collisions",
                    message=f"Round {keeper_round} has {count} keepers. Re-run keeper stacking to resolve.",
                )
            )

    for entry in keepers:
        player = players.get(entry.player_id)
        if entry.keeper_round is None and player is not None:
            issues.append(
                RosterValidationIssue(
                    level="warning",
                    field="missing_rounds",
                    message=f"{player.name} is marked as KEEP but has no keeper round assigned.",
                    player_id=player.player_id,
                )
            )

    return issues
