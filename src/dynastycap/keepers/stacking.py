"""Keeper round stacking.

Each kept player costs a draft round. When several keepers share a base round
they are stacked: each one takes the first free round at or after its base
round, and a round is never handed out twice for the same team.

Precedence (the "Round-1 first" rule):

1. The first base-Round-1 keeper, in input order, keeps Round 1 for free.
2. Every other base-Round-1 keeper is franchise tagged.
3. Keepers with base rounds 2-14 are placed next, ascending by base round and
   in input order within a base round.
4. Franchise-tagged keepers are placed last, each taking the first free round
   from Round 2 on, so they can never bump a Round-2+ keeper down the board.

With base rounds (1, 1, 2) this gives rounds (1, 3, 2) and one franchise tag.
The other rule found in older league tooling walked the board top-down and
would have produced (1, 2, 3); it is not used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from dynastycap.config import DEFAULT_RULES
from dynastycap.models import Player, RosterEntry


logger = logging.getLogger(__name__)

FIRST_ROUND = 1

_ROOKIE_FIRST_ROUND_BASE = ((3, 5), (6, 6), (9, 7), (12, 8))
_ROOKIE_LATE_ROUND_BASE = 14


@dataclass(frozen=True)
class StackingResult:
    entries: List[RosterEntry]
    franchise_tags: int

    @property
    def review_player_ids(self) -> List[str]:
        return [entry.player_id for entry in self.entries if entry.needs_review]


def _claim_round(start: int, occupied: set[int], max_round: int) -> Optional[int]:
    target = start
    while target <= max_round:
        if target not in occupied:
            occupied.add(target)
            return target
        target += 1
    return None


def stack_keeper_rounds(entries: Sequence[RosterEntry], *, max_round: int = DEFAULT_RULES.max_round) -> StackingResult:
    """Assign a unique final keeper round to every KEEP entry.

    Returns fresh entries in input order; the input sequence is not touched.
    """

    participants = [
        index
        for index, entry in enumerate(entries)
        if entry.decision == "KEEP" and entry.base_round is not None
    ]
    round_one = [index for index in participants if entries[index].base_round == FIRST_ROUND]
    others = sorted(
        (index for index in participants if entries[index].base_round != FIRST_ROUND),
        key=lambda index: entries[index].base_round or 0,
    )

    occupied: set[int] = set()
    assigned: dict[int, int] = {}
    overflow: set[int] = set()

    def place(index: int, start: int) -> None:
        target = _claim_round(start, occupied, max_round)
        if target is None:
            logger.warning(
                "No free keeper round for %s (base round %s); pinning to round %d for review",
                entries[index].player_id,
                entries[index].base_round,
                max_round,
            )
            overflow.add(index)
            target = max_round
        assigned[index] = target

    tagged: list[int] = []
    if round_one:
        first, *tagged = round_one
        place(first, FIRST_ROUND)

    for index in others:
        place(index, entries[index].base_round or FIRST_ROUND)

    for index in tagged:
        place(index, FIRST_ROUND + 1)

    stacked = [
        entry.model_copy(
            update={
                "keeper_round": assigned.get(index),
                "needs_review": index in overflow,
            }
        )
        for index, entry in enumerate(entries)
    ]
    return StackingResult(entries=stacked, franchise_tags=len(tagged))


def base_keeper_round(player: Player) -> Optional[int]:
    """Derive the base keeper round for a player before stacking.

    Rookies use their rookie draft slot; returning players cost one round
    earlier than last season. ``None`` means an admin has to set it by hand.
    """

    if player.is_rookie and player.has_rookie_draft_info:
        if player.rookie_round == 1:
            for last_pick, base in _ROOKIE_FIRST_ROUND_BASE:
                if (player.rookie_pick or 0) <= last_pick:
                    return base
        elif player.rookie_round in (2, 3):
            return _ROOKIE_LATE_ROUND_BASE

    if player.prior_year_round:
        return max(FIRST_ROUND, player.prior_year_round - 1)

    return None


def apply_base_rounds(entries: Iterable[RosterEntry], players: Mapping[str, Player]) -> List[RosterEntry]:
    """Fill in missing base rounds from the player catalog."""

    filled: List[RosterEntry] = []
    for entry in entries:
        player = players.get(entry.player_id)
        if entry.base_round is None and player is not None:
            derived = base_keeper_round(player)
            if derived is not None:
                entry = entry.model_copy(update={"base_round": derived})
        filled.append(entry)
    return filled
