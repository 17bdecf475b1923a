"""Keeper declarations, cap summaries and the canonical roster aggregate."""

from __future__ import annotations

from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .player import PlayerSlot


Decision = Literal["KEEP", "REDSHIRT", "INT_STASH", "DROP"]


class RosterEntry(BaseModel):
    """One team's declared intent for one player for a season."""

    player_id: str = Field(..., min_length=1)
    decision: Decision
    base_round: Optional[int] = Field(default=None, ge=1, le=14)
    keeper_round: Optional[int] = Field(default=None, ge=1, le=14)
    needs_review: bool = False

    model_config = ConfigDict(frozen=True)


class RosterSummary(BaseModel):
    keepers_count: int = 0
    redshirts_count: int = 0
    int_stash_count: int = 0
    cap_used: int = 0
    cap_base: int = 0
    cap_trade_delta: int = 0
    cap_effective: int = 0
    over_second_apron_by_m: int = 0
    penalty_dues: int = 0
    franchise_tags: int = 0
    franchise_tag_dues: int = 0
    redshirt_dues: int = 0
    first_apron_fee: int = 0
    total_fees: int = 0

    model_config = ConfigDict(frozen=True)


class CanonicalRoster(BaseModel):
    """Authoritative player-to-slot mapping for one team and season.

    ``benched`` is a sub-selection of ``active``; every other collection is
    disjoint. The per-player ownership view and the per-team slot arrays are
    both projections of this aggregate.
    """

    team_id: str
    active: Tuple[str, ...] = ()
    ir: Tuple[str, ...] = ()
    redshirt: Tuple[str, ...] = ()
    international: Tuple[str, ...] = ()
    benched: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    def player_ids(self) -> Tuple[str, ...]:
        return (*self.active, *self.ir, *self.redshirt, *self.international)

    def player_slots(self) -> Dict[str, PlayerSlot]:
        """Ownership projection: player id -> slot written on the player record."""

        benched = set(self.benched)
        slots: Dict[str, PlayerSlot] = {}
        for player_id in self.active:
            slots[player_id] = "bench" if player_id in benched else "active"
        for player_id in self.ir:
            slots[player_id] = "ir"
        for player_id in self.redshirt:
            slots[player_id] = "redshirt"
        for player_id in self.international:
            slots[player_id] = "international"
        return slots

    def slot_arrays(self) -> Dict[str, list[str]]:
        return {
            "active": list(self.active),
            "ir": list(self.ir),
            "redshirt": list(self.redshirt),
            "international": list(self.international),
            "benched": list(self.benched),
        }

    def contains(self, player_id: str) -> bool:
        return player_id in self.player_ids()
