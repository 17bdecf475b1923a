"""Catalog models shared across keeper, trade and integrity layers."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


PlayerSlot = Literal["active", "ir", "redshirt", "international", "bench"]

VALID_SLOTS: tuple[str, ...] = ("active", "ir", "redshirt", "international", "bench")


class Player(BaseModel):
    """League catalog entry for one player."""

    player_id: str = Field(..., min_length=1)
    name: str = ""
    salary: int = Field(default=0, ge=0)
    is_rookie: bool = False
    redshirt_eligible: bool = False
    int_eligible: bool = False
    is_international_stash: bool = False
    prior_year_round: Optional[int] = Field(default=None, ge=1, le=14)
    rookie_round: Optional[int] = Field(default=None, ge=1, le=3)
    rookie_pick: Optional[int] = Field(default=None, ge=1, le=12)
    team_id: Optional[str] = None
    # Kept as a plain string so drifted values can still be loaded and reported.
    slot: str = "active"

    model_config = ConfigDict(frozen=True)

    @property
    def has_rookie_draft_info(self) -> bool:
        return self.rookie_round is not None and self.rookie_pick is not None


class Team(BaseModel):
    team_id: str = Field(..., min_length=1)
    league_id: str
    name: str = ""
    trade_delta: int = Field(default=0, ge=-40_000_000, le=40_000_000)
    max_keepers: int = Field(default=8, ge=0)

    model_config = ConfigDict(frozen=True)
