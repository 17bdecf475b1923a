from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from dynastycap.models import Player, RosterEntry, RosterSummary


class StackRequest(BaseModel):
    entries: List[RosterEntry]
    players: List[Player] = Field(default_factory=list)
    trade_delta: int = Field(default=0, ge=-40_000_000, le=40_000_000)
    fill_base_rounds: bool = False


class ValidationIssueResponse(BaseModel):
    level: Literal["error", "warning"]
    field: str
    message: str
    player_id: str | None = None


class StackResponse(BaseModel):
    entries: List[RosterEntry]
    franchise_tags: int
    summary: RosterSummary
    issues: List[ValidationIssueResponse] = Field(default_factory=list)


class TeamSummaryResponse(BaseModel):
    league_id: str
    team_id: str
    season_year: int
    entries: List[RosterEntry]
    summary: RosterSummary
    issues: List[ValidationIssueResponse] = Field(default_factory=list)
