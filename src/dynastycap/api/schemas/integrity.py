from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from dynastycap.models import IntegrityIssue


class IntegrityResponse(BaseModel):
    league_id: str
    season_year: int
    summary: str
    issues: List[IntegrityIssue]


class TeamWriteFailureResponse(BaseModel):
    team_id: str | None
    operation: str
    error: str
    player_id: str | None = None


class RebuildResponse(BaseModel):
    league_id: str
    season_year: int
    success: bool
    teams_fixed: int
    fa_pickups_restored: int
    total_players_assigned: int
    failures: List[TeamWriteFailureResponse] = Field(default_factory=list)
    message: str | None = None


class RepairResponse(BaseModel):
    league_id: str
    season_year: int
    slots_reset: int
    team_ids_cleared: int
    failures: List[TeamWriteFailureResponse] = Field(default_factory=list)
    message: str
    remaining_issues: List[IntegrityIssue] = Field(default_factory=list)
