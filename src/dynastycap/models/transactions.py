"""Transaction history records and derived findings."""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from .roster import RosterSummary


TradeAssetType = Literal["keeper", "redshirt", "int_stash", "rookie_pick"]

IssueType = Literal[
    "orphaned_id",
    "team_id_mismatch",
    "duplicate",
    "not_in_roster",
    "unknown_team",
    "invalid_slot",
    "free_agent_bad_slot",
]


class TradeAsset(BaseModel):
    asset_type: TradeAssetType
    asset_id: str = Field(..., min_length=1)
    from_team_id: str
    to_team_id: str
    salary: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def is_pick(self) -> bool:
        return self.asset_type == "rookie_pick"


class DraftPick(BaseModel):
    season_year: int
    round: int = Field(..., ge=1)
    pick: int = Field(..., ge=1)
    team_id: str
    player_id: Optional[str] = None
    is_keeper_slot: bool = False

    model_config = ConfigDict(frozen=True)


class TeamCapImpact(BaseModel):
    team_id: str
    team_name: str
    before: RosterSummary
    after: RosterSummary
    salary_in: int
    salary_out: int
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class IntegrityIssue(BaseModel):
    issue_type: IssueType
    player_id: str
    team_ids: Tuple[str, ...] = ()
    player_name: str = ""
    details: str

    model_config = ConfigDict(frozen=True)
