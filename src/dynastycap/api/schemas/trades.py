from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from dynastycap.models import TeamCapImpact, TradeAsset


class CapImpactRequest(BaseModel):
    season_year: int
    assets: List[TradeAsset] = Field(..., min_length=1)


class CapImpactResponse(BaseModel):
    league_id: str
    season_year: int
    impacts: List[TeamCapImpact]
