"""Load and save whole-league JSON snapshots for the CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from dynastycap.models import CanonicalRoster, DraftPick, Player, RosterEntry, Team, TradeAsset
from dynastycap.persistence import LeagueStore


@dataclass
class LeagueSnapshot:
    league_id: str
    season_year: int
    teams: List[Team] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)
    keeper_entries: Dict[str, List[RosterEntry]] = field(default_factory=dict)
    draft_picks: List[DraftPick] = field(default_factory=list)
    trades: List[List[TradeAsset]] = field(default_factory=list)
    season_rosters: List[CanonicalRoster] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "LeagueSnapshot":
        data = json.loads(path.read_text(encoding="utf-8"))
        league_id = data["league_id"]
        return cls(
            league_id=league_id,
            season_year=int(data["season_year"]),
            teams=[Team.model_validate({"league_id": league_id, **item}) for item in data.get("teams", [])],
            players=[Player.model_validate(item) for item in data.get("players", [])],
            keeper_entries={
                team_id: [RosterEntry.model_validate(item) for item in entries]
                for team_id, entries in data.get("keeper_entries", {}).items()
            },
            draft_picks=[
                DraftPick.model_validate({"season_year": data["season_year"], **item})
                for item in data.get("draft_picks", [])
            ],
            trades=[[TradeAsset.model_validate(item) for item in trade] for trade in data.get("trades", [])],
            season_rosters=[CanonicalRoster.model_validate(item) for item in data.get("season_rosters", [])],
        )

    def save(self, path: Path) -> None:
        payload = {
            "league_id": self.league_id,
            "season_year": self.season_year,
            "teams": [team.model_dump(exclude={"league_id"}) for team in self.teams],
            "players": [player.model_dump() for player in self.players],
            "keeper_entries": {
                team_id: [entry.model_dump() for entry in entries]
                for team_id, entries in self.keeper_entries.items()
            },
            "draft_picks": [pick.model_dump(exclude={"season_year"}) for pick in self.draft_picks],
            "trades": [[asset.model_dump() for asset in trade] for trade in self.trades],
            "season_rosters": [roster.model_dump() for roster in self.season_rosters],
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def write_to(self, store: LeagueStore) -> None:
        for team in self.teams:
            store.save_team(team)
        for player in self.players:
            store.save_player(self.league_id, player)
        for team_id, entries in self.keeper_entries.items():
            store.save_roster_entries(self.league_id, team_id, self.season_year, entries, status="submitted")
        for pick in self.draft_picks:
            store.save_draft_pick(self.league_id, pick)
        for index, trade in enumerate(self.trades):
            store.record_executed_trade(
                self.league_id,
                self.season_year,
                trade,
                trade_id=f"{self.league_id}-{self.season_year}-{index:04d}",
            )
        for roster in self.season_rosters:
            store.persist_canonical_roster(self.league_id, self.season_year, roster)
