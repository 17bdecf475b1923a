"""Rebuild canonical rosters from a league's transaction history.

The player ownership fields and the per-team slot arrays are both caches. When
they drift, the rebuild throws them away and replays the season's history:

1. keeper declarations seed each team (KEEP -> active, REDSHIRT -> redshirt,
   INT_STASH -> international);
2. drafted players (picks outside keeper slots) join their team's active set;
3. executed trades move players in recorded order;
4. players whose ownership field still names a team, but who were not placed
   by steps 1-3, are treated as free-agent pickups for that team;
5. players no longer in the catalog are dropped;
6. bench and IR selections survive when the player is still on the rebuilt
   active roster.

All reads finish before the first write. Slot arrays are written per team,
then every ownership field in the league is cleared and re-assigned. Write
failures are collected per team and never roll back other teams; re-running
the rebuild is always safe.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from dynastycap.config import lock_timeout
from dynastycap.models import (
    CanonicalRoster,
    DraftPick,
    Player,
    RosterEntry,
    Team,
    TradeAsset,
)
from dynastycap.persistence import LeagueRepository, RepositoryError

from .locks import league_rebuild_lock


logger = logging.getLogger(__name__)

AuditSink = Callable[[str, Mapping[str, Any]], None]

_SET_BY_DECISION = {"KEEP": "active", "REDSHIRT": "redshirt", "INT_STASH": "international"}
_SET_BY_ASSET = {"redshirt": "redshirt", "int_stash": "international"}


def log_audit_event(event: str, payload: Mapping[str, Any]) -> None:
    logger.info("roster rebuild event=%s %s", event, dict(payload))


@dataclass(frozen=True)
class TeamWriteFailure:
    team_id: Optional[str]
    operation: str
    error: str
    player_id: Optional[str] = None


@dataclass(frozen=True)
class RebuildResult:
    success: bool
    teams_fixed: int = 0
    fa_pickups_restored: int = 0
    total_players_assigned: int = 0
    failures: List[TeamWriteFailure] = field(default_factory=list)
    message: Optional[str] = None


@dataclass(frozen=True)
class RebuildPlan:
    rosters: Dict[str, CanonicalRoster]
    fa_pickups: List[tuple[str, str]]

    @property
    def total_players(self) -> int:
        return sum(len(roster.player_ids()) for roster in self.rosters.values())


class _IntendedRoster:
    """Ordered working sets for one team."""

    def __init__(self) -> None:
        self.sets: Dict[str, Dict[str, None]] = {"active": {}, "redshirt": {}, "international": {}}

    def add(self, player_id: str, target: str) -> None:
        self.discard(player_id)
        self.sets[target][player_id] = None

    def discard(self, player_id: str) -> None:
        for members in self.sets.values():
            members.pop(player_id, None)

    def __contains__(self, player_id: str) -> bool:
        return any(player_id in members for members in self.sets.values())


def plan_rebuild(
    teams: Sequence[Team],
    players: Sequence[Player],
    keeper_entries: Mapping[str, Sequence[RosterEntry]],
    draft_picks: Sequence[DraftPick],
    trade_assets: Sequence[TradeAsset],
    existing_rosters: Mapping[str, CanonicalRoster],
) -> RebuildPlan:
    """Work out the canonical roster of every team without touching storage."""

    intended: Dict[str, _IntendedRoster] = {team.team_id: _IntendedRoster() for team in teams}

    for team_id, roster in intended.items():
        for entry in keeper_entries.get(team_id, ()):
            target = _SET_BY_DECISION.get(entry.decision)
            if target is not None:
                roster.add(entry.player_id, target)

    for pick in draft_picks:
        if pick.is_keeper_slot or not pick.player_id:
            continue
        roster = intended.get(pick.team_id)
        if roster is None:
            logger.warning("Draft pick %d.%d names unknown team %s", pick.round, pick.pick, pick.team_id)
            continue
        roster.add(pick.player_id, "active")

    for asset in trade_assets:
        if asset.is_pick:
            continue
        source = intended.get(asset.from_team_id)
        if source is not None:
            source.discard(asset.asset_id)
        destination = intended.get(asset.to_team_id)
        if destination is None:
            logger.warning("Trade moves %s to unknown team %s", asset.asset_id, asset.to_team_id)
            continue
        destination.add(asset.asset_id, _SET_BY_ASSET.get(asset.asset_type, "active"))

    fa_pickups: List[tuple[str, str]] = []
    for player in players:
        if not player.team_id or player.team_id not in intended:
            continue
        if any(player.player_id in roster for roster in intended.values()):
            continue
        intended[player.team_id].add(player.player_id, "active")
        fa_pickups.append((player.player_id, player.team_id))

    catalog = {player.player_id for player in players}
    rosters: Dict[str, CanonicalRoster] = {}
    for team_id, roster in intended.items():
        active = [pid for pid in roster.sets["active"] if pid in catalog]
        existing = existing_rosters.get(team_id)
        ir: List[str] = []
        benched: List[str] = []
        if existing is not None:
            ir = [pid for pid in existing.ir if pid in active]
            active = [pid for pid in active if pid not in ir]
            benched = [pid for pid in existing.benched if pid in active]
        rosters[team_id] = CanonicalRoster(
            team_id=team_id,
            active=tuple(active),
            ir=tuple(ir),
            redshirt=tuple(pid for pid in roster.sets["redshirt"] if pid in catalog),
            international=tuple(pid for pid in roster.sets["international"] if pid in catalog),
            benched=tuple(benched),
        )
    return RebuildPlan(rosters=rosters, fa_pickups=fa_pickups)


class RosterReconciler:
    """Authoritative repair path for a league's roster state."""

    def __init__(
        self,
        repository: LeagueRepository,
        *,
        audit_sink: AuditSink | None = None,
        lock_timeout_s: float | None = None,
    ):
        self.repository = repository
        self.audit_sink = audit_sink or log_audit_event
        self.lock_timeout_s = lock_timeout() if lock_timeout_s is None else lock_timeout_s

    def rebuild(self, league_id: str, season_year: int) -> RebuildResult:
        """Rebuild every team's roster in ``league_id`` for ``season_year``.

        Raises:
            RebuildInProgressError: another rebuild of the league is running.
        """

        with league_rebuild_lock(league_id, timeout_s=self.lock_timeout_s):
            return self._rebuild(league_id, season_year)

    def _emit(self, event: str, **payload: Any) -> None:
        try:
            self.audit_sink(event, payload)
        except RepositoryError as exc:
            logger.warning("Could not record audit event %s: %s", event, exc)

    def _rebuild(self, league_id: str, season_year: int) -> RebuildResult:
        self._emit("rebuild_started", league_id=league_id, season_year=season_year)
        try:
            teams = self.repository.load_teams(league_id)
            players = self.repository.load_players(league_id)
            keeper_entries = {
                team.team_id: self.repository.load_roster_entries(league_id, team.team_id, season_year)
                for team in teams
            }
            draft_picks = self.repository.load_draft_results(league_id, season_year)
            trade_assets = self.repository.load_executed_trades(league_id, season_year)
            existing = self.repository.load_season_rosters(league_id, season_year)
        except RepositoryError as exc:
            logger.error("Roster rebuild aborted for league %s before any write: %s", league_id, exc)
            self._emit("rebuild_aborted", league_id=league_id, operation=exc.operation, error=str(exc))
            return RebuildResult(success=False, message=f"Failed to load league data: {exc}")

        plan = plan_rebuild(teams, players, keeper_entries, draft_picks, trade_assets, existing)
        for player_id, team_id in plan.fa_pickups:
            self._emit("fa_pickup_restored", league_id=league_id, team_id=team_id, player_id=player_id)

        failures: List[TeamWriteFailure] = []

        def record_failure(team_id: Optional[str], exc: RepositoryError) -> None:
            failure = TeamWriteFailure(
                team_id=team_id,
                operation=exc.operation,
                error=str(exc),
                player_id=exc.player_id,
            )
            failures.append(failure)
            self._emit(
                "team_write_failed",
                league_id=league_id,
                team_id=team_id,
                operation=exc.operation,
                player_id=exc.player_id,
                error=str(exc),
            )

        for team_id, roster in plan.rosters.items():
            try:
                self.repository.persist_canonical_roster(league_id, season_year, roster)
            except RepositoryError as exc:
                record_failure(team_id, exc)

        planned_team = {
            player_id: team_id for team_id, roster in plan.rosters.items() for player_id in roster.player_ids()
        }
        for player in players:
            try:
                self.repository.persist_player_ownership(player.player_id, None, "active")
            except RepositoryError as exc:
                record_failure(planned_team.get(player.player_id), exc)

        for team_id, roster in plan.rosters.items():
            for player_id, slot in roster.player_slots().items():
                try:
                    self.repository.persist_player_ownership(player_id, team_id, slot)
                except RepositoryError as exc:
                    record_failure(team_id, exc)

        failed_teams = {failure.team_id for failure in failures}
        teams_fixed = 0
        for team_id, roster in plan.rosters.items():
            if team_id in failed_teams:
                continue
            teams_fixed += 1
            self._emit(
                "team_rebuilt",
                league_id=league_id,
                team_id=team_id,
                active=len(roster.active),
                ir=len(roster.ir),
                redshirt=len(roster.redshirt),
                international=len(roster.international),
                benched=len(roster.benched),
            )

        result = RebuildResult(
            success=True,
            teams_fixed=teams_fixed,
            fa_pickups_restored=len(plan.fa_pickups),
            total_players_assigned=plan.total_players,
            failures=failures,
            message=(
                f"Rebuilt {teams_fixed}/{len(plan.rosters)} teams, "
                f"{plan.total_players} players assigned, {len(plan.fa_pickups)} FA pickups restored"
            ),
        )
        self._emit(
            "rebuild_completed",
            league_id=league_id,
            season_year=season_year,
            teams_fixed=result.teams_fixed,
            fa_pickups_restored=result.fa_pickups_restored,
            total_players_assigned=result.total_players_assigned,
            failures=len(failures),
        )
        if failures:
            logger.warning(
                "Roster rebuild for league %s finished with %d write failure(s); re-run to reconcile",
                league_id,
                len(failures),
            )
        return result
