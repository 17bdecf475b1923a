"""REST API for keeper economics and roster integrity."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping

from fastapi import FastAPI, HTTPException, Query

from dynastycap.api.schemas import (
    CapImpactRequest,
    CapImpactResponse,
    IntegrityResponse,
    RebuildResponse,
    RepairResponse,
    StackRequest,
    StackResponse,
    TeamSummaryResponse,
    TeamWriteFailureResponse,
    ValidationIssueResponse,
)
from dynastycap.integrity import (
    REPAIRABLE_ISSUES,
    IntegrityCheckError,
    RebuildInProgressError,
    RosterReconciler,
    log_audit_event,
    repair_league,
    validate_league,
)
from dynastycap.keepers import (
    RosterValidationIssue,
    apply_base_rounds,
    compute_summary,
    stack_keeper_rounds,
    validate_roster,
)
from dynastycap.persistence import LeagueStore, RepositoryError
from dynastycap.trades import compute_trade_cap_impact, involved_team_ids


logger = logging.getLogger("uvicorn.error")

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "dynastycap.sqlite"


def _issue_responses(issues: list[RosterValidationIssue]) -> list[ValidationIssueResponse]:
    return [ValidationIssueResponse(**asdict(issue)) for issue in issues]


def create_app(store: LeagueStore | None = None) -> FastAPI:
    app = FastAPI(title="dynasty-cap")
    store = store or LeagueStore(DEFAULT_DB_PATH)
    app.state.league_store = store

    def audit_sink(event: str, payload: Mapping[str, Any]) -> None:
        log_audit_event(event, payload)
        store.record_audit_event(event, payload)

    reconciler = RosterReconciler(store, audit_sink=audit_sink)
    app.state.reconciler = reconciler

    def _storage_unavailable(exc: RepositoryError) -> HTTPException:
        logger.error("Storage failure during %s: %s", exc.operation, exc)
        return HTTPException(status_code=503, detail=f"Storage unavailable: {exc.operation}")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/keepers/stack", response_model=StackResponse)
    async def stack(request: StackRequest):
        players = {player.player_id: player for player in request.players}
        entries = request.entries
        if request.fill_base_rounds:
            entries = apply_base_rounds(entries, players)
        stacked = stack_keeper_rounds(entries)
        summary = compute_summary(
            stacked.entries,
            players,
            trade_delta=request.trade_delta,
            franchise_tags=stacked.franchise_tags,
        )
        return StackResponse(
            entries=stacked.entries,
            franchise_tags=stacked.franchise_tags,
            summary=summary,
            issues=_issue_responses(validate_roster(stacked.entries, players)),
        )

    @app.post("/leagues/{league_id}/teams/{team_id}/summary", response_model=TeamSummaryResponse)
    async def team_summary(league_id: str, team_id: str, season_year: int = Query(...)):
        try:
            team = store.get_team(league_id, team_id)
            if team is None:
                raise HTTPException(status_code=404, detail="Team not found")
            players = {player.player_id: player for player in store.load_players(league_id)}
            entries = apply_base_rounds(store.load_roster_entries(league_id, team_id, season_year), players)
            stacked = stack_keeper_rounds(entries)
            summary = compute_summary(
                stacked.entries,
                players,
                trade_delta=team.trade_delta,
                franchise_tags=stacked.franchise_tags,
            )
            store.persist_roster_summary(league_id, team_id, season_year, summary)
        except RepositoryError as exc:
            raise _storage_unavailable(exc) from exc
        return TeamSummaryResponse(
            league_id=league_id,
            team_id=team_id,
            season_year=season_year,
            entries=stacked.entries,
            summary=summary,
            issues=_issue_responses(validate_roster(stacked.entries, players, max_keepers=team.max_keepers)),
        )

    @app.post("/leagues/{league_id}/trades/cap-impact", response_model=CapImpactResponse)
    async def trade_cap_impact(league_id: str, request: CapImpactRequest):
        try:
            teams = {team.team_id: team for team in store.load_teams(league_id)}
            missing = [team_id for team_id in involved_team_ids(request.assets) if team_id not in teams]
            if missing:
                raise HTTPException(status_code=404, detail=f"Unknown team(s): {', '.join(missing)}")
            players = {player.player_id: player for player in store.load_players(league_id)}
            rosters = {
                team_id: apply_base_rounds(
                    store.load_roster_entries(league_id, team_id, request.season_year),
                    players,
                )
                for team_id in involved_team_ids(request.assets)
            }
        except RepositoryError as exc:
            raise _storage_unavailable(exc) from exc
        impacts = compute_trade_cap_impact(
            request.assets,
            rosters,
            players,
            trade_deltas={team_id: team.trade_delta for team_id, team in teams.items()},
            team_names={team_id: team.name for team_id, team in teams.items()},
        )
        return CapImpactResponse(league_id=league_id, season_year=request.season_year, impacts=impacts)

    @app.get("/leagues/{league_id}/integrity", response_model=IntegrityResponse)
    async def integrity(league_id: str, season_year: int = Query(...)):
        try:
            report = validate_league(store, league_id, season_year)
        except IntegrityCheckError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return IntegrityResponse(
            league_id=league_id,
            season_year=season_year,
            summary=report.summary,
            issues=report.issues,
        )

    @app.post("/leagues/{league_id}/integrity/repair", response_model=RepairResponse)
    def integrity_repair(league_id: str, season_year: int = Query(...)):
        try:
            report, result = repair_league(
                store,
                league_id,
                season_year,
                lock_timeout_s=reconciler.lock_timeout_s,
            )
        except RebuildInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except IntegrityCheckError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return RepairResponse(
            league_id=league_id,
            season_year=season_year,
            slots_reset=result.slots_reset,
            team_ids_cleared=result.team_ids_cleared,
            failures=[TeamWriteFailureResponse(**asdict(failure)) for failure in result.failures],
            message=result.message,
            remaining_issues=[issue for issue in report.issues if issue.issue_type not in REPAIRABLE_ISSUES],
        )

    # Sync handler: the rebuild holds a blocking per-league lock, so it runs
    # in the threadpool instead of on the event loop.
    @app.post("/leagues/{league_id}/rebuild", response_model=RebuildResponse)
    def rebuild(league_id: str, season_year: int = Query(...)):
        try:
            result = reconciler.rebuild(league_id, season_year)
        except RebuildInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        if not result.success:
            raise HTTPException(status_code=503, detail=result.message or "Rebuild failed")
        return RebuildResponse(
            league_id=league_id,
            season_year=season_year,
            success=result.success,
            teams_fixed=result.teams_fixed,
            fa_pickups_restored=result.fa_pickups_restored,
            total_players_assigned=result.total_players_assigned,
            failures=[TeamWriteFailureResponse(**asdict(failure)) for failure in result.failures],
            message=result.message,
        )

    @app.get("/leagues/{league_id}/audit-events")
    async def audit_events(league_id: str, limit: int = 50):
        try:
            events = store.list_audit_events(league_id, limit=limit)
        except RepositoryError as exc:
            raise _storage_unavailable(exc) from exc
        return [
            {"event": item["event"], "payload": item["payload"], "created_at": item["created_at"].isoformat()}
            for item in events
        ]

    return app


__all__ = ["create_app"]
