"""Command-line interface for keeper summaries and roster repair."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dynastycap.integrity import (
    REPAIRABLE_ISSUES,
    IntegrityCheckError,
    RebuildInProgressError,
    RosterReconciler,
    repair_league,
    validate_league,
)
from dynastycap.keepers import apply_base_rounds, compute_summary, stack_keeper_rounds, validate_roster
from dynastycap.persistence import LeagueStore, RepositoryError
from dynastycap.snapshot import LeagueSnapshot


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dynasty league keeper economics and roster integrity")
    parser.add_argument("--db", type=Path, default=Path("dynastycap.sqlite"), help="SQLite database path")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    load = subparsers.add_parser("load", help="Write a league JSON snapshot into the database")
    load.add_argument("snapshot", type=Path, help="Path to snapshot JSON")

    summary = subparsers.add_parser("summary", help="Stack keepers and compute fees for one team")
    summary.add_argument("--league", required=True, help="League id")
    summary.add_argument("--team", required=True, help="Team id")
    summary.add_argument("--season", type=int, required=True, help="Season year")
    summary.add_argument("--save", action="store_true", help="Persist the computed summary")

    audit = subparsers.add_parser("audit", help="Report roster integrity issues")
    audit.add_argument("--league", required=True, help="League id")
    audit.add_argument("--season", type=int, required=True, help="Season year")
    audit.add_argument("--report", type=Path, default=None, help="Optional path to write issues JSON")
    audit.add_argument("--fix", action="store_true", help="Reset free agent slots and clear unknown team ids")
    audit.add_argument("--lock-timeout", type=float, default=None, help="Seconds to wait for a running rebuild")

    rebuild = subparsers.add_parser("rebuild", help="Rebuild rosters from transaction history")
    rebuild.add_argument("--league", required=True, help="League id")
    rebuild.add_argument("--season", type=int, required=True, help="Season year")
    rebuild.add_argument("--lock-timeout", type=float, default=None, help="Seconds to wait for a running rebuild")

    return parser.parse_args(argv)


def _run_load(store: LeagueStore, args: argparse.Namespace) -> int:
    try:
        snapshot = LeagueSnapshot.load(args.snapshot)
    except (OSError, ValueError, KeyError) as exc:
        print(f"Invalid snapshot {args.snapshot}: {exc}")
        return 2
    try:
        snapshot.write_to(store)
    except RepositoryError as exc:
        print(f"Load failed: {exc}")
        return 2
    print(
        f"Loaded league {snapshot.league_id} season {snapshot.season_year}: "
        f"{len(snapshot.teams)} teams, {len(snapshot.players)} players"
    )
    return 0


def _run_summary(store: LeagueStore, args: argparse.Namespace) -> int:
    try:
        team = store.get_team(args.league, args.team)
        if team is None:
            print(f"Team {args.team} not found in league {args.league}")
            return 1
        players = {player.player_id: player for player in store.load_players(args.league)}
        entries = apply_base_rounds(store.load_roster_entries(args.league, args.team, args.season), players)
    except RepositoryError as exc:
        print(f"Summary failed: {exc}")
        return 2
    stacked = stack_keeper_rounds(entries)
    summary = compute_summary(
        stacked.entries,
        players,
        trade_delta=team.trade_delta,
        franchise_tags=stacked.franchise_tags,
    )
    for entry in stacked.entries:
        if entry.decision != "KEEP":
            print(f"  {entry.player_id:<16} {entry.decision}")
            continue
        flag = " (review)" if entry.needs_review else ""
        print(f"  {entry.player_id:<16} KEEP base={entry.base_round} round={entry.keeper_round}{flag}")
    print(
        f"Cap used ${summary.cap_used:,} of ${summary.cap_effective:,}; "
        f"{summary.franchise_tags} franchise tag(s); total fees ${summary.total_fees}"
    )
    for issue in validate_roster(stacked.entries, players, max_keepers=team.max_keepers):
        print(f"{issue.level.upper()}: {issue.message}")
    if args.save:
        try:
            store.persist_roster_summary(args.league, args.team, args.season, summary)
        except RepositoryError as exc:
            print(f"Could not save roster summary: {exc}")
            return 2
        print("Saved roster summary")
    return 0


def _run_audit(store: LeagueStore, args: argparse.Namespace) -> int:
    try:
        if args.fix:
            report, repair = repair_league(store, args.league, args.season, lock_timeout_s=args.lock_timeout)
        else:
            report, repair = validate_league(store, args.league, args.season), None
    except (IntegrityCheckError, RebuildInProgressError) as exc:
        print(f"Audit failed: {exc}")
        return 2
    print(report.summary)
    for issue in report.issues:
        teams = ",".join(issue.team_ids) or "-"
        print(f"  [{issue.issue_type}] {issue.player_id} ({teams}): {issue.details}")
    if args.report:
        payload = {"summary": report.summary, "issues": [issue.model_dump() for issue in report.issues]}
        args.report.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote audit report to {args.report}")
    if repair is None:
        return 0 if report.ok else 1
    print(repair.message)
    remaining = [issue for issue in report.issues if issue.issue_type not in REPAIRABLE_ISSUES]
    return 0 if not remaining and not repair.failures else 1


def _run_rebuild(store: LeagueStore, args: argparse.Namespace) -> int:
    reconciler = RosterReconciler(store, audit_sink=store.record_audit_event, lock_timeout_s=args.lock_timeout)
    try:
        result = reconciler.rebuild(args.league, args.season)
    except RebuildInProgressError as exc:
        print(str(exc))
        return 2
    if not result.success:
        print(f"Rebuild failed: {result.message}")
        return 2
    print(result.message)
    for failure in result.failures:
        target = failure.player_id or "-"
        print(f"  FAILED {failure.operation} team={failure.team_id} player={target}: {failure.error}")
    return 1 if result.failures else 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    store = LeagueStore(args.db)

    if args.command == "load":
        return _run_load(store, args)
    if args.command == "summary":
        return _run_summary(store, args)
    if args.command == "audit":
        return _run_audit(store, args)
    return _run_rebuild(store, args)


if __name__ == "__main__":
    raise SystemExit(main())
