"""Lightweight REST client for the dynasty-cap API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def load_assets(path: Path | None) -> list[dict]:
    if path is None:
        return []
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid assets JSON: {exc}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the dynasty-cap REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("league_id", help="League id")
    parser.add_argument("--season", type=int, required=True, help="Season year")
    parser.add_argument("--summary", metavar="TEAM_ID", help="Compute and store a team's keeper summary")
    parser.add_argument("--cap-impact", type=Path, metavar="ASSETS_JSON", help="Project a trade's cap impact")
    parser.add_argument("--audit", action="store_true", help="Run the roster integrity audit")
    parser.add_argument("--rebuild", action="store_true", help="Rebuild rosters from transaction history")
    args = parser.parse_args()

    params = {"season_year": args.season}
    with httpx.Client(base_url=args.base_url, timeout=60.0) as client:
        if args.summary:
            resp = client.post(f"/leagues/{args.league_id}/teams/{args.summary}/summary", params=params)
            if resp.status_code == 404:
                raise SystemExit(f"team {args.summary} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json()["summary"], indent=2))
        if args.cap_impact:
            payload = {"season_year": args.season, "assets": load_assets(args.cap_impact)}
            resp = client.post(f"/leagues/{args.league_id}/trades/cap-impact", json=payload)
            resp.raise_for_status()
            for impact in resp.json()["impacts"]:
                before = impact["before"]["cap_used"]
                after = impact["after"]["cap_used"]
                print(f"{impact['team_name']}: ${before:,} -> ${after:,}")
                for warning in impact["warnings"]:
                    print(f"  ! {warning}")
        if args.audit:
            resp = client.get(f"/leagues/{args.league_id}/integrity", params=params)
            resp.raise_for_status()
            report = resp.json()
            print(report["summary"])
            for issue in report["issues"]:
                print(f"  [{issue['issue_type']}] {issue['player_id']}: {issue['details']}")
        if args.rebuild:
            resp = client.post(f"/leagues/{args.league_id}/rebuild", params=params)
            if resp.status_code == 409:
                raise SystemExit("a rebuild is already running for this league")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
