import sqlite3
from datetime import datetime, timezone

import pytest

from dynastycap.integrity import IntegrityCheckError, RosterReconciler, validate_league
from dynastycap.models import (
    CanonicalRoster,
    DraftPick,
    Player,
    RosterEntry,
    RosterSummary,
    Team,
    TradeAsset,
)
from dynastycap.persistence import LeagueStore, RepositoryError


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("DYNASTYCAP_DB_PATH", raising=False)
    return LeagueStore(tmp_path / "league.sqlite")


def test_players_round_trip_with_ownership(store):
    store.save_player("L1", Player(player_id="p1", name="One", salary=12_000_000, team_id="A", slot="ir"))
    store.save_player("L2", Player(player_id="p2", name="Elsewhere"))

    players = store.load_players("L1")

    assert [player.player_id for player in players] == ["p1"]
    assert players[0].salary == 12_000_000
    assert (players[0].team_id, players[0].slot) == ("A", "ir")

    store.persist_player_ownership("p1", None, "active")
    assert store.load_players("L1")[0].team_id is None


def test_teams_and_lookup(store):
    store.save_team(Team(team_id="B", league_id="L1", name="Bolts", trade_delta=-5_000_000))
    store.save_team(Team(team_id="A", league_id="L1", name="Aces"))

    assert [team.team_id for team in store.load_teams("L1")] == ["A", "B"]
    assert store.get_team("L1", "B").trade_delta == -5_000_000
    assert store.get_team("L1", "Z") is None


def test_roster_entries_and_summary(store):
    entries = [RosterEntry(player_id="p1", decision="KEEP", base_round=2, keeper_round=2)]
    store.save_roster_entries("L1", "A", 2026, entries, status="submitted")
    store.persist_roster_summary("L1", "A", 2026, RosterSummary(cap_used=5, total_fees=7))

    assert store.load_roster_entries("L1", "A", 2026) == entries
    assert store.load_roster_entries("L1", "A", 2025) == []
    assert store.load_roster_summary("L1", "A", 2026).total_fees == 7
    assert store.load_roster_summary("L1", "B", 2026) is None


def test_trades_load_in_recorded_order(store):
    first = [TradeAsset(asset_type="keeper", asset_id="p1", from_team_id="A", to_team_id="B")]
    second = [TradeAsset(asset_type="keeper", asset_id="p1", from_team_id="B", to_team_id="C")]
    store.record_executed_trade("L1", 2026, first, trade_id="t1", executed_at=datetime(2026, 3, 1, tzinfo=timezone.utc))
    store.record_executed_trade("L1", 2026, second, trade_id="t2")
    store.record_executed_trade("L1", 2026, second, trade_id="t1")

    assets = store.load_executed_trades("L1", 2026)

    assert [(asset.from_team_id, asset.to_team_id) for asset in assets] == [("A", "B"), ("B", "C")]


def test_draft_picks_and_season_rosters(store):
    store.save_draft_pick("L1", DraftPick(season_year=2026, round=2, pick=1, team_id="A", player_id="p2"))
    store.save_draft_pick("L1", DraftPick(season_year=2026, round=1, pick=3, team_id="B", is_keeper_slot=True))
    roster = CanonicalRoster(team_id="A", active=("p1", "p2"), benched=("p2",), redshirt=("p3",))
    store.persist_canonical_roster("L1", 2026, roster)

    picks = store.load_draft_results("L1", 2026)

    assert [(pick.round, pick.pick, pick.is_keeper_slot) for pick in picks] == [(1, 3, True), (2, 1, False)]
    assert store.load_season_rosters("L1", 2026) == {"A": roster}


def test_audit_events_are_listed_newest_first(store):
    store.record_audit_event("rebuild_started", {"league_id": "L1", "season_year": 2026})
    store.record_audit_event("rebuild_completed", {"league_id": "L1", "teams_fixed": 2})

    events = store.list_audit_events("L1")

    assert [event["event"] for event in events] == ["rebuild_completed", "rebuild_started"]
    assert events[0]["payload"]["teams_fixed"] == 2


def test_storage_failure_becomes_repository_error(store):
    with sqlite3.connect(store.db_path) as conn:
        conn.execute("DROP TABLE players")

    with pytest.raises(RepositoryError) as excinfo:
        store.load_players("L1")

    assert excinfo.value.operation == "load_players"


def test_reconciler_runs_against_sqlite_store(store):
    store.save_team(Team(team_id="A", league_id="L1", name="Aces"))
    store.save_team(Team(team_id="B", league_id="L1", name="Bolts"))
    store.save_player("L1", Player(player_id="P1", team_id="A"))
    store.save_player("L1", Player(player_id="P2"))
    store.save_roster_entries("L1", "A", 2026, [RosterEntry(player_id="P1", decision="KEEP")])
    store.save_draft_pick("L1", DraftPick(season_year=2026, round=1, pick=1, team_id="A", player_id="P2"))
    store.record_executed_trade(
        "L1",
        2026,
        [TradeAsset(asset_type="redshirt", asset_id="P1", from_team_id="A", to_team_id="B")],
    )

    result = RosterReconciler(store, audit_sink=store.record_audit_event, lock_timeout_s=0).rebuild("L1", 2026)
    rosters = store.load_season_rosters("L1", 2026)

    assert result.success
    assert rosters["A"].active == ("P2",)
    assert rosters["B"].redshirt == ("P1",)
    assert {p.player_id: (p.team_id, p.slot) for p in store.load_players("L1")} == {
        "P1": ("B", "redshirt"),
        "P2": ("A", "active"),
    }
    assert store.list_audit_events("L1")[0]["event"] == "rebuild_completed"


def _corrupt_player(store, player_id: str) -> None:
    conn = sqlite3.connect(store.db_path)
    with conn:
        conn.execute("UPDATE players SET record_json = ? WHERE id = ?", ('{"salary": -5}', player_id))
    conn.close()


def test_undecodable_rows_become_repository_errors(store):
    store.save_player("L1", Player(player_id="P1", team_id="A"))
    store.save_roster_entries("L1", "A", 2026, [RosterEntry(player_id="P1", decision="KEEP")])
    _corrupt_player(store, "P1")
    conn = sqlite3.connect(store.db_path)
    with conn:
        conn.execute("UPDATE rosters SET entries_json = 'not json'")
    conn.close()

    with pytest.raises(RepositoryError) as players_exc:
        store.load_players("L1")
    with pytest.raises(RepositoryError) as entries_exc:
        store.load_roster_entries("L1", "A", 2026)

    assert players_exc.value.operation == "load_players"
    assert entries_exc.value.operation == "load_roster_entries"


def test_corrupted_catalog_fails_rebuild_and_audit_cleanly(store):
    store.save_team(Team(team_id="A", league_id="L1", name="Aces"))
    store.save_player("L1", Player(player_id="P1", team_id="A"))
    _corrupt_player(store, "P1")

    result = RosterReconciler(store, lock_timeout_s=0).rebuild("L1", 2026)

    assert not result.success
    assert result.message.startswith("Failed to load league data")
    with pytest.raises(IntegrityCheckError):
        validate_league(store, "L1", 2026)
