import pytest

from dynastycap.integrity import (
    RebuildInProgressError,
    RosterReconciler,
    find_integrity_issues,
    is_rebuild_running,
    league_rebuild_lock,
)
from dynastycap.models import CanonicalRoster, DraftPick, Player, RosterEntry, Team, TradeAsset

from .fakes import InMemoryLeagueRepository


TEAMS = [
    Team(team_id="A", league_id="L1", name="Aces"),
    Team(team_id="B", league_id="L1", name="Bolts"),
]


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, dict(payload)))

    def names(self):
        return [event for event, _ in self.events]


def _reconciler(repo, sink=None):
    return RosterReconciler(repo, audit_sink=sink or RecordingSink(), lock_timeout_s=0)


def _history_repo(**kwargs) -> InMemoryLeagueRepository:
    players = kwargs.pop(
        "players",
        [
            Player(player_id="P1", name="One", team_id="A"),
            Player(player_id="P2", name="Two"),
        ],
    )
    return InMemoryLeagueRepository(
        TEAMS,
        players,
        keeper_entries={"A": [RosterEntry(player_id="P1", decision="KEEP", base_round=3)]},
        draft_picks=[DraftPick(season_year=2026, round=1, pick=4, team_id="A", player_id="P2")],
        trade_assets=[TradeAsset(asset_type="redshirt", asset_id="P1", from_team_id="A", to_team_id="B")],
        **kwargs,
    )


def test_rebuild_replays_keepers_draft_and_trades():
    repo = _history_repo()

    result = _reconciler(repo).rebuild("L1", 2026)

    assert result.success
    assert result.failures == []
    assert repo.season_rosters["A"].active == ("P2",)
    assert repo.season_rosters["A"].redshirt == ()
    assert repo.season_rosters["B"].redshirt == ("P1",)
    assert repo.season_rosters["B"].active == ()
    assert repo.ownership() == {"P1": ("B", "redshirt"), "P2": ("A", "active")}
    assert result.message == "Rebuilt 2/2 teams, 2 players assigned, 0 FA pickups restored"


def test_rebuild_output_passes_integrity_check():
    repo = _history_repo()

    _reconciler(repo).rebuild("L1", 2026)
    report = find_integrity_issues(list(repo.players.values()), repo.teams, repo.season_rosters)

    assert report.ok


def test_rebuild_is_idempotent():
    repo = _history_repo(
        players=[
            Player(player_id="P1", team_id="A"),
            Player(player_id="P2"),
            Player(player_id="P3", team_id="B", slot="ir"),
        ],
        season_rosters={"B": CanonicalRoster(team_id="B", active=(), ir=("P3",))},
    )
    reconciler = _reconciler(repo)

    reconciler.rebuild("L1", 2026)
    first_rosters = dict(repo.season_rosters)
    first_ownership = repo.ownership()
    second = reconciler.rebuild("L1", 2026)

    assert repo.season_rosters == first_rosters
    assert repo.ownership() == first_ownership
    assert second.fa_pickups_restored == 1


def test_free_agent_pickup_is_restored():
    repo = _history_repo(
        players=[
            Player(player_id="P1", team_id="A"),
            Player(player_id="P2"),
            Player(player_id="P9", name="Waiver", team_id="B"),
            Player(player_id="P10", team_id="NOPE"),
        ]
    )
    sink = RecordingSink()

    result = _reconciler(repo, sink).rebuild("L1", 2026)

    assert repo.season_rosters["B"].active == ("P9",)
    assert repo.ownership()["P10"] == (None, "active")
    assert result.fa_pickups_restored == 1
    assert ("fa_pickup_restored", {"league_id": "L1", "team_id": "B", "player_id": "P9"}) in sink.events


def test_players_missing_from_catalog_are_dropped():
    repo = _history_repo(players=[Player(player_id="P2")])

    result = _reconciler(repo).rebuild("L1", 2026)

    assert repo.season_rosters["B"].redshirt == ()
    assert repo.season_rosters["A"].active == ("P2",)
    assert result.total_players_assigned == 1


def test_bench_and_ir_survive_only_for_players_still_on_team():
    repo = InMemoryLeagueRepository(
        TEAMS,
        [
            Player(player_id="K1", team_id="A"),
            Player(player_id="K2", team_id="A", slot="bench"),
            Player(player_id="K3", team_id="A", slot="ir"),
            Player(player_id="K4", team_id="A", slot="bench"),
        ],
        keeper_entries={
            "A": [RosterEntry(player_id=pid, decision="KEEP") for pid in ("K1", "K2", "K3", "K4")],
        },
        trade_assets=[TradeAsset(asset_type="keeper", asset_id="K4", from_team_id="A", to_team_id="B")],
        season_rosters={
            "A": CanonicalRoster(team_id="A", active=("K1", "K2", "K4"), ir=("K3",), benched=("K2", "K4")),
        },
    )

    _reconciler(repo).rebuild("L1", 2026)

    team_a = repo.season_rosters["A"]
    assert team_a.active == ("K1", "K2")
    assert team_a.ir == ("K3",)
    assert team_a.benched == ("K2",)
    assert repo.season_rosters["B"].benched == ()
    assert repo.ownership() == {
        "K1": ("A", "active"),
        "K2": ("A", "bench"),
        "K3": ("A", "ir"),
        "K4": ("B", "active"),
    }


def test_stale_ownership_is_cleared_before_reassignment():
    repo = _history_repo(
        players=[
            Player(player_id="P1", team_id="A"),
            Player(player_id="P2", team_id="B", slot="international"),
        ]
    )

    _reconciler(repo).rebuild("L1", 2026)

    assert repo.ownership()["P2"] == ("A", "active")
    clear_index = repo.writes.index(("ownership", "P2", None, "active"))
    assign_index = repo.writes.index(("ownership", "P2", "A", "active"))
    assert clear_index < assign_index
    last_roster_write = max(i for i, write in enumerate(repo.writes) if write[0] == "roster")
    assert last_roster_write < clear_index


def test_load_failure_writes_nothing():
    repo = _history_repo()
    repo.failing_loads.add("load_executed_trades")
    sink = RecordingSink()

    result = _reconciler(repo, sink).rebuild("L1", 2026)

    assert not result.success
    assert result.message.startswith("Failed to load league data")
    assert repo.writes == []
    assert sink.names() == ["rebuild_started", "rebuild_aborted"]


def test_write_failure_is_reported_per_team():
    repo = _history_repo()
    repo.failing_roster_writes.add("B")
    sink = RecordingSink()

    result = _reconciler(repo, sink).rebuild("L1", 2026)

    assert result.success
    assert result.teams_fixed == 1
    assert [(failure.team_id, failure.operation) for failure in result.failures] == [
        ("B", "persist_canonical_roster")
    ]
    assert repo.season_rosters["A"].active == ("P2",)
    assert "team_write_failed" in sink.names()
    assert sink.names()[-1] == "rebuild_completed"
    assert result.message == "Rebuilt 1/2 teams, 2 players assigned, 0 FA pickups restored"


def test_ownership_write_failure_names_player():
    repo = _history_repo()
    repo.failing_ownership_writes.add("P2")

    result = _reconciler(repo).rebuild("L1", 2026)

    assert [(failure.team_id, failure.player_id) for failure in result.failures] == [("A", "P2")]
    assert result.teams_fixed == 1


def test_concurrent_rebuild_is_rejected():
    repo = _history_repo()

    with league_rebuild_lock("L-busy"):
        assert is_rebuild_running("L-busy")
        with pytest.raises(RebuildInProgressError):
            _reconciler(repo).rebuild("L-busy", 2026)

    assert not is_rebuild_running("L-busy")
    assert repo.writes == []
    assert _reconciler(repo).rebuild("L-busy", 2026).success


def test_audit_sink_sees_lifecycle_events():
    repo = _history_repo()
    sink = RecordingSink()

    _reconciler(repo, sink).rebuild("L1", 2026)

    assert sink.names() == ["rebuild_started", "team_rebuilt", "team_rebuilt", "rebuild_completed"]


def test_clear_failure_is_charged_to_destination_team():
    repo = _history_repo()
    repo.failing_ownership_clears.add("P1")
    sink = RecordingSink()

    result = _reconciler(repo, sink).rebuild("L1", 2026)

    assert [(failure.team_id, failure.player_id) for failure in result.failures] == [("B", "P1")]
    assert result.teams_fixed == 1
    rebuilt = [payload["team_id"] for event, payload in sink.events if event == "team_rebuilt"]
    assert rebuilt == ["A"]
