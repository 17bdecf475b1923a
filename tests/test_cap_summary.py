from dynastycap.keepers import compute_summary, summarize_roster
from dynastycap.models import Player, RosterEntry


def _players(*salaries: int) -> dict:
    return {f"p{i}": Player(player_id=f"p{i}", salary=salary) for i, salary in enumerate(salaries)}


def _keep_all(players: dict) -> list:
    return [RosterEntry(player_id=player_id, decision="KEEP") for player_id in players]


def test_penalty_and_apron_fee_just_over_second_apron():
    players = _players(100_000_000, 112_000_000)

    summary = compute_summary(_keep_all(players), players)

    assert summary.cap_used == 212_000_000
    assert summary.over_second_apron_by_m == 2
    assert summary.penalty_dues == 4
    assert summary.first_apron_fee == 50
    assert summary.total_fees == 54


def test_one_million_over_second_apron():
    players = _players(211_000_000)

    summary = compute_summary(_keep_all(players), players)

    assert summary.over_second_apron_by_m == 1
    assert summary.penalty_dues == 2


def test_partial_million_rounds_up():
    players = _players(210_000_001)

    summary = compute_summary(_keep_all(players), players)

    assert summary.over_second_apron_by_m == 1
    assert summary.penalty_dues == 2
    assert summary.first_apron_fee == 50
    assert summary.total_fees == 52


def test_under_thresholds_has_no_fees():
    players = _players(80_000_000, 90_000_000)

    summary = compute_summary(_keep_all(players), players)

    assert summary.cap_used == 170_000_000
    assert summary.over_second_apron_by_m == 0
    assert summary.first_apron_fee == 0
    assert summary.total_fees == 0


def test_only_keepers_count_toward_cap():
    players = _players(50_000_000, 60_000_000, 70_000_000)
    entries = [
        RosterEntry(player_id="p0", decision="KEEP"),
        RosterEntry(player_id="p1", decision="REDSHIRT"),
        RosterEntry(player_id="p2", decision="INT_STASH"),
        RosterEntry(player_id="unknown", decision="KEEP"),
    ]

    summary = compute_summary(entries, players)

    assert summary.cap_used == 50_000_000
    assert summary.keepers_count == 2
    assert summary.redshirts_count == 1
    assert summary.int_stash_count == 1
    assert summary.redshirt_dues == 10


def test_effective_cap_is_clamped():
    assert compute_summary([], {}, trade_delta=40_000_000, base_cap=230_000_000).cap_effective == 250_000_000
    assert compute_summary([], {}, trade_delta=-40_000_000, base_cap=200_000_000).cap_effective == 170_000_000
    assert compute_summary([], {}, trade_delta=-5_000_000).cap_effective == 205_000_000


def test_franchise_tag_dues():
    summary = compute_summary([], {}, franchise_tags=2)

    assert summary.franchise_tag_dues == 30
    assert summary.total_fees == 30


def test_penalty_is_monotonic_in_cap_used():
    previous = -1
    for salary in range(205_000_000, 230_000_000, 750_000):
        players = _players(salary)
        dues = compute_summary(_keep_all(players), players).penalty_dues
        assert dues >= previous
        previous = dues


def test_summarize_roster_counts_tags_from_stacking():
    players = _players(10_000_000, 12_000_000)
    entries = [
        RosterEntry(player_id="p0", decision="KEEP", base_round=1),
        RosterEntry(player_id="p1", decision="KEEP", base_round=1),
    ]

    stacked, summary = summarize_roster(entries, players)

    assert [entry.keeper_round for entry in stacked] == [1, 2]
    assert summary.franchise_tags == 1
    assert summary.franchise_tag_dues == 15


def test_cap_used_tracks_keepers_added_and_removed():
    players = _players(60_000_000, 45_000_000, 70_000_000, 30_000_000, 25_000_000)
    entries = [RosterEntry(player_id=player_id, decision="DROP") for player_id in players]
    history = []

    for index in range(len(entries)):
        entries[index] = entries[index].model_copy(update={"decision": "KEEP"})
        history.append(compute_summary(entries, players).cap_used)
    assert history == sorted(history)
    assert history[-1] == 230_000_000

    shrinking = []
    for index in range(len(entries)):
        entries[index] = entries[index].model_copy(update={"decision": "REDSHIRT"})
        shrinking.append(compute_summary(entries, players).cap_used)
    assert shrinking == sorted(shrinking, reverse=True)
    assert shrinking[-1] == 0
