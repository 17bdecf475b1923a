import pytest
from pydantic import ValidationError

from dynastycap.models import CanonicalRoster, Player, RosterEntry


def test_player_is_frozen():
    player = Player(player_id="p1", name="Test Player", salary=25_000_000, team_id="A")

    assert player.player_id == "p1"
    assert player.slot == "active"

    with pytest.raises((TypeError, ValidationError)):
        player.team_id = "B"  # type: ignore[misc]


def test_roster_entry_rejects_out_of_range_round():
    with pytest.raises(ValidationError):
        RosterEntry(player_id="p1", decision="KEEP", base_round=15)


def test_canonical_roster_projects_ownership_slots():
    roster = CanonicalRoster(
        team_id="A",
        active=("p1", "p2"),
        ir=("p3",),
        redshirt=("p4",),
        international=("p5",),
        benched=("p2",),
    )

    assert roster.player_slots() == {
        "p1": "active",
        "p2": "bench",
        "p3": "ir",
        "p4": "redshirt",
        "p5": "international",
    }
    assert roster.slot_arrays()["benched"] == ["p2"]
    assert roster.player_ids() == ("p1", "p2", "p3", "p4", "p5")


def test_rookie_pick_is_within_a_round():
    assert Player(player_id="r", rookie_round=1, rookie_pick=12).rookie_pick == 12

    with pytest.raises(ValidationError):
        Player(player_id="r", rookie_round=1, rookie_pick=13)
