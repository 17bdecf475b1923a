import pytest

from dynastycap.config import get_rules, iter_rules, lock_timeout


def test_get_rules_handles_lowercase_sport():
    rules = get_rules("nba")
    assert rules.sport == "NBA"
    assert rules.cap_base == 210_000_000
    assert rules.max_round == 14


def test_get_rules_missing_raises():
    with pytest.raises(KeyError):
        get_rules("CURLING")


def test_lock_timeout_env_override(monkeypatch):
    monkeypatch.setenv("DYNASTYCAP_LOCK_TIMEOUT", "2.5")
    assert lock_timeout() == pytest.approx(2.5)


def test_lock_timeout_invalid_env_falls_back(monkeypatch):
    monkeypatch.setenv("DYNASTYCAP_LOCK_TIMEOUT", "soon")
    assert lock_timeout() == pytest.approx(30.0)


def test_every_sport_has_a_fourteen_round_board():
    sports = {rules.sport for rules in iter_rules()}

    assert sports == {"NBA", "WNBA"}
    assert all(rules.max_round == 14 for rules in iter_rules())
