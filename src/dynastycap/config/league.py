"""League economics for supported sports."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "DYNASTYCAP_DB_PATH"
_LOCK_TIMEOUT_ENV = "DYNASTYCAP_LOCK_TIMEOUT"
_LOCK_TIMEOUT_DEFAULT = 30.0


@dataclass(frozen=True)
class LeagueRules:
    sport: str
    cap_floor: int = 170_000_000
    cap_base: int = 210_000_000
    cap_max: int = 250_000_000
    trade_limit: int = 40_000_000
    penalty_start: int = 210_000_000
    penalty_rate_per_m: int = 2
    redshirt_fee: int = 10
    franchise_tag_fee: int = 15
    first_apron_fee: int = 50
    first_apron_fee_threshold: int = 170_000_000
    max_keepers: int = 8
    max_round: int = 14
    warn_first_apron: int = 195_000_000
    warn_second_apron: int = 225_000_000
    warn_hard_ceiling: int = 255_000_000
    incoming_base_round: int = 13


_LEAGUE_RULES: Dict[str, LeagueRules] = {
    "NBA": LeagueRules(sport="NBA"),
    "WNBA": LeagueRules(sport="WNBA"),
}


def iter_rules() -> Iterable[LeagueRules]:
    """Return an iterator of all configured rule sets."""

    return _LEAGUE_RULES.values()


def get_rules(sport: str = "NBA") -> LeagueRules:
    """Fetch rules for a sport, raising KeyError if missing."""

    key = sport.upper()
    if key not in _LEAGUE_RULES:
        raise KeyError(f"No league rules configured for sport={sport!r}")
    return _LEAGUE_RULES[key]


DEFAULT_RULES: LeagueRules = _LEAGUE_RULES["NBA"]


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def lock_timeout() -> float:
    return _env_float(_LOCK_TIMEOUT_ENV, _LOCK_TIMEOUT_DEFAULT, clamp_min=0.0)


def db_path_override() -> str | None:
    return os.getenv(_DB_PATH_ENV) or None
