"""Configuration helpers for league economics."""

from .league import DEFAULT_RULES, LeagueRules, db_path_override, get_rules, iter_rules, lock_timeout

__all__ = [
    "DEFAULT_RULES",
    "LeagueRules",
    "db_path_override",
    "get_rules",
    "iter_rules",
    "lock_timeout",
]
