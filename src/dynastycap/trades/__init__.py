"""Trade simulation helpers."""

from .cap_impact import cap_warnings, compute_trade_cap_impact, entries_after_trade, involved_team_ids

__all__ = ["cap_warnings", "compute_trade_cap_impact", "entries_after_trade", "involved_team_ids"]
