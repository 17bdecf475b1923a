"""Keeper round stacking, cap summaries and submission checks."""

from .stacking import StackingResult, apply_base_rounds, base_keeper_round, stack_keeper_rounds
from .summary import compute_summary, over_by_millions, summarize_roster
from .validation import RosterValidationIssue, validate_roster

__all__ = [
    "RosterValidationIssue",
    "StackingResult",
    "apply_base_rounds",
    "base_keeper_round",
    "compute_summary",
    "over_by_millions",
    "stack_keeper_rounds",
    "summarize_roster",
    "validate_roster",
]
