"""Canonical league models."""

from .player import VALID_SLOTS, Player, PlayerSlot, Team
from .roster import CanonicalRoster, Decision, RosterEntry, RosterSummary
from .transactions import (
    DraftPick,
    IntegrityIssue,
    IssueType,
    TeamCapImpact,
    TradeAsset,
    TradeAssetType,
)

__all__ = [
    "VALID_SLOTS",
    "CanonicalRoster",
    "Decision",
    "DraftPick",
    "IntegrityIssue",
    "IssueType",
    "Player",
    "PlayerSlot",
    "RosterEntry",
    "RosterSummary",
    "Team",
    "TeamCapImpact",
    "TradeAsset",
    "TradeAssetType",
]
