"""Roster integrity checks and transaction-history rebuilds."""

from .locks import RebuildInProgressError, is_rebuild_running, league_rebuild_lock
from .reconciler import (
    AuditSink,
    RebuildPlan,
    RebuildResult,
    RosterReconciler,
    TeamWriteFailure,
    log_audit_event,
    plan_rebuild,
)
from .repair import REPAIRABLE_ISSUES, RepairResult, repair_league, repair_ownership_fields
from .validator import IntegrityCheckError, IntegrityReport, find_integrity_issues, validate_league

__all__ = [
    "AuditSink",
    "IntegrityCheckError",
    "IntegrityReport",
    "RebuildInProgressError",
    "RebuildPlan",
    "REPAIRABLE_ISSUES",
    "RebuildResult",
    "RepairResult",
    "RosterReconciler",
    "TeamWriteFailure",
    "find_integrity_issues",
    "is_rebuild_running",
    "league_rebuild_lock",
    "log_audit_event",
    "plan_rebuild",
    "repair_league",
    "repair_ownership_fields",
    "validate_league",
]
