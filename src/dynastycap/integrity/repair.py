"""Targeted fixes for ownership fields flagged by the integrity audit.

Only two findings are repaired in place: free agents carrying a non-active
slot, and players whose ``team_id`` names a team outside the league. Both are
reset to an unowned, active player. Everything else needs a full rebuild.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from dynastycap.config import lock_timeout
from dynastycap.models import IntegrityIssue
from dynastycap.persistence import LeagueRepository, RepositoryError

from .locks import league_rebuild_lock
from .reconciler import TeamWriteFailure
from .validator import IntegrityReport, validate_league


logger = logging.getLogger(__name__)

REPAIRABLE_ISSUES = ("free_agent_bad_slot", "unknown_team")


@dataclass(frozen=True)
class RepairResult:
    slots_reset: int = 0
    team_ids_cleared: int = 0
    failures: List[TeamWriteFailure] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"Reset {self.slots_reset} free agent slot(s), cleared {self.team_ids_cleared} unknown team_id(s)"
        if self.failures:
            text += f", {len(self.failures)} write failure(s)"
        return text


def repair_ownership_fields(repository: LeagueRepository, issues: Iterable[IntegrityIssue]) -> RepairResult:
    """Reset every repairable player to ``team_id=None, slot="active"``."""

    slots_reset = 0
    team_ids_cleared = 0
    failures: List[TeamWriteFailure] = []
    seen: set[str] = set()
    for issue in issues:
        if issue.issue_type not in REPAIRABLE_ISSUES or issue.player_id in seen:
            continue
        seen.add(issue.player_id)
        try:
            repository.persist_player_ownership(issue.player_id, None, "active")
        except RepositoryError as exc:
            failures.append(
                TeamWriteFailure(
                    team_id=issue.team_ids[0] if issue.team_ids else None,
                    operation=exc.operation,
                    error=str(exc),
                    player_id=issue.player_id,
                )
            )
            continue
        if issue.issue_type == "unknown_team":
            team_ids_cleared += 1
        else:
            slots_reset += 1

    result = RepairResult(slots_reset=slots_reset, team_ids_cleared=team_ids_cleared, failures=failures)
    if failures:
        logger.warning("Ownership repair finished with %d write failure(s)", len(failures))
    logger.info("Ownership repair: %s", result.message)
    return result


def repair_league(
    repository: LeagueRepository,
    league_id: str,
    season_year: int,
    *,
    lock_timeout_s: float | None = None,
) -> tuple[IntegrityReport, RepairResult]:
    """Audit ``league_id`` and repair what can be fixed without a rebuild.

    Holds the league's rebuild lock so repairs never interleave with a rebuild.

    Raises:
        RebuildInProgressError: a rebuild of the league is running.
        IntegrityCheckError: the audit could not load league data.
    """

    timeout = lock_timeout() if lock_timeout_s is None else lock_timeout_s
    with league_rebuild_lock(league_id, timeout_s=timeout):
        report = validate_league(repository, league_id, season_year)
        return report, repair_ownership_fields(repository, report.issues)
