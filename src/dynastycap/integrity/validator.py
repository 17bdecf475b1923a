"""Detect drift between player ownership fields and team slot arrays."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from dynastycap.models import VALID_SLOTS, CanonicalRoster, IntegrityIssue, Player, Team
from dynastycap.persistence import LeagueRepository, RepositoryError


logger = logging.getLogger(__name__)


class IntegrityCheckError(RuntimeError):
    """Raised when league data cannot be loaded for a validation pass."""


@dataclass(frozen=True)
class IntegrityReport:
    issues: List[IntegrityIssue]
    summary: str

    @property
    def ok(self) -> bool:
        return not self.issues

    def by_type(self, issue_type: str) -> List[IntegrityIssue]:
        return [issue for issue in self.issues if issue.issue_type == issue_type]


def find_integrity_issues(
    players: Sequence[Player],
    teams: Sequence[Team],
    season_rosters: Mapping[str, CanonicalRoster],
) -> IntegrityReport:
    """Cross-reference the player catalog against every team's slot arrays.

    Each check runs independently; one player can show up under several issue
    types.
    """

    players_by_id: Dict[str, Player] = {player.player_id: player for player in players}
    teams_by_id: Dict[str, Team] = {team.team_id: team for team in teams}

    containing: Dict[str, List[str]] = {}
    for team_id, roster in season_rosters.items():
        # benched is a subset of active; a player counts once per team
        for player_id in dict.fromkeys((*roster.player_ids(), *roster.benched)):
            containing.setdefault(player_id, []).append(team_id)

    issues: List[IntegrityIssue] = []

    for player_id, team_ids in containing.items():
        player = players_by_id.get(player_id)
        if player is None:
            for team_id in team_ids:
                issues.append(
                    IntegrityIssue(
                        issue_type="orphaned_id",
                        player_id=player_id,
                        team_ids=(team_id,),
                        details=f"{player_id} is on the {_team_label(teams_by_id, team_id)} roster but not in the player catalog",
                    )
                )
        else:
            for team_id in team_ids:
                if player.team_id != team_id:
                    issues.append(
                        IntegrityIssue(
                            issue_type="team_id_mismatch",
                            player_id=player_id,
                            player_name=player.name,
                            team_ids=(team_id,),
                            details=(
                                f"on the {_team_label(teams_by_id, team_id)} roster but team_id is "
                                f"{player.team_id!r}"
                            ),
                        )
                    )
        if len(team_ids) > 1:
            labels = ", ".join(_team_label(teams_by_id, team_id) for team_id in team_ids)
            issues.append(
                IntegrityIssue(
                    issue_type="duplicate",
                    player_id=player_id,
                    player_name=player.name if player else "",
                    team_ids=tuple(team_ids),
                    details=f"appears on {len(team_ids)} rosters: {labels}",
                )
            )

    for player in players:
        if player.slot not in VALID_SLOTS:
            issues.append(
                IntegrityIssue(
                    issue_type="invalid_slot",
                    player_id=player.player_id,
                    player_name=player.name,
                    team_ids=(player.team_id,) if player.team_id else (),
                    details=f'slot="{player.slot}" is not a valid slot',
                )
            )
        if not player.team_id:
            if player.slot != "active":
                issues.append(
                    IntegrityIssue(
                        issue_type="free_agent_bad_slot",
                        player_id=player.player_id,
                        player_name=player.name,
                        details=f'Free agent with slot="{player.slot}" (should be "active")',
                    )
                )
            continue
        if player.team_id not in teams_by_id:
            issues.append(
                IntegrityIssue(
                    issue_type="unknown_team",
                    player_id=player.player_id,
                    player_name=player.name,
                    team_ids=(player.team_id,),
                    details=f'team_id "{player.team_id}" does not match any team in this league',
                )
            )
            continue
        if player.player_id not in containing and player.team_id in season_rosters:
            issues.append(
                IntegrityIssue(
                    issue_type="not_in_roster",
                    player_id=player.player_id,
                    player_name=player.name,
                    team_ids=(player.team_id,),
                    details=f"team_id is {player.team_id!r} but the player is missing from every roster",
                )
            )

    if issues:
        affected = len({issue.player_id for issue in issues})
        summary = f"Found {len(issues)} issue(s) across {affected} of {len(players)} players"
    else:
        sizes = ", ".join(
            f"{_team_label(teams_by_id, team_id)}: {len(roster.player_ids())}"
            for team_id, roster in season_rosters.items()
        )
        summary = f"All clear! {len(players)} players, {len(teams)} teams. Roster sizes: {sizes}"
    return IntegrityReport(issues=issues, summary=summary)


def validate_league(repository: LeagueRepository, league_id: str, season_year: int) -> IntegrityReport:
    """Load a league's snapshot and run :func:`find_integrity_issues`.

    Results are advisory while a rebuild is writing; re-run afterwards.
    """

    try:
        players = repository.load_players(league_id)
        teams = repository.load_teams(league_id)
        season_rosters = repository.load_season_rosters(league_id, season_year)
    except RepositoryError as exc:
        logger.error("Integrity check aborted for league %s: %s", league_id, exc)
        raise IntegrityCheckError(f"Could not load league {league_id}: {exc}") from exc

    report = find_integrity_issues(players, teams, season_rosters)
    logger.info("Integrity check for league %s season %s: %s", league_id, season_year, report.summary)
    return report


def _team_label(teams_by_id: Mapping[str, Team], team_id: str) -> str:
    team = teams_by_id.get(team_id)
    return team.name if team and team.name else team_id
