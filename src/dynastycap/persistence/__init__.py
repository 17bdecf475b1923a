"""Persistence layer for league catalogs, keeper declarations and rosters."""

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol
from uuid import uuid4

from dynastycap.config import db_path_override
from dynastycap.models import (
    CanonicalRoster,
    DraftPick,
    Player,
    RosterEntry,
    RosterSummary,
    Team,
    TradeAsset,
)


logger = logging.getLogger(__name__)


class RepositoryError(RuntimeError):
    """Raised when a storage read or write fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        team_id: Optional[str] = None,
        player_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.team_id = team_id
        self.player_id = player_id


class LeagueRepository(Protocol):
    """Storage boundary used by the validator and reconciler."""

    def load_players(self, league_id: str) -> List[Player]: ...

    def load_teams(self, league_id: str) -> List[Team]: ...

    def load_roster_entries(self, league_id: str, team_id: str, season_year: int) -> List[RosterEntry]: ...

    def load_draft_results(self, league_id: str, season_year: int) -> List[DraftPick]: ...

    def load_executed_trades(self, league_id: str, season_year: int) -> List[TradeAsset]: ...

    def load_season_rosters(self, league_id: str, season_year: int) -> Dict[str, CanonicalRoster]: ...

    def persist_roster_summary(
        self, league_id: str, team_id: str, season_year: int, summary: RosterSummary
    ) -> None: ...

    def persist_canonical_roster(self, league_id: str, season_year: int, roster: CanonicalRoster) -> None: ...

    def persist_player_ownership(self, player_id: str, team_id: Optional[str], slot: str) -> None: ...


class LeagueStore:
    """SQLite-backed implementation of :class:`LeagueRepository`.

    Every write is an upsert, so repeating a write is always safe.
    """

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        env_db = db_path_override()
        if env_db:
            if env_db.startswith("file:"):
                self.db_path: Path | str = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        elif isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        conn.row_factory = sqlite3.Row
        return conn

    @contextlib.contextmanager
    def _guard(self, operation: str, *, team_id: str | None = None, player_id: str | None = None) -> Iterator[None]:
        # ValueError covers undecodable JSON and rows that fail model validation.
        try:
            yield
        except (sqlite3.Error, ValueError) as exc:
            logger.error("Storage failure during %s (team=%s, player=%s): %s", operation, team_id, player_id, exc)
            raise RepositoryError(
                f"{operation} failed: {exc}",
                operation=operation,
                team_id=team_id,
                player_id=player_id,
            ) from exc

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS teams (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL,
                name TEXT NOT NULL,
                trade_delta INTEGER NOT NULL DEFAULT 0,
                max_keepers INTEGER NOT NULL DEFAULT 8
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL,
                record_json TEXT NOT NULL,
                team_id TEXT,
                slot TEXT NOT NULL DEFAULT 'active',
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS rosters (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL,
                team_id TEXT NOT NULL,
                season_year INTEGER NOT NULL,
                entries_json TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'draft',
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS season_rosters (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL,
                team_id TEXT NOT NULL,
                season_year INTEGER NOT NULL,
                active_json TEXT NOT NULL,
                ir_json TEXT NOT NULL,
                redshirt_json TEXT NOT NULL,
                international_json TEXT NOT NULL,
                benched_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS draft_picks (
                league_id TEXT NOT NULL,
                season_year INTEGER NOT NULL,
                round INTEGER NOT NULL,
                pick INTEGER NOT NULL,
                team_id TEXT NOT NULL,
                player_id TEXT,
                is_keeper_slot INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (league_id, season_year, round, pick)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS trades (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                league_id TEXT NOT NULL,
                season_year INTEGER NOT NULL,
                assets_json TEXT NOT NULL,
                executed_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS team_fees (
                id TEXT PRIMARY KEY,
                league_id TEXT NOT NULL,
                team_id TEXT NOT NULL,
                season_year INTEGER NOT NULL,
                summary_json TEXT NOT NULL,
                total_fees INTEGER NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS audit_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                league_id TEXT,
                event TEXT NOT NULL,
                payload_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_players_team_slot ON players (team_id, slot)")
        conn.commit()

    # -- catalog -----------------------------------------------------------

    def save_team(self, team: Team) -> None:
        with self._guard("save_team", team_id=team.team_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO teams (id, league_id, name, trade_delta, max_keepers)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    league_id = excluded.league_id,
                    name = excluded.name,
                    trade_delta = excluded.trade_delta,
                    max_keepers = excluded.max_keepers
                """,
                (team.team_id, team.league_id, team.name, team.trade_delta, team.max_keepers),
            )
            conn.commit()

    def load_teams(self, league_id: str) -> List[Team]:
        with self._guard("load_teams"), self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM teams WHERE league_id = ? ORDER BY id",
                (league_id,),
            ).fetchall()
            return [
                Team(
                    team_id=row["id"],
                    league_id=row["league_id"],
                    name=row["name"],
                    trade_delta=row["trade_delta"],
                    max_keepers=row["max_keepers"],
                )
                for row in rows
            ]

    def get_team(self, league_id: str, team_id: str) -> Optional[Team]:
        for team in self.load_teams(league_id):
            if team.team_id == team_id:
                return team
        return None

    def save_player(self, league_id: str, player: Player) -> None:
        record = player.model_dump(exclude={"team_id", "slot"})
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("save_player", player_id=player.player_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO players (id, league_id, record_json, team_id, slot, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    league_id = excluded.league_id,
                    record_json = excluded.record_json,
                    team_id = excluded.team_id,
                    slot = excluded.slot,
                    updated_at = excluded.updated_at
                """,
                (player.player_id, league_id, json.dumps(record), player.team_id, player.slot, now),
            )
            conn.commit()

    def load_players(self, league_id: str) -> List[Player]:
        with self._guard("load_players"), self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM players WHERE league_id = ? ORDER BY id",
                (league_id,),
            ).fetchall()
            return [self._row_to_player(row) for row in rows]

    def delete_player(self, player_id: str) -> None:
        with self._guard("delete_player", player_id=player_id), self._connect() as conn:
            conn.execute("DELETE FROM players WHERE id = ?", (player_id,))
            conn.commit()

    def persist_player_ownership(self, player_id: str, team_id: Optional[str], slot: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("persist_player_ownership", team_id=team_id, player_id=player_id), self._connect() as conn:
            conn.execute(
                "UPDATE players SET team_id = ?, slot = ?, updated_at = ? WHERE id = ?",
                (team_id, slot, now, player_id),
            )
            conn.commit()

    # -- keeper declarations -------------------------------------------------

    def save_roster_entries(
        self,
        league_id: str,
        team_id: str,
        season_year: int,
        entries: Iterable[RosterEntry],
        *,
        status: str = "draft",
    ) -> None:
        payload = [entry.model_dump() for entry in entries]
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("save_roster_entries", team_id=team_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO rosters (id, league_id, team_id, season_year, entries_json, status, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    entries_json = excluded.entries_json,
                    status = excluded.status,
                    updated_at = excluded.updated_at
                """,
                (
                    _season_key(league_id, team_id, season_year),
                    league_id,
                    team_id,
                    season_year,
                    json.dumps(payload),
                    status,
                    now,
                ),
            )
            conn.commit()

    def load_roster_entries(self, league_id: str, team_id: str, season_year: int) -> List[RosterEntry]:
        with self._guard("load_roster_entries", team_id=team_id), self._connect() as conn:
            row = conn.execute(
                "SELECT entries_json FROM rosters WHERE id = ?",
                (_season_key(league_id, team_id, season_year),),
            ).fetchone()
            if row is None:
                return []
            return [RosterEntry.model_validate(item) for item in json.loads(row["entries_json"])]

    def persist_roster_summary(
        self, league_id: str, team_id: str, season_year: int, summary: RosterSummary
    ) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("persist_roster_summary", team_id=team_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO team_fees (id, league_id, team_id, season_year, summary_json, total_fees, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    summary_json = excluded.summary_json,
                    total_fees = excluded.total_fees,
                    updated_at = excluded.updated_at
                """,
                (
                    _season_key(league_id, team_id, season_year),
                    league_id,
                    team_id,
                    season_year,
                    summary.model_dump_json(),
                    summary.total_fees,
                    now,
                ),
            )
            conn.commit()

    def load_roster_summary(self, league_id: str, team_id: str, season_year: int) -> Optional[RosterSummary]:
        with self._guard("load_roster_summary", team_id=team_id), self._connect() as conn:
            row = conn.execute(
                "SELECT summary_json FROM team_fees WHERE id = ?",
                (_season_key(league_id, team_id, season_year),),
            ).fetchone()
            if row is None:
                return None
            return RosterSummary.model_validate_json(row["summary_json"])

    # -- transaction history -------------------------------------------------

    def save_draft_pick(self, league_id: str, pick: DraftPick) -> None:
        with self._guard("save_draft_pick", team_id=pick.team_id, player_id=pick.player_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO draft_picks (league_id, season_year, round, pick, team_id, player_id, is_keeper_slot)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(league_id, season_year, round, pick) DO UPDATE SET
                    team_id = excluded.team_id,
                    player_id = excluded.player_id,
                    is_keeper_slot = excluded.is_keeper_slot
                """,
                (
                    league_id,
                    pick.season_year,
                    pick.round,
                    pick.pick,
                    pick.team_id,
                    pick.player_id,
                    int(pick.is_keeper_slot),
                ),
            )
            conn.commit()

    def load_draft_results(self, league_id: str, season_year: int) -> List[DraftPick]:
        with self._guard("load_draft_results"), self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM draft_picks
                WHERE league_id = ? AND season_year = ?
                ORDER BY round, pick
                """,
                (league_id, season_year),
            ).fetchall()
            return [
                DraftPick(
                    season_year=row["season_year"],
                    round=row["round"],
                    pick=row["pick"],
                    team_id=row["team_id"],
                    player_id=row["player_id"],
                    is_keeper_slot=bool(row["is_keeper_slot"]),
                )
                for row in rows
            ]

    def record_executed_trade(
        self,
        league_id: str,
        season_year: int,
        assets: Iterable[TradeAsset],
        *,
        trade_id: Optional[str] = None,
        executed_at: Optional[datetime] = None,
    ) -> str:
        trade_id = trade_id or uuid4().hex
        executed_at = executed_at or datetime.now(timezone.utc)
        payload = [asset.model_dump() for asset in assets]
        with self._guard("record_executed_trade"), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO trades (id, league_id, season_year, assets_json, executed_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO NOTHING
                """,
                (trade_id, league_id, season_year, json.dumps(payload), executed_at.isoformat()),
            )
            conn.commit()
        return trade_id

    def load_executed_trades(self, league_id: str, season_year: int) -> List[TradeAsset]:
        """Every asset of every executed trade, in recorded order."""

        with self._guard("load_executed_trades"), self._connect() as conn:
            rows = conn.execute(
                "SELECT assets_json FROM trades WHERE league_id = ? AND season_year = ? ORDER BY seq",
                (league_id, season_year),
            ).fetchall()
            assets: List[TradeAsset] = []
            for row in rows:
                assets.extend(TradeAsset.model_validate(item) for item in json.loads(row["assets_json"]))
            return assets

    # -- slot arrays -----------------------------------------------------------

    def persist_canonical_roster(self, league_id: str, season_year: int, roster: CanonicalRoster) -> None:
        arrays = roster.slot_arrays()
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("persist_canonical_roster", team_id=roster.team_id), self._connect() as conn:
            conn.execute(
                """
                INSERT INTO season_rosters (
                    id, league_id, team_id, season_year, active_json, ir_json,
                    redshirt_json, international_json, benched_json, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    active_json = excluded.active_json,
                    ir_json = excluded.ir_json,
                    redshirt_json = excluded.redshirt_json,
                    international_json = excluded.international_json,
                    benched_json = excluded.benched_json,
                    updated_at = excluded.updated_at
                """,
                (
                    _season_key(league_id, roster.team_id, season_year),
                    league_id,
                    roster.team_id,
                    season_year,
                    json.dumps(arrays["active"]),
                    json.dumps(arrays["ir"]),
                    json.dumps(arrays["redshirt"]),
                    json.dumps(arrays["international"]),
                    json.dumps(arrays["benched"]),
                    now,
                ),
            )
            conn.commit()

    def load_season_rosters(self, league_id: str, season_year: int) -> Dict[str, CanonicalRoster]:
        with self._guard("load_season_rosters"), self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM season_rosters WHERE league_id = ? AND season_year = ? ORDER BY team_id",
                (league_id, season_year),
            ).fetchall()
            return {row["team_id"]: self._row_to_roster(row) for row in rows}

    # -- audit -----------------------------------------------------------------

    def record_audit_event(self, event: str, payload: Mapping[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("record_audit_event"), self._connect() as conn:
            conn.execute(
                "INSERT INTO audit_events (league_id, event, payload_json, created_at) VALUES (?, ?, ?, ?)",
                (payload.get("league_id"), event, json.dumps(dict(payload), default=str), now),
            )
            conn.commit()

    def list_audit_events(self, league_id: str, limit: int = 50) -> List[dict]:
        with self._guard("list_audit_events"), self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM audit_events WHERE league_id = ? ORDER BY id DESC LIMIT ?",
                (league_id, limit),
            ).fetchall()
            return [
                {
                    "event": row["event"],
                    "payload": json.loads(row["payload_json"]),
                    "created_at": datetime.fromisoformat(row["created_at"]),
                }
                for row in rows
            ]

    def _row_to_player(self, row: sqlite3.Row) -> Player:
        record = json.loads(row["record_json"])
        record["team_id"] = row["team_id"]
        record["slot"] = row["slot"]
        return Player.model_validate(record)

    def _row_to_roster(self, row: sqlite3.Row) -> CanonicalRoster:
        return CanonicalRoster(
            team_id=row["team_id"],
            active=tuple(json.loads(row["active_json"])),
            ir=tuple(json.loads(row["ir_json"])),
            redshirt=tuple(json.loads(row["redshirt_json"])),
            international=tuple(json.loads(row["international_json"])),
            benched=tuple(json.loads(row["benched_json"])),
        )


def _season_key(league_id: str, team_id: str, season_year: int) -> str:
    return f"{league_id}_{team_id}_{season_year}"


__all__ = ["LeagueRepository", "LeagueStore", "RepositoryError"]
