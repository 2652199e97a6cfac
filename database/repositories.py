"""Database access layer helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import aiosqlite

from core.constants import ActivityKind, PrizeType
from database.base_repository import BaseRepository
from database.models import (
    ActivityLogEntry,
    DailyWinner,
    MilestoneEvent,
    Participant,
    PrizeDefinition,
    PrizeEntry,
    Team,
)

Connection = Optional[aiosqlite.Connection]


class TeamRepository(BaseRepository):
    """Repository for team reference data."""

    async def list_all(self, conn: Connection = None) -> List[Team]:
        rows = await self.fetch_all("SELECT id, name, color, icon FROM teams ORDER BY id", conn=conn)
        return [Team.from_row(row) for row in rows]

    async def get(self, team_id: int, conn: Connection = None) -> Optional[Team]:
        row = await self.fetch_one("SELECT id, name, color, icon FROM teams WHERE id=?", (team_id,), conn)
        return Team.from_row(row) if row else None


PARTICIPANT_COLUMNS = (
    "id, username, slack_user_id, team_id, avatar_emoji, banked_steps, raffle_tickets, grand_prize_entry"
)


class ParticipantRepository(BaseRepository):
    """Repository for participant operations."""

    async def list_all(self, team_id: Optional[int] = None, conn: Connection = None) -> List[Participant]:
        query = f"SELECT {PARTICIPANT_COLUMNS} FROM participants"
        params: Sequence[Any] = ()
        if team_id is not None:
            query += " WHERE team_id=?"
            params = (team_id,)
        query += " ORDER BY id"
        rows = await self.fetch_all(query, params, conn)
        return [Participant.from_row(row) for row in rows]

    async def get(self, participant_id: int, conn: Connection = None) -> Optional[Participant]:
        row = await self.fetch_one(
            f"SELECT {PARTICIPANT_COLUMNS} FROM participants WHERE id=?", (participant_id,), conn
        )
        return Participant.from_row(row) if row else None

    async def get_by_slack_id(self, slack_user_id: str, conn: Connection = None) -> Optional[Participant]:
        row = await self.fetch_one(
            f"SELECT {PARTICIPANT_COLUMNS} FROM participants WHERE slack_user_id=?", (slack_user_id,), conn
        )
        return Participant.from_row(row) if row else None

    async def find_by_login(self, username: str, team_id: int, conn: Connection = None) -> Optional[Participant]:
        """Case-insensitive username lookup scoped to a team."""
        row = await self.fetch_one(
            f"SELECT {PARTICIPANT_COLUMNS} FROM participants WHERE lower(username)=lower(?) AND team_id=?",
            (username.strip(), team_id),
            conn,
        )
        return Participant.from_row(row) if row else None

    async def set_team(self, participant_id: int, team_id: int, conn: Connection = None) -> bool:
        changed = await self.execute(
            "UPDATE participants SET team_id=? WHERE id=?", (team_id, participant_id), conn
        )
        return changed == 1

    async def add_banked_steps(self, participant_id: int, delta: int, conn: Connection = None) -> None:
        await self.execute(
            "UPDATE participants SET banked_steps = banked_steps + ? WHERE id=?", (delta, participant_id), conn
        )

    async def grant_raffle_ticket(self, participant_id: int, conn: Connection = None) -> None:
        await self.execute("UPDATE participants SET raffle_tickets=1 WHERE id=?", (participant_id,), conn)

    async def grant_grand_prize_entry(self, participant_id: int, conn: Connection = None) -> None:
        await self.execute("UPDATE participants SET grand_prize_entry=1 WHERE id=?", (participant_id,), conn)


LOG_COLUMNS = "id, participant_id, step_count, date_logged, activity_kind, activity_label"


class ActivityLogRepository(BaseRepository):
    """Append-mostly activity log plus the aggregate queries built on it."""

    async def insert(
        self,
        participant_id: int,
        step_count: int,
        date_logged: str,
        kind: ActivityKind,
        label: Optional[str],
        conn: Connection = None,
    ) -> int:
        return await self.execute_insert(
            "INSERT INTO activity_logs (participant_id, step_count, date_logged, activity_kind, activity_label) "
            "VALUES (?, ?, ?, ?, ?)",
            (participant_id, step_count, date_logged, kind.value, label),
            conn,
        )

    async def get(self, log_id: int, conn: Connection = None) -> Optional[ActivityLogEntry]:
        row = await self.fetch_one(f"SELECT {LOG_COLUMNS} FROM activity_logs WHERE id=?", (log_id,), conn)
        return ActivityLogEntry.from_row(row) if row else None

    async def list_logs(
        self, participant_id: Optional[int] = None, limit: int = 200, conn: Connection = None
    ) -> List[ActivityLogEntry]:
        query = f"SELECT {LOG_COLUMNS} FROM activity_logs"
        params: List[Any] = []
        if participant_id is not None:
            query += " WHERE participant_id=?"
            params.append(participant_id)
        query += " ORDER BY date_logged DESC, id DESC LIMIT ?"
        params.append(limit)
        rows = await self.fetch_all(query, params, conn)
        return [ActivityLogEntry.from_row(row) for row in rows]

    async def update(
        self,
        log_id: int,
        step_count: int,
        date_logged: str,
        kind: ActivityKind,
        label: Optional[str],
        conn: Connection = None,
    ) -> None:
        await self.execute(
            "UPDATE activity_logs SET step_count=?, date_logged=?, activity_kind=?, activity_label=? WHERE id=?",
            (step_count, date_logged, kind.value, label, log_id),
            conn,
        )

    async def delete(self, log_id: int, conn: Connection = None) -> None:
        await self.execute("DELETE FROM activity_logs WHERE id=?", (log_id,), conn)

    async def sum_steps(
        self,
        participant_id: Optional[int] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        conn: Connection = None,
    ) -> int:
        """Sum of step_count with optional participant and inclusive date bounds."""
        clauses: List[str] = []
        params: List[Any] = []
        if participant_id is not None:
            clauses.append("participant_id=?")
            params.append(participant_id)
        if start is not None:
            clauses.append("date_logged >= ?")
            params.append(start)
        if end is not None:
            clauses.append("date_logged <= ?")
            params.append(end)

        query = "SELECT COALESCE(SUM(step_count), 0) FROM activity_logs"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        value = await self.fetch_value(query, params, conn)
        return int(value or 0)

    async def team_totals(self, start: str, end: str, conn: Connection = None) -> List[Dict[str, Any]]:
        rows = await self.fetch_all(
            """
            SELECT t.id, t.name, t.color, t.icon,
                   COUNT(DISTINCT p.id) AS member_count,
                   COALESCE(SUM(l.step_count), 0) AS total_steps
            FROM teams t
            LEFT JOIN participants p ON p.team_id = t.id
            LEFT JOIN activity_logs l
                   ON l.participant_id = p.id AND l.date_logged BETWEEN ? AND ?
            GROUP BY t.id
            ORDER BY total_steps DESC, t.id
            """,
            (start, end),
            conn,
        )
        return [dict(row) for row in rows]

    async def participant_totals(self, start: str, end: str, conn: Connection = None) -> List[Dict[str, Any]]:
        rows = await self.fetch_all(
            """
            SELECT p.id, p.username, p.team_id, p.avatar_emoji,
                   COALESCE(SUM(l.step_count), 0) AS total_steps
            FROM participants p
            LEFT JOIN activity_logs l
                   ON l.participant_id = p.id AND l.date_logged BETWEEN ? AND ?
            GROUP BY p.id
            ORDER BY total_steps DESC, p.id
            """,
            (start, end),
            conn,
        )
        return [dict(row) for row in rows]

    async def top_walker_on(self, day: str, conn: Connection = None) -> Optional[Dict[str, Any]]:
        row = await self.fetch_one(
            """
            SELECT participant_id, SUM(step_count) AS step_count
            FROM activity_logs
            WHERE date_logged = ?
            GROUP BY participant_id
            ORDER BY step_count DESC, participant_id
            LIMIT 1
            """,
            (day,),
            conn,
        )
        return dict(row) if row else None


PRIZE_COLUMNS = (
    "id, week_number, prize_type, title, description, emoji, winner_participant_id, drawn_at, draw_seed"
)
ENTRY_COLUMNS = "id, participant_id, prize_id, week_number, opted_in, qualified, created_at"


class PrizeRepository(BaseRepository):
    """Prize definitions, entries and the winner commit point."""

    async def list_all(self, conn: Connection = None) -> List[PrizeDefinition]:
        rows = await self.fetch_all(
            f"SELECT {PRIZE_COLUMNS} FROM prizes ORDER BY week_number IS NULL, week_number", conn=conn
        )
        return [PrizeDefinition.from_row(row) for row in rows]

    async def get(self, prize_id: int, conn: Connection = None) -> Optional[PrizeDefinition]:
        row = await self.fetch_one(f"SELECT {PRIZE_COLUMNS} FROM prizes WHERE id=?", (prize_id,), conn)
        return PrizeDefinition.from_row(row) if row else None

    async def get_weekly(self, week_number: int, conn: Connection = None) -> Optional[PrizeDefinition]:
        row = await self.fetch_one(
            f"SELECT {PRIZE_COLUMNS} FROM prizes WHERE week_number=? AND prize_type=?",
            (week_number, PrizeType.WEEKLY.value),
            conn,
        )
        return PrizeDefinition.from_row(row) if row else None

    async def get_grand(self, conn: Connection = None) -> Optional[PrizeDefinition]:
        row = await self.fetch_one(
            f"SELECT {PRIZE_COLUMNS} FROM prizes WHERE prize_type=? ORDER BY id LIMIT 1",
            (PrizeType.GRAND.value,),
            conn,
        )
        return PrizeDefinition.from_row(row) if row else None

    async def mark_qualified(
        self, participant_id: int, prize_id: int, week_number: Optional[int], conn: Connection = None
    ) -> bool:
        """Qualify and auto opt-in; True only when this call flipped the entry."""
        changed = await self.execute(
            """
            INSERT INTO prize_entries (participant_id, prize_id, week_number, opted_in, qualified)
            VALUES (?, ?, ?, 1, 1)
            ON CONFLICT(participant_id, prize_id) DO UPDATE SET qualified=1, opted_in=1
            WHERE prize_entries.qualified = 0
            """,
            (participant_id, prize_id, week_number),
            conn,
        )
        return changed == 1

    async def set_opt_in(
        self,
        participant_id: int,
        prize_id: int,
        week_number: Optional[int],
        opted_in: bool,
        conn: Connection = None,
    ) -> None:
        await self.execute(
            """
            INSERT INTO prize_entries (participant_id, prize_id, week_number, opted_in, qualified)
            VALUES (?, ?, ?, ?, 0)
            ON CONFLICT(participant_id, prize_id) DO UPDATE SET opted_in=excluded.opted_in
            """,
            (participant_id, prize_id, week_number, int(opted_in)),
            conn,
        )

    async def get_entry(self, participant_id: int, prize_id: int, conn: Connection = None) -> Optional[PrizeEntry]:
        row = await self.fetch_one(
            f"SELECT {ENTRY_COLUMNS} FROM prize_entries WHERE participant_id=? AND prize_id=?",
            (participant_id, prize_id),
            conn,
        )
        return PrizeEntry.from_row(row) if row else None

    async def list_entries(self, prize_id: int, conn: Connection = None) -> List[PrizeEntry]:
        rows = await self.fetch_all(
            f"SELECT {ENTRY_COLUMNS} FROM prize_entries WHERE prize_id=? ORDER BY participant_id",
            (prize_id,),
            conn,
        )
        return [PrizeEntry.from_row(row) for row in rows]

    async def eligible_participant_ids(self, prize_id: int, conn: Connection = None) -> List[int]:
        """Qualified and opted-in entrants, ordered by participant id."""
        return await self.fetch_column(
            """
            SELECT participant_id FROM prize_entries
            WHERE prize_id=? AND qualified=1 AND opted_in=1
            ORDER BY participant_id
            """,
            (prize_id,),
            conn,
        )

    async def set_winner_if_unset(
        self, prize_id: int, winner_id: int, drawn_at: str, seed: str, conn: Connection = None
    ) -> bool:
        changed = await self.execute(
            """
            UPDATE prizes SET winner_participant_id=?, drawn_at=?, draw_seed=?
            WHERE id=? AND winner_participant_id IS NULL
            """,
            (winner_id, drawn_at, seed, prize_id),
            conn,
        )
        return changed == 1


MILESTONE_COLUMNS = (
    "id, milestone_type, threshold_value, total_steps_at_trigger, "
    "triggered_by_participant_id, triggered_by_log_id, announced_at"
)


class MilestoneRepository(BaseRepository):
    """One row per milestone type, enforced by the unique constraint."""

    async def insert_event(
        self,
        milestone_type: str,
        threshold_value: int,
        total_steps_at_trigger: int,
        triggered_by_participant_id: Optional[int],
        triggered_by_log_id: Optional[int],
        conn: Connection = None,
    ) -> int:
        """Raises ``sqlite3.IntegrityError`` when the type was already claimed."""
        return await self.execute_insert(
            """
            INSERT INTO milestone_events
                (milestone_type, threshold_value, total_steps_at_trigger,
                 triggered_by_participant_id, triggered_by_log_id)
            VALUES (?, ?, ?, ?, ?)
            """,
            (milestone_type, threshold_value, total_steps_at_trigger, triggered_by_participant_id, triggered_by_log_id),
            conn,
        )

    async def get(self, milestone_type: str, conn: Connection = None) -> Optional[MilestoneEvent]:
        row = await self.fetch_one(
            f"SELECT {MILESTONE_COLUMNS} FROM milestone_events WHERE milestone_type=?", (milestone_type,), conn
        )
        return MilestoneEvent.from_row(row) if row else None

    async def count(self, milestone_type: str, conn: Connection = None) -> int:
        value = await self.fetch_value(
            "SELECT COUNT(*) FROM milestone_events WHERE milestone_type=?", (milestone_type,), conn
        )
        return int(value or 0)


class DailyWinnerRepository(BaseRepository):
    """Top walker per calendar day."""

    async def record(self, day: str, participant_id: int, step_count: int, conn: Connection = None) -> bool:
        changed = await self.execute(
            "INSERT OR IGNORE INTO daily_winners (date, participant_id, step_count) VALUES (?, ?, ?)",
            (day, participant_id, step_count),
            conn,
        )
        return changed == 1

    async def get(self, day: str, conn: Connection = None) -> Optional[DailyWinner]:
        row = await self.fetch_one(
            "SELECT id, date, participant_id, step_count FROM daily_winners WHERE date=?", (day,), conn
        )
        return DailyWinner.from_row(row) if row else None

    async def list_recent(self, limit: int = 7, conn: Connection = None) -> List[DailyWinner]:
        rows = await self.fetch_all(
            "SELECT id, date, participant_id, step_count FROM daily_winners ORDER BY date DESC LIMIT ?",
            (limit,),
            conn,
        )
        return [DailyWinner.from_row(row) for row in rows]

    async def count_for(self, participant_id: int, conn: Connection = None) -> int:
        value = await self.fetch_value(
            "SELECT COUNT(*) FROM daily_winners WHERE participant_id=?", (participant_id,), conn
        )
        return int(value or 0)
