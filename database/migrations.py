"""Database schema migrations."""

from __future__ import annotations

from core.logger import get_logger

from .connection import SQLitePool

logger = get_logger(__name__)


SCHEMA_SQL: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS teams (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        color TEXT,
        icon TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS participants (
        id INTEGER PRIMARY KEY,
        username TEXT NOT NULL,
        slack_user_id TEXT UNIQUE,
        team_id INTEGER REFERENCES teams(id),
        avatar_emoji TEXT,
        banked_steps INTEGER NOT NULL DEFAULT 0,
        raffle_tickets INTEGER NOT NULL DEFAULT 0,
        grand_prize_entry BOOLEAN NOT NULL DEFAULT 0
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_participants_team ON participants(team_id);",
    "CREATE INDEX IF NOT EXISTS idx_participants_username ON participants(username);",
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        participant_id INTEGER NOT NULL REFERENCES participants(id),
        step_count INTEGER NOT NULL,
        date_logged TEXT NOT NULL,
        activity_kind TEXT NOT NULL,
        activity_label TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_logs_participant_date ON activity_logs(participant_id, date_logged);",
    "CREATE INDEX IF NOT EXISTS idx_logs_date ON activity_logs(date_logged);",
    """
    CREATE TABLE IF NOT EXISTS prizes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        week_number INTEGER,
        prize_type TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        emoji TEXT,
        winner_participant_id INTEGER REFERENCES participants(id),
        drawn_at TIMESTAMP,
        draw_seed TEXT,
        UNIQUE(week_number, prize_type)
    );
    """,
    # NULL week numbers are distinct under UNIQUE, so the grand prize needs its own guard
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_prizes_single_grand ON prizes(prize_type) WHERE week_number IS NULL;",
    """
    CREATE TABLE IF NOT EXISTS prize_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        participant_id INTEGER NOT NULL REFERENCES participants(id),
        prize_id INTEGER NOT NULL REFERENCES prizes(id),
        week_number INTEGER,
        opted_in BOOLEAN NOT NULL DEFAULT 1,
        qualified BOOLEAN NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(participant_id, prize_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_prize_entries_prize ON prize_entries(prize_id, qualified, opted_in);",
    """
    CREATE TABLE IF NOT EXISTS milestone_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        milestone_type TEXT NOT NULL UNIQUE,
        threshold_value INTEGER NOT NULL,
        total_steps_at_trigger INTEGER NOT NULL,
        triggered_by_participant_id INTEGER REFERENCES participants(id),
        triggered_by_log_id INTEGER,
        announced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_winners (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL UNIQUE,
        participant_id INTEGER NOT NULL REFERENCES participants(id),
        step_count INTEGER NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """,
)


async def run_migrations(pool: SQLitePool) -> None:
    async with pool.transaction() as conn:
        for statement in SCHEMA_SQL:
            await conn.execute(statement)
    logger.info(f"Schema up to date ({len(SCHEMA_SQL)} statements)")
