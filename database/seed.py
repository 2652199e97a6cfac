"""Default roster: teams, participants and prize definitions."""

from __future__ import annotations

from core.constants import PrizeType
from core.logger import get_logger

from .connection import SQLitePool

logger = get_logger(__name__)


DEFAULT_TEAMS = (
    (1, "The Cloud Walkers", "from-cyan-400 to-blue-500", "☁️"),
    (2, "The Mood Lifters", "from-fuchsia-400 to-pink-500", "✨"),
)

DEFAULT_PARTICIPANTS = (
    (1, "Pam", 1, "🌸"),
    (2, "Victoria", 1, "🦋"),
    (3, "Jack", 1, "🏔️"),
    (4, "Francisco", 1, "🌵"),
    (5, "Andy Cooper", 1, "🚴"),
    (6, "Claire", 2, "🌻"),
    (7, "Deuce", 2, "🎲"),
    (8, "Courtney", 2, "🌊"),
    (9, "Arb", 2, "🦊"),
    (10, "Anderson Camargo", 2, "⚽"),
)

DEFAULT_PRIZES = (
    (1, PrizeType.WEEKLY, "Hume Body Pod", "Smart body composition scale", "⚡"),
    (2, PrizeType.WEEKLY, "3-Month Personal Training with HipTrain", "Online coaching sessions", "💪"),
    (3, PrizeType.WEEKLY, "Sleep & Meditation Ultimate Bundle", "Recovery and mindfulness kit", "🧘"),
    (4, PrizeType.WEEKLY, "Bob & Brad C2 Massage Gun", "Percussion massage device", "🔫"),
    (None, PrizeType.GRAND, "BowFlex SelectTech 552 Dumbbells OR 3 Premium Massages", "Winner's choice", "🏆"),
)


async def seed_roster(pool: SQLitePool) -> None:
    """Insert reference data if missing. Activity logs are never touched."""
    async with pool.transaction() as conn:
        await conn.executemany(
            "INSERT OR IGNORE INTO teams (id, name, color, icon) VALUES (?, ?, ?, ?)",
            DEFAULT_TEAMS,
        )
        await conn.executemany(
            "INSERT OR IGNORE INTO participants (id, username, team_id, avatar_emoji) VALUES (?, ?, ?, ?)",
            DEFAULT_PARTICIPANTS,
        )
        await conn.executemany(
            "INSERT OR IGNORE INTO prizes (week_number, prize_type, title, description, emoji) "
            "VALUES (?, ?, ?, ?, ?)",
            [(week, kind.value, title, description, emoji) for week, kind, title, description, emoji in DEFAULT_PRIZES],
        )
    logger.info(
        f"Roster seeded: {len(DEFAULT_TEAMS)} teams, {len(DEFAULT_PARTICIPANTS)} participants, "
        f"{len(DEFAULT_PRIZES)} prizes"
    )
