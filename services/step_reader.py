"""Aggregate step totals over the activity log."""

from __future__ import annotations

from datetime import date
from typing import Optional

import aiosqlite

from database.repositories import ActivityLogRepository
from services.calendar import ChallengeCalendar


def _iso(day: Optional[date]) -> Optional[str]:
    return day.isoformat() if day is not None else None


class StepReader:
    """Pure reads; an empty range sums to zero.

    Pass ``conn`` to read inside a caller's transaction snapshot.
    """

    def __init__(self, logs: ActivityLogRepository, calendar: ChallengeCalendar) -> None:
        self.logs = logs
        self.calendar = calendar

    async def participant_total(
        self,
        participant_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> int:
        return await self.logs.sum_steps(participant_id, _iso(start), _iso(end), conn)

    async def daily_total(
        self, participant_id: int, day: date, conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        return await self.participant_total(participant_id, day, day, conn)

    async def participant_today(self, participant_id: int, conn: Optional[aiosqlite.Connection] = None) -> int:
        return await self.daily_total(participant_id, self.calendar.today(), conn)

    async def participant_week(
        self, participant_id: int, week: Optional[int] = None, conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        first, last = self.calendar.week_bounds(week or self.calendar.current_week())
        return await self.participant_total(participant_id, first, last, conn)

    async def participant_challenge_total(
        self, participant_id: int, conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        first, last = self.calendar.challenge_bounds()
        return await self.participant_total(participant_id, first, last, conn)

    async def organization_total(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        conn: Optional[aiosqlite.Connection] = None,
    ) -> int:
        return await self.logs.sum_steps(None, _iso(start), _iso(end), conn)

    async def organization_challenge_total(self, conn: Optional[aiosqlite.Connection] = None) -> int:
        first, last = self.calendar.challenge_bounds()
        return await self.organization_total(first, last, conn)
