"""Leaderboards, team standings and collective progress."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from core.constants import JOURNEY_MILESTONES, ConversionRates
from core.exceptions import ParticipantNotFoundError
from database.repositories import ActivityLogRepository, ParticipantRepository
from services.cache import StatsCache
from services.calendar import ChallengeCalendar
from services.step_reader import StepReader
from services.thresholds import ChallengeThresholds


def journey_position(total_steps: int) -> Dict[str, Any]:
    current = JOURNEY_MILESTONES[0]
    upcoming: Optional[tuple] = None
    for steps, label in JOURNEY_MILESTONES:
        if total_steps >= steps:
            current = (steps, label)
        else:
            upcoming = (steps, label)
            break
    return {
        "location": current[1],
        "next_location": upcoming[1] if upcoming else None,
        "steps_to_next": upcoming[0] - total_steps if upcoming else 0,
    }


class StatsService:
    def __init__(
        self,
        logs: ActivityLogRepository,
        participants: ParticipantRepository,
        reader: StepReader,
        calendar: ChallengeCalendar,
        thresholds: ChallengeThresholds,
        cache: StatsCache,
        daily_goal: int = 7000,
    ) -> None:
        self.logs = logs
        self.participants = participants
        self.reader = reader
        self.calendar = calendar
        self.thresholds = thresholds
        self.cache = cache
        self.daily_goal = daily_goal

    def _window(self) -> tuple[str, str]:
        first, last = self.calendar.challenge_bounds()
        return first.isoformat(), last.isoformat()

    async def team_standings(self) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            rows = await self.logs.team_totals(*self._window())
            for row in rows:
                members = row["member_count"]
                row["average_steps"] = round(row["total_steps"] / members) if members else 0
            return rows

        return await self.cache.get_or_load("team_standings", load)

    async def leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            rows = await self.logs.participant_totals(*self._window())
            for rank, row in enumerate(rows, start=1):
                row["rank"] = rank
            return rows

        rows = await self.cache.get_or_load("leaderboard", load)
        return rows[:limit] if limit else list(rows)

    async def progress(self) -> Dict[str, Any]:
        async def load() -> Dict[str, Any]:
            total = await self.reader.organization_challenge_total()
            goal = self.thresholds.org_goal
            data = {
                "total_steps": total,
                "goal": goal,
                "percentage": min(100.0, round(total / goal * 100, 1)) if goal else 100.0,
                "milestone_threshold": self.thresholds.org_milestone,
                "miles": round(total / ConversionRates.STEPS_PER_MILE, 1),
                "calories": round(total * ConversionRates.CALORIES_PER_STEP),
                "current_week": self.calendar.current_week(),
            }
            data.update(journey_position(total))
            return data

        return await self.cache.get_or_load("progress", load)

    async def daily_leaderboard(self, day: date) -> List[Dict[str, Any]]:
        rows = await self.logs.participant_totals(day.isoformat(), day.isoformat())
        return [row for row in rows if row["total_steps"] > 0]

    async def daily_top(self, day: date) -> Optional[Dict[str, Any]]:
        return await self.logs.top_walker_on(day.isoformat())

    async def goal_hitters(self, day: date) -> int:
        rows = await self.daily_leaderboard(day)
        return sum(1 for row in rows if row["total_steps"] >= self.daily_goal)

    async def participant_totals(self, participant_id: int) -> Dict[str, Any]:
        """Today, current-week and challenge totals with distance to each prize.

        Args:
            participant_id: Participant to report on.

        Returns:
            Dict of step totals, the current week number, the raffle and grand
            thresholds and the steps still needed for each.

        Raises:
            ParticipantNotFoundError: Unknown participant.
        """
        participant = await self.participants.get(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")

        week = self.calendar.current_week()
        week_total = await self.reader.participant_week(participant_id, week)
        challenge_total = await self.reader.participant_challenge_total(participant_id)
        return {
            "participant_id": participant_id,
            "today": await self.reader.participant_today(participant_id),
            "week": week_total,
            "week_number": week,
            "challenge": challenge_total,
            "banked_steps": participant.banked_steps,
            "weekly_threshold": self.thresholds.weekly_raffle,
            "weekly_remaining": max(0, self.thresholds.weekly_raffle - week_total),
            "grand_threshold": self.thresholds.grand_prize,
            "grand_remaining": max(0, self.thresholds.grand_prize - challenge_total),
        }
