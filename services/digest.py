"""Scheduled Slack digests, triggered externally over HTTP."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from core import get_logger
from database.models import Participant
from database.repositories import DailyWinnerRepository, ParticipantRepository, PrizeRepository
from services import slack_messages
from services.calendar import ChallengeCalendar
from services.notifier import NotificationDispatcher
from services.raffle import RaffleDrawer
from services.stats import StatsService
from services.thresholds import ChallengeThresholds

logger = get_logger(__name__)


class DigestService:
    def __init__(
        self,
        stats: StatsService,
        raffle: RaffleDrawer,
        daily_winners: DailyWinnerRepository,
        participants: ParticipantRepository,
        prizes: PrizeRepository,
        calendar: ChallengeCalendar,
        thresholds: ChallengeThresholds,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.stats = stats
        self.raffle = raffle
        self.daily_winners = daily_winners
        self.participants = participants
        self.prizes = prizes
        self.calendar = calendar
        self.thresholds = thresholds
        self.dispatcher = dispatcher

    async def daily_digest(self) -> Dict[str, Any]:
        """Post today's totals, standings and raffle status."""
        today = self.calendar.today()
        week = self.calendar.current_week()
        daily = await self.stats.daily_leaderboard(today)
        today_total = sum(row["total_steps"] for row in daily)
        prize = await self.prizes.get_weekly(week)
        qualified = len(await self.prizes.eligible_participant_ids(prize.id)) if prize else 0

        message = slack_messages.daily_digest(
            day=today,
            today_total=today_total,
            goal_hitters=await self.stats.goal_hitters(today),
            leaderboard=daily,
            teams=await self.stats.team_standings(),
            progress=await self.stats.progress(),
            week=week,
            weekly_prize=prize,
            qualified_count=qualified,
            raffle_threshold=self.thresholds.weekly_raffle,
            days_left_in_week=self.calendar.days_left_in_week(),
        )
        self.dispatcher.dispatch(message)
        logger.info(f"Daily digest queued for {today}: {today_total} steps")
        return {"date": today.isoformat(), "today_total": today_total, "week": week, "qualified": qualified}

    async def _recap_message(
        self,
        day: date,
        top_walker: Optional[Participant],
        top_steps: int,
        win_count: int,
        announcement: Optional[slack_messages.SlackMessage] = None,
    ) -> tuple[slack_messages.SlackMessage, List[Dict[str, Any]]]:
        daily = await self.stats.daily_leaderboard(day)
        participants = await self.participants.list_all()
        message = slack_messages.morning_recap(
            day=day,
            top_walker=top_walker,
            top_steps=top_steps,
            win_count=win_count,
            leaderboard=daily,
            teams=await self.stats.team_standings(),
            total_steps=sum(row["total_steps"] for row in daily),
            participant_count=len(participants),
            goal_hitters=await self.stats.goal_hitters(day),
            winner_announcement=announcement,
        )
        return message, daily

    async def morning_recap(self) -> Dict[str, Any]:
        """Crown yesterday's top walker; on Mondays also draw last week's prize."""
        yesterday = self.calendar.today() - timedelta(days=1)
        top = await self.stats.daily_top(yesterday)

        top_walker = None
        top_steps = 0
        win_count = 0
        recorded = False
        if top is not None:
            top_steps = top["step_count"]
            recorded = await self.daily_winners.record(yesterday.isoformat(), top["participant_id"], top_steps)
            top_walker = await self.participants.get(top["participant_id"])
            win_count = await self.daily_winners.count_for(top["participant_id"])

        draw: Optional[Dict[str, Any]] = None
        announcement = None
        previous = self.calendar.previous_week()
        if self.calendar.is_monday() and previous is not None and self.calendar.current_week() > previous:
            result = await self.raffle.draw_week(previous)
            draw = result.to_dict()
            if result.success:
                announcement = await self.raffle.winner_message(result)

        message, _ = await self._recap_message(yesterday, top_walker, top_steps, win_count, announcement)
        self.dispatcher.dispatch(message)
        logger.info(f"Morning recap queued for {yesterday} (top walker recorded: {recorded})")
        return {
            "date": yesterday.isoformat(),
            "top_walker": top_walker.to_dict() if top_walker else None,
            "top_steps": top_steps,
            "recorded": recorded,
            "draw": draw,
        }

    async def preview_morning_recap(self, day: date) -> Dict[str, Any]:
        """The recap ``day`` would get, built without recording, drawing or posting."""
        top = await self.stats.daily_top(day)
        top_walker = None
        top_steps = 0
        win_count = 0
        if top is not None:
            top_steps = top["step_count"]
            top_walker = await self.participants.get(top["participant_id"])
            win_count = await self.daily_winners.count_for(top["participant_id"])
            if await self.daily_winners.get(day.isoformat()) is None:
                # not crowned yet, so count the crown the real recap would add
                win_count += 1

        message, daily = await self._recap_message(day, top_walker, top_steps, win_count)
        recent = await self.daily_winners.list_recent()
        return {
            "date": day.isoformat(),
            "top_walker": top_walker.to_dict() if top_walker else None,
            "top_steps": top_steps,
            "total_steps": sum(row["total_steps"] for row in daily),
            "leaderboard": daily,
            "recent_winners": [winner.to_dict() for winner in recent],
            "text": message.text,
            "blocks": message.blocks,
        }
