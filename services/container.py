"""Explicit wiring of repositories and services for one process."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from config import Config
from database.connection import SQLitePool
from database.repositories import (
    ActivityLogRepository,
    DailyWinnerRepository,
    MilestoneRepository,
    ParticipantRepository,
    PrizeRepository,
    TeamRepository,
)
from services.activity import ActivityService
from services.cache import StatsCache
from services.calendar import ChallengeCalendar
from services.digest import DigestService
from services.milestones import MilestoneGuard, MilestoneService
from services.notifier import NotificationDispatcher, Notifier, build_notifier
from services.qualification import PrizeQualifier
from services.raffle import RaffleDrawer
from services.stats import StatsService
from services.step_reader import StepReader
from services.thresholds import ChallengeThresholds


@dataclass
class ServiceContainer:
    pool: SQLitePool
    calendar: ChallengeCalendar
    thresholds: ChallengeThresholds
    dispatcher: NotificationDispatcher
    teams: TeamRepository
    participants: ParticipantRepository
    logs: ActivityLogRepository
    prizes: PrizeRepository
    daily_winners: DailyWinnerRepository
    reader: StepReader
    milestones: MilestoneService
    qualifier: PrizeQualifier
    raffle: RaffleDrawer
    activity: ActivityService
    stats: StatsService
    digests: DigestService

    async def close(self) -> None:
        """Flush notifications, then release the pool."""
        await self.dispatcher.close()
        await self.pool.close()


def build_services(
    config: Config,
    pool: SQLitePool,
    notifier: Optional[Notifier] = None,
    calendar: Optional[ChallengeCalendar] = None,
    rng: Optional[random.Random] = None,
) -> ServiceContainer:
    calendar = calendar or ChallengeCalendar.from_config(config)
    thresholds = ChallengeThresholds.from_config(config)
    dispatcher = NotificationDispatcher(notifier or build_notifier(config))
    cache = StatsCache(ttl=config.cache_ttl)

    teams = TeamRepository(pool)
    participants = ParticipantRepository(pool)
    logs = ActivityLogRepository(pool)
    prizes = PrizeRepository(pool)
    daily_winners = DailyWinnerRepository(pool)

    reader = StepReader(logs, calendar)
    milestones = MilestoneService(
        guard=MilestoneGuard(MilestoneRepository(pool)),
        reader=reader,
        participants=participants,
        prizes=prizes,
        thresholds=thresholds,
        dispatcher=dispatcher,
        app_url=config.app_url,
    )
    qualifier = PrizeQualifier(prizes, participants, thresholds, calendar, dispatcher)
    raffle = RaffleDrawer(prizes, participants, teams, reader, thresholds, dispatcher, rng=rng)
    activity = ActivityService(
        logs=logs,
        participants=participants,
        teams=teams,
        reader=reader,
        calendar=calendar,
        milestones=milestones,
        qualifier=qualifier,
        dispatcher=dispatcher,
        cache=cache,
        daily_goal=config.daily_goal,
    )
    stats = StatsService(logs, participants, reader, calendar, thresholds, cache, daily_goal=config.daily_goal)
    digests = DigestService(stats, raffle, daily_winners, participants, prizes, calendar, thresholds, dispatcher)

    return ServiceContainer(
        pool=pool,
        calendar=calendar,
        thresholds=thresholds,
        dispatcher=dispatcher,
        teams=teams,
        participants=participants,
        logs=logs,
        prizes=prizes,
        daily_winners=daily_winners,
        reader=reader,
        milestones=milestones,
        qualifier=qualifier,
        raffle=raffle,
        activity=activity,
        stats=stats,
        digests=digests,
    )
