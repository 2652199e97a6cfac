"""Pytest configuration and fixtures."""

import asyncio
import random
import threading
from dataclasses import replace
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from config import load_config
from database import SQLitePool, run_migrations, seed_roster
from services.async_runner import LoopRunner
from services.calendar import ChallengeCalendar
from services.container import build_services

DENVER = ZoneInfo("America/Denver")
CHALLENGE_START = date(2025, 12, 1)
# Wednesday of week 2
FIXED_NOW = datetime(2025, 12, 10, 12, 0, tzinfo=DENVER)


class RecordingNotifier:
    """Collects messages instead of posting them."""

    def __init__(self):
        self.messages = []

    async def notify(self, message):
        self.messages.append(message)

    def kinds(self):
        return [message.kind for message in self.messages]


def make_calendar(now: datetime = FIXED_NOW) -> ChallengeCalendar:
    return ChallengeCalendar(
        start=CHALLENGE_START, days=31, weeks=4, timezone="America/Denver", clock=lambda: now
    )


@pytest.fixture
def config(tmp_path):
    """Config isolated from the developer's environment."""
    return replace(
        load_config(),
        environment="testing",
        database_path=str(tmp_path / "step_challenge.sqlite"),
        log_folder=str(tmp_path / "logs"),
        db_pool_size=4,
        notifications_enabled=False,
        slack_bot_token="",
        app_url="",
        challenge_start=CHALLENGE_START,
        challenge_days=31,
        challenge_weeks=4,
        timezone="America/Denver",
        daily_goal=7000,
        participant_count=10,
        raffle_threshold_pct=0.6,
        grand_prize_threshold_pct=0.7,
        milestone_pct=0.5,
        cache_ttl=30,
        seed_roster=True,
    )


@pytest.fixture
def calendar():
    return make_calendar()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def pool(config):
    """Migrated and seeded temporary database."""
    db_pool = SQLitePool(config.database_path, pool_size=config.db_pool_size)
    await db_pool.init_pool()
    await run_migrations(db_pool)
    await seed_roster(db_pool)
    yield db_pool
    await db_pool.close()


@pytest.fixture
async def services(config, pool, notifier, calendar):
    container = build_services(config, pool, notifier=notifier, calendar=calendar, rng=random.Random(1234))
    yield container
    await container.dispatcher.drain()


@pytest.fixture
def api(config, notifier):
    """Flask test client backed by services living on a background loop.

    Yields ``(client, services)``.
    """
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    runner = LoopRunner(loop, timeout=10)

    async def _build():
        db_pool = SQLitePool(config.database_path, pool_size=config.db_pool_size)
        await db_pool.init_pool()
        await run_migrations(db_pool)
        await seed_roster(db_pool)
        return build_services(
            config, db_pool, notifier=notifier, calendar=make_calendar(), rng=random.Random(1234)
        )

    container = runner.run(_build())

    from web import create_app

    app = create_app(config, services=container, runner=runner, testing=True)
    try:
        yield app.test_client(), container
    finally:
        runner.run(container.close())
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        loop.close()
