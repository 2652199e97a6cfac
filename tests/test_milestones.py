"""Tests for the one-time organisation milestone."""

import asyncio

import pytest

from core.constants import ActivityKind, MilestoneType
from core.exceptions import ValidationError
from services.milestones import MilestoneClaim


async def _seed_org_total(services, total, day="2025-12-05"):
    """Bulk history written straight to the log table."""
    async with services.pool.transaction() as conn:
        await services.logs.insert(1, total, day, ActivityKind.WALKING, None, conn)
        await services.participants.add_banked_steps(1, total, conn)


@pytest.mark.asyncio
async def test_concurrent_claims_yield_exactly_one_row(services):
    guard = services.milestones.guard
    payloads = [
        MilestoneClaim(threshold_value=1_085_000, total_steps_at_trigger=1_090_000, participant_id=1, log_id=11),
        MilestoneClaim(threshold_value=1_085_000, total_steps_at_trigger=1_095_000, participant_id=2, log_id=12),
    ]

    results = await asyncio.gather(*(guard.claim(MilestoneType.HALFWAY, p) for p in payloads))

    assert sorted(results) == [False, True]
    winner = payloads[results.index(True)]
    event = await guard.milestones.get(MilestoneType.HALFWAY.value)
    assert await guard.milestones.count(MilestoneType.HALFWAY.value) == 1
    assert event.total_steps_at_trigger == winner.total_steps_at_trigger
    assert event.triggered_by_participant_id == winner.participant_id
    assert event.triggered_by_log_id == winner.log_id


@pytest.mark.asyncio
async def test_many_claimants_single_winner(services):
    guard = services.milestones.guard
    claims = [
        guard.claim(MilestoneType.HALFWAY, MilestoneClaim(1_085_000, 1_085_000 + i, participant_id=(i % 10) + 1))
        for i in range(12)
    ]
    results = await asyncio.gather(*claims)
    assert results.count(True) == 1
    assert await guard.milestones.count(MilestoneType.HALFWAY.value) == 1


@pytest.mark.asyncio
async def test_check_and_announce_only_on_crossing(services, notifier):
    milestones = services.milestones

    assert not await milestones.check_and_announce(1, None, 100, 200)
    assert await milestones.check_and_announce(3, None, 1_080_000, 1_090_000)
    assert not await milestones.check_and_announce(4, None, 1_080_000, 1_095_000)
    assert not await milestones.check_and_announce(4, None, 1_090_000, 1_100_000)
    await services.dispatcher.drain()

    assert notifier.kinds() == ["halfway_milestone"]
    event = await milestones.guard.milestones.get(MilestoneType.HALFWAY.value)
    assert event.triggered_by_participant_id == 3


@pytest.mark.asyncio
async def test_concurrent_log_writes_announce_once(services, notifier):
    """Two writes racing across the line: one claim, one announcement."""
    await _seed_org_total(services, 1_080_000)

    results = await asyncio.gather(
        services.activity.record_activity(2, 10_000, None, "2025-12-10"),
        services.activity.record_activity(3, 15_000, None, "2025-12-10"),
    )
    await services.dispatcher.drain()

    assert [r.milestone_claimed for r in results].count(True) == 1
    assert notifier.kinds().count("halfway_milestone") == 1
    event = await services.milestones.guard.milestones.get(MilestoneType.HALFWAY.value)
    assert event.total_steps_at_trigger in (1_090_000, 1_095_000)


@pytest.mark.asyncio
async def test_status_before_and_after(services):
    status = await services.milestones.get_status("50_percent")
    assert status["achieved"] is False
    assert status["current_total"] == 0
    assert status["threshold"] == 1_085_000
    assert status["percentage"] == 0

    await _seed_org_total(services, 2_000_000)
    capped = await services.milestones.get_status("50_percent")
    assert capped["percentage"] == 100.0

    await services.milestones.check_and_announce(5, 77, 1_000_000, 1_100_000)
    achieved = await services.milestones.get_status("50_percent")
    assert achieved["achieved"] is True
    assert achieved["total_steps_at_trigger"] == 1_100_000
    assert achieved["triggered_by"]["id"] == 5
    assert achieved["grand_prize"]["prize_type"] == "grand"


@pytest.mark.asyncio
async def test_unknown_milestone_type(services):
    with pytest.raises(ValidationError):
        await services.milestones.get_status("75_percent")
