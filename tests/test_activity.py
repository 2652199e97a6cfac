"""Tests for activity recording, corrections and prize qualification."""

import asyncio
import logging
import sqlite3
from datetime import date

import pytest

from core.constants import ActivityKind, BONUS_STEP_VALUES
from core.exceptions import ActivityLogNotFoundError, ParticipantNotFoundError, ValidationError
from services.qualification import PrizeQualifier
from services.thresholds import ChallengeThresholds


async def _assert_cached_total_matches(services, participant_id):
    participant = await services.participants.get(participant_id)
    assert participant.banked_steps == await services.reader.participant_total(participant_id)


@pytest.mark.asyncio
async def test_record_activity_persists_log_and_bumps_total(services, notifier):
    result = await services.activity.record_activity(1, 5000, "Running", "2025-12-09")
    await services.dispatcher.drain()

    assert result.log.step_count == 5000
    assert result.log.activity_kind is ActivityKind.RUNNING
    assert result.log.date_logged == "2025-12-09"
    assert result.totals == {"organization": 5000, "week": 5000, "challenge": 5000}
    assert not result.weekly_qualified
    assert notifier.kinds() == ["activity_logged"]
    await _assert_cached_total_matches(services, 1)


@pytest.mark.asyncio
async def test_date_defaults_to_today_in_challenge_zone(services):
    result = await services.activity.record_activity(2, 1200)
    assert result.log.date_logged == "2025-12-10"
    assert result.log.activity_kind is ActivityKind.WALKING


@pytest.mark.asyncio
async def test_bonus_activity_uses_default_value(services):
    result = await services.activity.record_activity(3, None, "sauna", "2025-12-10")
    assert result.log.step_count == BONUS_STEP_VALUES[ActivityKind.SAUNA]


@pytest.mark.asyncio
async def test_custom_activity_keeps_label(services):
    result = await services.activity.record_activity(3, 4000, "Pickleball", "2025-12-10")
    assert result.log.activity_kind is ActivityKind.CUSTOM
    assert result.log.activity_type == "Pickleball"


@pytest.mark.asyncio
@pytest.mark.parametrize("steps", [0, -5, 50_001, "lots", 12.5, None])
async def test_invalid_steps_rejected(services, steps):
    with pytest.raises(ValidationError):
        await services.activity.record_activity(1, steps, "Walking", "2025-12-10")


@pytest.mark.asyncio
async def test_invalid_date_rejected(services):
    with pytest.raises(ValidationError):
        await services.activity.record_activity(1, 1000, None, "12/10/2025")


@pytest.mark.asyncio
async def test_unknown_participant_rejected(services):
    with pytest.raises(ParticipantNotFoundError):
        await services.activity.record_activity(999, 1000)


@pytest.mark.asyncio
async def test_weekly_qualification_fires_once(services, notifier):
    """24k -> 30k crosses the 29,400 weekly line; 30k -> 31k does not re-announce."""
    await services.activity.record_activity(4, 24_000, None, "2025-12-08")
    crossed = await services.activity.record_activity(4, 6_000, None, "2025-12-09")
    again = await services.activity.record_activity(4, 1_000, None, "2025-12-10")
    await services.dispatcher.drain()

    assert crossed.weekly_qualified
    assert not again.weekly_qualified
    assert notifier.kinds().count("weekly_qualified") == 1

    prize = await services.prizes.get_weekly(2)
    entry = await services.prizes.get_entry(4, prize.id)
    assert entry.qualified and entry.opted_in
    participant = await services.participants.get(4)
    assert participant.raffle_tickets == 1


@pytest.mark.asyncio
async def test_backdated_log_counts_toward_its_own_week(services):
    """A week-1 log is evaluated against week 1 even while week 2 is current."""
    result = await services.activity.record_activity(5, 30_000, None, "2025-12-03")
    assert result.weekly_qualified

    week_one = await services.prizes.get_weekly(1)
    week_two = await services.prizes.get_weekly(2)
    assert (await services.prizes.get_entry(5, week_one.id)).qualified
    assert await services.prizes.get_entry(5, week_two.id) is None


@pytest.mark.asyncio
async def test_logs_outside_window_skip_rule_checks(services, notifier):
    result = await services.activity.record_activity(6, 40_000, None, "2026-01-02")
    await services.dispatcher.drain()

    assert not result.weekly_qualified
    assert not result.milestone_claimed
    assert notifier.kinds() == ["activity_logged"]
    await _assert_cached_total_matches(services, 6)


@pytest.mark.asyncio
async def test_update_adjusts_cached_total_and_requalifies(services):
    created = await services.activity.record_activity(7, 20_000, None, "2025-12-09")
    updated = await services.activity.update_activity(created.log.id, steps=30_000)

    assert updated.log.step_count == 30_000
    assert updated.weekly_qualified
    await _assert_cached_total_matches(services, 7)


@pytest.mark.asyncio
async def test_update_with_lower_steps_does_not_run_checks(services):
    created = await services.activity.record_activity(7, 30_000, None, "2025-12-09")
    assert created.weekly_qualified
    lowered = await services.activity.update_activity(created.log.id, steps=1_000, activity="Running")

    assert not lowered.weekly_qualified
    assert lowered.log.activity_kind is ActivityKind.RUNNING
    await _assert_cached_total_matches(services, 7)


@pytest.mark.asyncio
async def test_delete_subtracts_but_keeps_qualification(services):
    created = await services.activity.record_activity(8, 30_000, None, "2025-12-09")
    deleted = await services.activity.delete_activity(created.log.id)

    assert deleted.id == created.log.id
    await _assert_cached_total_matches(services, 8)
    prize = await services.prizes.get_weekly(2)
    assert (await services.prizes.get_entry(8, prize.id)).qualified

    with pytest.raises(ActivityLogNotFoundError):
        await services.activity.delete_activity(created.log.id)


@pytest.mark.asyncio
async def test_update_unknown_log(services):
    with pytest.raises(ActivityLogNotFoundError):
        await services.activity.update_activity(12345, steps=100)


@pytest.mark.asyncio
async def test_log_from_slack(services, pool):
    async with pool.connection() as conn:
        await conn.execute("UPDATE participants SET slack_user_id='U123' WHERE id=9")

    result = await services.activity.log_from_slack("U123", "5,000 Running")
    assert result.log.participant_id == 9
    assert result.log.step_count == 5000
    assert result.log.activity_kind is ActivityKind.RUNNING
    assert result.log.date_logged == "2025-12-10"

    with pytest.raises(ValidationError):
        await services.activity.log_from_slack("U123", "")
    with pytest.raises(ValidationError):
        await services.activity.log_from_slack("U123", "many Running")
    with pytest.raises(ValidationError):
        await services.activity.log_from_slack("U123", "60000")
    with pytest.raises(ParticipantNotFoundError):
        await services.activity.log_from_slack("UNKNOWN", "100")


@pytest.mark.asyncio
async def test_qualifier_scenario_with_seven_thousand_line(services, notifier, calendar):
    """6,000 -> 8,200 qualifies once; 8,200 -> 9,000 is a no-op."""
    thresholds = ChallengeThresholds(
        weekly_raffle=7000, grand_prize=10**9, org_milestone=10**9, org_goal=2 * 10**9
    )
    qualifier = PrizeQualifier(services.prizes, services.participants, thresholds, calendar, services.dispatcher)
    day = date(2025, 12, 10)

    first = await qualifier.evaluate_participant(10, day, 6000, 8200, 6000, 8200)
    second = await qualifier.evaluate_participant(10, day, 8200, 9000, 8200, 9000)
    await services.dispatcher.drain()

    assert first.weekly_qualified
    assert not second.weekly_qualified
    assert notifier.kinds().count("weekly_qualified") == 1


@pytest.mark.asyncio
async def test_grand_prize_qualification(services, notifier):
    for day in range(1, 5):
        await services.activity.record_activity(2, 40_000, None, date(2025, 12, day))
    await services.dispatcher.drain()

    participant = await services.participants.get(2)
    assert participant.grand_prize_entry
    assert notifier.kinds().count("grand_qualified") == 1


@pytest.mark.asyncio
async def test_manual_opt_out_excludes_from_candidates(services):
    await services.activity.record_activity(1, 30_000, None, "2025-12-09")
    entry = await services.qualifier.set_opt_in(1, 2, False)
    assert entry["qualified"] and not entry["opted_in"]

    prize = await services.prizes.get_weekly(2)
    assert await services.prizes.eligible_participant_ids(prize.id) == []

    with pytest.raises(ValidationError):
        await services.qualifier.set_opt_in(1, 9, True)


@pytest.mark.asyncio
async def test_concurrent_corrections_keep_cached_total_in_sync(services):
    created = await services.activity.record_activity(3, 1000, None, "2025-12-09")

    await asyncio.gather(
        services.activity.update_activity(created.log.id, steps=2000),
        services.activity.update_activity(created.log.id, steps=3000),
    )

    await _assert_cached_total_matches(services, 3)
    assert (await services.logs.get(created.log.id)).step_count in (2000, 3000)


@pytest.mark.asyncio
async def test_correction_racing_delete_keeps_cached_total_in_sync(services):
    created = await services.activity.record_activity(3, 1000, None, "2025-12-09")

    results = await asyncio.gather(
        services.activity.update_activity(created.log.id, steps=5000),
        services.activity.delete_activity(created.log.id),
        return_exceptions=True,
    )

    assert all(
        not isinstance(outcome, Exception) or isinstance(outcome, ActivityLogNotFoundError) for outcome in results
    )
    await _assert_cached_total_matches(services, 3)
    assert await services.logs.get(created.log.id) is None


@pytest.mark.asyncio
async def test_failed_rule_checks_do_not_fail_committed_write(services, monkeypatch, caplog):
    async def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(services.qualifier, "evaluate_participant", locked)

    with caplog.at_level(logging.ERROR):
        result = await services.activity.record_activity(2, 30_000, None, "2025-12-10")

    assert result.log.step_count == 30_000
    assert not result.weekly_qualified
    assert await services.logs.get(result.log.id) is not None
    await _assert_cached_total_matches(services, 2)
    assert "Post-commit checks failed" in caplog.text
