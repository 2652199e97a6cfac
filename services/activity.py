"""Activity log writes and the rules they trigger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple, Union

import aiosqlite

from core import get_logger
from core.constants import BONUS_STEP_VALUES, ActivityKind, StepLimits, parse_activity
from core.exceptions import ActivityLogNotFoundError, ParticipantNotFoundError, ValidationError
from database.models import ActivityLogEntry, Participant
from database.repositories import ActivityLogRepository, ParticipantRepository, TeamRepository
from services import slack_messages
from services.cache import StatsCache
from services.calendar import ChallengeCalendar
from services.milestones import MilestoneService
from services.notifier import NotificationDispatcher
from services.qualification import PrizeQualifier
from services.step_reader import StepReader

logger = get_logger(__name__)

ActivityInput = Union[ActivityKind, str, None]
DateInput = Union[date, str, None]

SLACK_USAGE = "Usage: /logsteps <steps> [activity], e.g. /logsteps 5000 Running"


@dataclass(frozen=True, slots=True)
class Totals:
    organization: int
    week: int
    challenge: int


@dataclass(slots=True)
class RecordResult:
    log: ActivityLogEntry
    totals: Dict[str, int] = field(default_factory=dict)
    milestone_claimed: bool = False
    weekly_qualified: bool = False
    grand_qualified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log": self.log.to_dict(),
            "totals": self.totals,
            "milestone_claimed": self.milestone_claimed,
            "weekly_qualified": self.weekly_qualified,
            "grand_qualified": self.grand_qualified,
        }


def validate_steps(steps: Any) -> int:
    if isinstance(steps, bool):
        raise ValidationError("steps must be a whole number")
    try:
        value = int(steps)
    except (TypeError, ValueError) as e:
        raise ValidationError("steps must be a whole number") from e
    if value != steps and not isinstance(steps, str):
        raise ValidationError("steps must be a whole number")
    if value < StepLimits.MIN_STEPS or value > StepLimits.MAX_STEPS_PER_LOG:
        raise ValidationError(
            f"steps must be between {StepLimits.MIN_STEPS} and {StepLimits.MAX_STEPS_PER_LOG:,}"
        )
    return value


def resolve_activity(activity: ActivityInput) -> Tuple[ActivityKind, Optional[str]]:
    if isinstance(activity, ActivityKind):
        return activity, None
    return parse_activity(activity)


class ActivityService:
    """Records activity and runs milestone and prize checks after commit.

    Before/after totals for one write are read inside the same
    ``BEGIN IMMEDIATE`` transaction as the insert, so they reflect a single
    snapshot even under concurrent writers.
    """

    def __init__(
        self,
        logs: ActivityLogRepository,
        participants: ParticipantRepository,
        teams: TeamRepository,
        reader: StepReader,
        calendar: ChallengeCalendar,
        milestones: MilestoneService,
        qualifier: PrizeQualifier,
        dispatcher: NotificationDispatcher,
        cache: StatsCache,
        daily_goal: int = 7000,
    ) -> None:
        self.logs = logs
        self.participants = participants
        self.teams = teams
        self.reader = reader
        self.calendar = calendar
        self.milestones = milestones
        self.qualifier = qualifier
        self.dispatcher = dispatcher
        self.cache = cache
        self.daily_goal = daily_goal

    def _resolve_date(self, value: DateInput) -> date:
        if value is None or value == "":
            return self.calendar.today()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError as e:
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from e

    async def _require_participant(self, participant_id: int) -> Participant:
        participant = await self.participants.get(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        return participant

    async def _totals(self, participant_id: int, day: date, conn: aiosqlite.Connection) -> Totals:
        return Totals(
            organization=await self.reader.organization_challenge_total(conn),
            week=await self.reader.participant_week(participant_id, self.calendar.week_of(day), conn),
            challenge=await self.reader.participant_challenge_total(participant_id, conn),
        )

    async def record_activity(
        self,
        participant_id: int,
        steps: Optional[Any],
        activity: ActivityInput = None,
        day: DateInput = None,
    ) -> RecordResult:
        kind, label = resolve_activity(activity)
        if steps is None or steps == "":
            if not kind.is_bonus:
                raise ValidationError("steps is required")
            steps = BONUS_STEP_VALUES[kind]
        step_count = validate_steps(steps)
        log_date = self._resolve_date(day)
        participant = await self._require_participant(participant_id)

        async with self.logs.pool.transaction() as conn:
            before = await self._totals(participant_id, log_date, conn)
            log_id = await self.logs.insert(participant_id, step_count, log_date.isoformat(), kind, label, conn)
            await self.participants.add_banked_steps(participant_id, step_count, conn)
            after = await self._totals(participant_id, log_date, conn)
            log = await self._require_log(log_id, conn)
        self.cache.invalidate()

        logger.info(
            f"Participant {participant_id} logged {step_count} steps ({kind.display(label)}) for {log_date}"
        )
        result = await self._after_write(participant_id, log, before, after, run_checks=True)
        try:
            await self._post_log(participant, log, log_date, after.challenge)
        except Exception as e:
            logger.error(f"Could not queue activity post for log {log.id}: {e}", exc_info=True)
        return result

    async def _require_log(self, log_id: int, conn: Optional[aiosqlite.Connection] = None) -> ActivityLogEntry:
        log = await self.logs.get(log_id, conn)
        if log is None:
            raise ActivityLogNotFoundError(f"Activity log {log_id} not found")
        return log

    async def _after_write(
        self, participant_id: int, log: ActivityLogEntry, before: Totals, after: Totals, run_checks: bool
    ) -> RecordResult:
        """Milestone and prize checks for a committed write.

        The log is already saved, so a failure here is logged and the result
        keeps its default flags instead of failing the request.
        """
        result = RecordResult(
            log=log,
            totals={"organization": after.organization, "week": after.week, "challenge": after.challenge},
        )
        log_date = date.fromisoformat(log.date_logged)
        if not run_checks or not self.calendar.contains(log_date):
            return result

        try:
            result.milestone_claimed = await self.milestones.check_and_announce(
                participant_id, log.id, before.organization, after.organization
            )
            outcome = await self.qualifier.evaluate_participant(
                participant_id, log_date, before.week, after.week, before.challenge, after.challenge
            )
        except Exception as e:
            logger.error(f"Post-commit checks failed for log {log.id}: {e}", exc_info=True)
            return result
        result.weekly_qualified = outcome.weekly_qualified
        result.grand_qualified = outcome.grand_qualified
        return result

    async def _post_log(
        self, participant: Participant, log: ActivityLogEntry, log_date: date, challenge_total: int
    ) -> None:
        team = await self.teams.get(participant.team_id) if participant.team_id is not None else None
        daily_total = await self.reader.daily_total(participant.id, log_date)
        self.dispatcher.dispatch(
            slack_messages.activity_logged(
                participant=participant,
                team=team,
                steps=log.step_count,
                activity_type=log.activity_type,
                is_bonus=log.activity_kind.is_bonus,
                daily_total=daily_total,
                challenge_total=challenge_total,
                date_logged=log_date,
                today=self.calendar.today(),
                daily_goal=self.daily_goal,
            )
        )

    async def update_activity(
        self,
        log_id: int,
        steps: Optional[Any] = None,
        activity: ActivityInput = None,
        day: DateInput = None,
    ) -> RecordResult:
        """Correct a log; the cached total moves by the step delta.

        The current row is read inside the write transaction, so concurrent
        corrections and deletes each apply their delta to the latest value.
        """
        new_steps = None if steps is None else validate_steps(steps)
        new_activity = None if activity is None else resolve_activity(activity)
        new_date = None if day is None else self._resolve_date(day)

        async with self.logs.pool.transaction() as conn:
            existing = await self._require_log(log_id, conn)
            step_count = existing.step_count if new_steps is None else new_steps
            kind, label = new_activity or (existing.activity_kind, existing.activity_label)
            log_date = new_date or date.fromisoformat(existing.date_logged)
            delta = step_count - existing.step_count

            before = await self._totals(existing.participant_id, log_date, conn)
            await self.logs.update(log_id, step_count, log_date.isoformat(), kind, label, conn)
            if delta:
                await self.participants.add_banked_steps(existing.participant_id, delta, conn)
            after = await self._totals(existing.participant_id, log_date, conn)
            log = await self._require_log(log_id, conn)
        self.cache.invalidate()

        logger.info(f"Activity log {log_id} updated ({existing.step_count} -> {step_count} steps)")
        return await self._after_write(existing.participant_id, log, before, after, run_checks=delta > 0)

    async def delete_activity(self, log_id: int) -> ActivityLogEntry:
        """Remove a log. Qualification already granted is kept."""
        async with self.logs.pool.transaction() as conn:
            existing = await self._require_log(log_id, conn)
            await self.logs.delete(log_id, conn)
            await self.participants.add_banked_steps(existing.participant_id, -existing.step_count, conn)
        self.cache.invalidate()
        logger.info(f"Activity log {log_id} deleted ({existing.step_count} steps)")
        return existing

    async def log_from_slack(self, slack_user_id: str, text: str) -> RecordResult:
        """Handle ``/logsteps 5000 Running`` for today's date."""
        parts = (text or "").strip().split(maxsplit=1)
        if not parts:
            raise ValidationError(SLACK_USAGE)
        try:
            steps = int(parts[0].replace(",", ""))
        except ValueError as e:
            raise ValidationError(SLACK_USAGE) from e
        activity = parts[1] if len(parts) > 1 else None

        participant = await self.participants.get_by_slack_id(slack_user_id)
        if participant is None:
            raise ParticipantNotFoundError("Your Slack account is not linked to a participant")
        return await self.record_activity(participant.id, steps, activity, self.calendar.today())
