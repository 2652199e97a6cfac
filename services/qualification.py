"""Weekly raffle and grand prize qualification with auto opt-in."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict

from core import get_logger
from core.exceptions import ParticipantNotFoundError, PrizeNotFoundError, ValidationError
from database.repositories import ParticipantRepository, PrizeRepository
from services import slack_messages
from services.calendar import ChallengeCalendar
from services.notifier import NotificationDispatcher
from services.thresholds import ChallengeThresholds, evaluate

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class QualificationOutcome:
    weekly_qualified: bool = False
    grand_qualified: bool = False


class PrizeQualifier:
    """Marks entries qualified once a total reaches its threshold.

    Qualification is monotonic: the upsert only flips ``qualified`` from 0 to
    1, and a True result means this call did the flip, so the celebration is
    posted once per participant and prize.
    """

    def __init__(
        self,
        prizes: PrizeRepository,
        participants: ParticipantRepository,
        thresholds: ChallengeThresholds,
        calendar: ChallengeCalendar,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.prizes = prizes
        self.participants = participants
        self.thresholds = thresholds
        self.calendar = calendar
        self.dispatcher = dispatcher

    async def evaluate_participant(
        self,
        participant_id: int,
        log_date: date,
        week_before: int,
        week_after: int,
        challenge_before: int,
        challenge_after: int,
    ) -> QualificationOutcome:
        week = self.calendar.week_of(log_date)
        weekly = evaluate(week_before, week_after, self.thresholds.weekly_raffle)
        grand = evaluate(challenge_before, challenge_after, self.thresholds.grand_prize)

        weekly_new = False
        if weekly.qualifies:
            weekly_new = await self._qualify_weekly(participant_id, week, week_after)

        grand_new = False
        if grand.qualifies:
            grand_new = await self._qualify_grand(participant_id, challenge_after)

        return QualificationOutcome(weekly_qualified=weekly_new, grand_qualified=grand_new)

    async def _qualify_weekly(self, participant_id: int, week: int, week_total: int) -> bool:
        prize = await self.prizes.get_weekly(week)
        if prize is None:
            logger.warning(f"No weekly prize for week {week}, skipping qualification")
            return False

        async with self.prizes.pool.transaction() as conn:
            newly = await self.prizes.mark_qualified(participant_id, prize.id, week, conn)
            if newly:
                await self.participants.grant_raffle_ticket(participant_id, conn)
        if not newly:
            return False

        logger.info(f"Participant {participant_id} qualified for week {week} raffle with {week_total} steps")
        participant = await self.participants.get(participant_id)
        if participant is not None:
            self.dispatcher.dispatch(slack_messages.weekly_qualified(participant, week, week_total, prize))
        return True

    async def _qualify_grand(self, participant_id: int, challenge_total: int) -> bool:
        prize = await self.prizes.get_grand()
        if prize is None:
            logger.warning("No grand prize defined, skipping qualification")
            return False

        async with self.prizes.pool.transaction() as conn:
            newly = await self.prizes.mark_qualified(participant_id, prize.id, None, conn)
            if newly:
                await self.participants.grant_grand_prize_entry(participant_id, conn)
        if not newly:
            return False

        logger.info(f"Participant {participant_id} qualified for the grand prize with {challenge_total} steps")
        participant = await self.participants.get(participant_id)
        if participant is not None:
            self.dispatcher.dispatch(slack_messages.grand_qualified(participant, challenge_total, prize))
        return True

    async def set_opt_in(self, participant_id: int, week: int, opted_in: bool) -> Dict[str, Any]:
        """Opt a participant in or out of a weekly raffle.

        Opting out keeps the qualification; the entry just leaves the draw.

        Args:
            participant_id: Participant to update.
            week: Challenge week, 1 through the configured week count.
            opted_in: New opt-in state.

        Returns:
            The prize entry as a dict.

        Raises:
            ParticipantNotFoundError: Unknown participant.
            ValidationError: Week out of range.
            PrizeNotFoundError: No prize for that week.
        """
        if await self.participants.get(participant_id) is None:
            raise ParticipantNotFoundError(f"Participant {participant_id} not found")
        if week < 1 or week > self.calendar.weeks:
            raise ValidationError(f"week must be between 1 and {self.calendar.weeks}")
        prize = await self.prizes.get_weekly(week)
        if prize is None:
            raise PrizeNotFoundError(f"No prize defined for week {week}")

        await self.prizes.set_opt_in(participant_id, prize.id, week, opted_in)
        entry = await self.prizes.get_entry(participant_id, prize.id)
        logger.info(f"Participant {participant_id} opted {'in to' if opted_in else 'out of'} week {week} raffle")
        return entry.to_dict() if entry else {}
