"""Organisation-wide milestone detection and one-time announcement."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core import get_logger
from core.constants import MilestoneType
from core.exceptions import ValidationError
from database.repositories import MilestoneRepository, ParticipantRepository, PrizeRepository
from services import slack_messages
from services.notifier import NotificationDispatcher
from services.step_reader import StepReader
from services.thresholds import ChallengeThresholds, evaluate

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MilestoneClaim:
    threshold_value: int
    total_steps_at_trigger: int
    participant_id: Optional[int] = None
    log_id: Optional[int] = None


class MilestoneGuard:
    """Exactly-once claim backed by the unique ``milestone_type`` column."""

    def __init__(self, milestones: MilestoneRepository) -> None:
        self.milestones = milestones

    async def claim(self, milestone_type: MilestoneType, payload: MilestoneClaim) -> bool:
        """Returns True only for the caller whose insert landed."""
        try:
            await self.milestones.insert_event(
                milestone_type.value,
                payload.threshold_value,
                payload.total_steps_at_trigger,
                payload.participant_id,
                payload.log_id,
            )
        except sqlite3.IntegrityError:
            logger.info(f"Milestone {milestone_type.value} already claimed")
            return False

        logger.info(
            f"Milestone {milestone_type.value} claimed at {payload.total_steps_at_trigger} steps "
            f"by participant {payload.participant_id}"
        )
        return True


class MilestoneService:
    def __init__(
        self,
        guard: MilestoneGuard,
        reader: StepReader,
        participants: ParticipantRepository,
        prizes: PrizeRepository,
        thresholds: ChallengeThresholds,
        dispatcher: NotificationDispatcher,
        app_url: str = "",
    ) -> None:
        self.guard = guard
        self.reader = reader
        self.participants = participants
        self.prizes = prizes
        self.thresholds = thresholds
        self.dispatcher = dispatcher
        self.app_url = app_url

    async def check_and_announce(
        self, participant_id: int, log_id: Optional[int], total_before: int, total_after: int
    ) -> bool:
        """Claim the halfway milestone if this write crossed it.

        Args:
            participant_id: Participant whose log moved the total
            log_id: The triggering activity log
            total_before: Organisation challenge total before the write
            total_after: Organisation challenge total after the write

        Returns:
            True when this call won the claim and queued the announcement
        """
        threshold = self.thresholds.org_milestone
        result = evaluate(total_before, total_after, threshold)
        if not result.crossed:
            return False

        claimed = await self.guard.claim(
            MilestoneType.HALFWAY,
            MilestoneClaim(
                threshold_value=threshold,
                total_steps_at_trigger=total_after,
                participant_id=participant_id,
                log_id=log_id,
            ),
        )
        if not claimed:
            return False

        participant = await self.participants.get(participant_id)
        grand_prize = await self.prizes.get_grand()
        self.dispatcher.dispatch(
            slack_messages.halfway_milestone(
                total_steps=total_after,
                challenge_goal=self.thresholds.org_goal,
                participant=participant,
                grand_prize=grand_prize,
                grand_threshold=self.thresholds.grand_prize,
                app_url=self.app_url,
            )
        )
        return True

    async def get_status(self, milestone_type: str) -> Dict[str, Any]:
        try:
            kind = MilestoneType(milestone_type)
        except ValueError as e:
            raise ValidationError(f"Unknown milestone type: {milestone_type}") from e

        threshold = self.thresholds.org_milestone
        event = await self.guard.milestones.get(kind.value)
        if event is not None:
            participant = (
                await self.participants.get(event.triggered_by_participant_id)
                if event.triggered_by_participant_id is not None
                else None
            )
            grand_prize = await self.prizes.get_grand()
            return {
                "milestone_type": kind.value,
                "achieved": True,
                "achieved_at": event.announced_at,
                "threshold": event.threshold_value,
                "total_steps_at_trigger": event.total_steps_at_trigger,
                "triggered_by": participant.to_dict() if participant else None,
                "grand_prize": grand_prize.to_dict() if grand_prize else None,
            }

        total = await self.reader.organization_challenge_total()
        percentage = min(100.0, round(total / threshold * 100, 1)) if threshold else 100.0
        return {
            "milestone_type": kind.value,
            "achieved": False,
            "current_total": total,
            "threshold": threshold,
            "percentage": percentage,
        }
